"""Configuration loading and validation.

Usage:
    config = load("pclint-config.yaml")      # raises ConfigError on bad config
    config.require_server()                  # raises ConfigError without url/token
    generate_template("pclint-config.yaml")  # writes example file to disk
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = "pclint-config.yaml"

SEVERITIES = ("BLOCKER", "CRITICAL", "MAJOR", "MINOR", "INFO")
ISSUE_TYPES = ("BUG", "VULNERABILITY", "CODE_SMELL")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Config dataclass
# ---------------------------------------------------------------------------

@dataclass
class Config:
    url: str = ""
    token: str = ""
    rule_repository: str = "pclint"
    engine_id: str = "pclint"
    severity: str = "MAJOR"
    issue_type: str = "CODE_SMELL"
    report_paths: list[str] = field(default_factory=list)

    def require_server(self) -> None:
        """Raise ConfigError unless a SonarQube server can be contacted."""
        missing = [name for name, value in (("url", self.url), ("token", self.token)) if not value]
        if missing:
            fields = ", ".join(f"'server.{m}'" for m in missing)
            raise ConfigError(
                f"{fields} required to query the rule repository "
                "(or set SONAR_URL / SONAR_TOKEN)."
            )


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Load and validate configuration from a YAML file.

    Environment variables SONAR_URL and SONAR_TOKEN override file values.

    Raises:
        ConfigError: if the file is missing or malformed, or a value is invalid.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `python -m pclint_report init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    return from_mapping(raw)


def from_mapping(raw: dict) -> Config:
    """Build a Config from an already-parsed mapping, applying env overrides."""
    server = raw.get("server") or {}
    pclint = raw.get("pclint") or {}
    defaults = Config()

    report_paths = pclint.get("report_paths") or []
    if isinstance(report_paths, str):
        report_paths = [report_paths]

    config = Config(
        url=str(os.environ.get("SONAR_URL") or server.get("url", "")).strip(),
        token=str(os.environ.get("SONAR_TOKEN") or server.get("token", "")).strip(),
        rule_repository=str(pclint.get("rule_repository", defaults.rule_repository)),
        engine_id=str(pclint.get("engine_id", defaults.engine_id)),
        severity=str(pclint.get("severity", defaults.severity)).upper(),
        issue_type=str(pclint.get("type", defaults.issue_type)).upper(),
        report_paths=[str(p) for p in report_paths],
    )
    _validate(config)
    return config


def _validate(config: Config) -> None:
    """Raise ConfigError if a value is out of range."""
    errors: list[str] = []

    if not config.rule_repository:
        errors.append("  - 'pclint.rule_repository' must not be empty")
    if config.severity not in SEVERITIES:
        errors.append(
            f"  - 'pclint.severity' must be one of {', '.join(SEVERITIES)} (got '{config.severity}')"
        )
    if config.issue_type not in ISSUE_TYPES:
        errors.append(
            f"  - 'pclint.type' must be one of {', '.join(ISSUE_TYPES)} (got '{config.issue_type}')"
        )

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
server:
  # Only needed for `convert --check-rules`
  url: "https://sonar.example.com"
  token: "squ_xxxxxxxxxxxx"       # Generate at: <your-sonar-url>/account/security

pclint:
  rule_repository: "pclint"
  engine_id: "pclint"
  severity: "MAJOR"               # BLOCKER, CRITICAL, MAJOR, MINOR, INFO
  type: "CODE_SMELL"              # BUG, VULNERABILITY, CODE_SMELL
  report_paths:
    - "build/pclint/*.xml"
"""


def generate_template(output_path: str = DEFAULT_CONFIG_PATH) -> None:
    """Write a template pclint-config.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists (to avoid overwriting secrets).
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
