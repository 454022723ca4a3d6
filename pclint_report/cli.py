"""CLI entry point: command definitions using Click.

Commands:
    init          Generate a template config file
    convert       Parse PC-lint XML reports and export the findings as JSON
"""

import functools
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click

from pclint_report import __version__
from pclint_report.config import DEFAULT_CONFIG_PATH, Config, ConfigError


# ---------------------------------------------------------------------------
# Helpers shared by all data commands
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_config(ctx: click.Context) -> Config:
    """Load the config file. The default path may be absent; exits on error."""
    from pclint_report.config import from_mapping, load

    config_path = ctx.obj["config_path"]
    try:
        if config_path == DEFAULT_CONFIG_PATH and not Path(config_path).exists():
            # defaults, still subject to SONAR_URL / SONAR_TOKEN
            return from_mapping({})
        return load(config_path)
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)


def _emit_json(data: Any, ctx: click.Context) -> None:
    """Write JSON to stdout or to the file specified by --output."""
    obj = ctx.obj
    indent = 2 if obj["pretty"] else None
    text = json.dumps(data, indent=indent, ensure_ascii=False)

    output_path: str | None = obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Report written to '{output_path}'", err=True)
    else:
        click.echo(text)


def _handle_errors(func):
    """Decorator that catches config and SonarClient exceptions and exits cleanly."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from pclint_report.client import (
            AuthenticationError,
            NetworkError,
            NotFoundError,
            SonarClientError,
        )

        try:
            return func(*args, **kwargs)
        except ConfigError as exc:
            click.echo(f"Configuration error: {exc}", err=True)
            sys.exit(1)
        except AuthenticationError as exc:
            click.echo(f"Authentication error: {exc}", err=True)
            sys.exit(1)
        except NotFoundError as exc:
            click.echo(f"Not found: {exc}", err=True)
            sys.exit(1)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(1)
        except SonarClientError as exc:
            click.echo(f"SonarQube error: {exc}", err=True)
            sys.exit(1)

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default=DEFAULT_CONFIG_PATH, show_default=True,
              help="Path to the configuration file.")
@click.option("--output", "output_path", default=None,
              help="Write JSON output to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="pclint-report")
@click.pass_context
def cli(ctx: click.Context, config_path: str, output_path: str | None,
        pretty: bool, verbose: bool) -> None:
    """PC-lint report tool: normalize PC-lint XML findings, export as JSON."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["output_path"] = output_path
    ctx.obj["pretty"] = pretty
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default=DEFAULT_CONFIG_PATH, show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template pclint-config.yaml file."""
    from pclint_report.config import generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your report paths and, for rule checks, your server URL and token.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# convert
# ---------------------------------------------------------------------------

@cli.command("convert")
@click.argument("reports", nargs=-1)
@click.option("--format", "output_format", type=click.Choice(["summary", "sonar"]),
              default="summary", show_default=True,
              help="'summary': findings with a per-rule summary; "
                   "'sonar': SonarQube generic issue import format.")
@click.option("--check-rules", is_flag=True, default=False,
              help="Drop findings whose rule is unknown to the SonarQube rule repository.")
@click.pass_context
@_handle_errors
def convert_command(ctx: click.Context, reports: tuple[str, ...],
                    output_format: str, check_rules: bool) -> None:
    """Parse PC-lint XML REPORTS (glob patterns allowed; default: config report_paths)."""
    from pclint_report.parser import import_reports, resolve_report_paths
    from pclint_report.reports.issues import (
        build_generic_import,
        build_issue_report,
        filter_known_rules,
    )
    from pclint_report.sink import UniqueIssueSink

    config = _load_config(ctx)
    patterns = list(reports) or config.report_paths
    if not patterns:
        click.echo("No report given and no 'pclint.report_paths' configured.", err=True)
        sys.exit(1)

    paths = resolve_report_paths(patterns)
    if not paths:
        click.echo(f"No report found for: {', '.join(patterns)}", err=True)
        sys.exit(1)

    sink = UniqueIssueSink()
    processed = import_reports(paths, sink)
    issues = sink.issues

    if ctx.obj["verbose"]:
        click.echo(f"[verbose] {processed}/{len(paths)} report(s) read, {len(issues)} issue(s), "
                   f"{sink.duplicates} duplicate(s) skipped", err=True)

    if check_rules:
        from pclint_report.client import SonarClient, fetch_rule_keys

        config.require_server()
        client = SonarClient(url=config.url, token=config.token)
        issues = filter_known_rules(issues, fetch_rule_keys(client, config.rule_repository))

    if output_format == "sonar":
        report = build_generic_import(issues, config.engine_id, config.severity, config.issue_type)
    else:
        report = build_issue_report(issues, paths)
    _emit_json(report, ctx)
