"""SonarQube API client used to look up the rule repository.

Usage:
    client = SonarClient(url="https://sonar.example.com", token="squ_xxx")
    keys   = fetch_rule_keys(client, "pclint")     # {"M8.10", "M2012-1-2-3", ...}
"""

import itertools
import logging
from typing import Any, Iterator

import requests

log = logging.getLogger(__name__)

PAGE_SIZE = 500
RULES_ENDPOINT = "/api/rules/search"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class SonarClientError(Exception):
    """Base exception for all client errors."""


class AuthenticationError(SonarClientError):
    """Raised on HTTP 401: invalid or expired token."""


class NotFoundError(SonarClientError):
    """Raised on HTTP 404: unknown endpoint or resource."""


class NetworkError(SonarClientError):
    """Raised on connection timeout or unreachable server."""


_STATUS_ERRORS: dict[int, tuple[type[SonarClientError], str]] = {
    401: (AuthenticationError, "Authentication failed for {url}, check the token"),
    404: (NotFoundError, "Resource not found: {url}"),
}


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class SonarClient:
    """Read-only access to the paginated search endpoints of a SonarQube server."""

    def __init__(self, url: str, token: str, timeout: int = 30) -> None:
        self.base_url = url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        # token as username, empty password
        self._session.auth = (token, "")

    def iter_pages(self, endpoint: str, params: dict[str, Any], results_key: str) -> Iterator[list[dict]]:
        """Yield the *results_key* list of each page until the total is reached.

        Search endpoints report their size either as ``total`` or as
        ``paging.total``.
        """
        fetched = 0
        for page in itertools.count(1):
            payload = self._fetch(endpoint, {**params, "ps": PAGE_SIZE, "p": page})
            items = payload.get(results_key) or []
            fetched += len(items)
            yield items

            total = payload.get("total", payload.get("paging", {}).get("total", fetched))
            if not items or fetched >= total:
                return

    def get_paginated(self, endpoint: str, params: dict[str, Any], results_key: str) -> list[dict]:
        """Return the results of every page as one list."""
        return [item for page in self.iter_pages(endpoint, params, results_key) for item in page]

    def _fetch(self, endpoint: str, params: dict[str, Any]) -> dict:
        url = self.base_url + endpoint
        log.debug("GET %s page %s", url, params.get("p"))
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(f"Request to '{url}' timed out after {self._timeout}s") from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(f"Unable to reach SonarQube server at '{self.base_url}'") from exc

        if response.status_code in _STATUS_ERRORS:
            error_cls, template = _STATUS_ERRORS[response.status_code]
            raise error_cls(template.format(url=url))
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            raise SonarClientError(
                f"HTTP {response.status_code} from {url}: {response.text[:200]}"
            ) from exc
        return response.json()


# ---------------------------------------------------------------------------
# Rule repository
# ---------------------------------------------------------------------------

def fetch_rule_keys(client: SonarClient, repository: str) -> set[str]:
    """Return the rule keys of *repository* without the ``repository:`` prefix."""
    prefix = f"{repository}:"
    keys: set[str] = set()
    for page in client.iter_pages(RULES_ENDPOINT, {"repositories": repository, "f": "repo"}, "rules"):
        keys.update(rule["key"].removeprefix(prefix) for rule in page)
    log.info("Rule repository '%s' has %d rule(s)", repository, len(keys))
    return keys
