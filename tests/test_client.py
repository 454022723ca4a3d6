"""Tests for pclint_report/client.py"""

import pytest
import requests

from pclint_report.client import (
    AuthenticationError,
    NetworkError,
    NotFoundError,
    SonarClient,
    SonarClientError,
    fetch_rule_keys,
)

BASE = "https://sonar.example.com"
RULES = f"{BASE}/api/rules/search"


@pytest.fixture
def client() -> SonarClient:
    return SonarClient(url=BASE, token="squ_test")


def _rules_page(keys: list[str], total: int, page: int = 1) -> dict:
    return {"total": total, "p": page, "ps": 500, "rules": [{"key": k} for k in keys]}


# ---------------------------------------------------------------------------
# get_paginated() — HTTP error codes
# ---------------------------------------------------------------------------

def test_sends_auth_header(client, requests_mock):
    adapter = requests_mock.get(RULES, json=_rules_page([], total=0))
    client.get_paginated("/api/rules/search", {}, results_key="rules")
    assert adapter.last_request.headers.get("Authorization") is not None


def test_401_raises_authentication_error(client, requests_mock):
    requests_mock.get(RULES, status_code=401)
    with pytest.raises(AuthenticationError):
        client.get_paginated("/api/rules/search", {}, results_key="rules")


def test_404_raises_not_found_error(client, requests_mock):
    requests_mock.get(RULES, status_code=404)
    with pytest.raises(NotFoundError):
        client.get_paginated("/api/rules/search", {}, results_key="rules")


def test_500_raises_sonar_client_error(client, requests_mock):
    requests_mock.get(RULES, status_code=500, text="Internal Server Error")
    with pytest.raises(SonarClientError, match="500"):
        client.get_paginated("/api/rules/search", {}, results_key="rules")


# ---------------------------------------------------------------------------
# get_paginated() — network errors
# ---------------------------------------------------------------------------

def test_timeout_raises_network_error(client, requests_mock):
    requests_mock.get(RULES, exc=requests.exceptions.Timeout)
    with pytest.raises(NetworkError, match="timed out"):
        client.get_paginated("/api/rules/search", {}, results_key="rules")


def test_connection_error_raises_network_error(client, requests_mock):
    requests_mock.get(RULES, exc=requests.exceptions.ConnectionError)
    with pytest.raises(NetworkError, match="Unable to reach"):
        client.get_paginated("/api/rules/search", {}, results_key="rules")


# ---------------------------------------------------------------------------
# get_paginated() — pagination logic
# ---------------------------------------------------------------------------

def test_paginated_multiple_pages(client, requests_mock):
    responses = [
        {"json": _rules_page([f"r{i}" for i in range(1, 501)], total=620, page=1)},
        {"json": _rules_page([f"r{i}" for i in range(501, 621)], total=620, page=2)},
    ]
    requests_mock.get(RULES, responses)
    results = client.get_paginated("/api/rules/search", {}, results_key="rules")
    assert len(results) == 620
    assert results[-1]["key"] == "r620"


def test_paginated_uses_paging_block(client, requests_mock):
    requests_mock.get(
        f"{BASE}/api/issues/search",
        json={"issues": [{"key": "i1"}], "paging": {"pageIndex": 1, "pageSize": 500, "total": 1}},
    )
    results = client.get_paginated("/api/issues/search", {}, results_key="issues")
    assert results == [{"key": "i1"}]


# ---------------------------------------------------------------------------
# fetch_rule_keys()
# ---------------------------------------------------------------------------

def test_fetch_rule_keys_strips_repository_prefix(client, requests_mock):
    adapter = requests_mock.get(
        RULES, json=_rules_page(["pclint:534", "pclint:M8.10", "M2012-1.1"], total=3),
    )
    keys = fetch_rule_keys(client, "pclint")
    assert keys == {"534", "M8.10", "M2012-1.1"}
    assert adapter.last_request.qs["repositories"] == ["pclint"]


def test_iter_pages_yields_one_list_per_page(client, requests_mock):
    responses = [
        {"json": _rules_page([f"r{i}" for i in range(1, 501)], total=501, page=1)},
        {"json": _rules_page(["r501"], total=501, page=2)},
    ]
    adapter = requests_mock.get(RULES, responses)
    pages = list(client.iter_pages("/api/rules/search", {}, results_key="rules"))
    assert [len(p) for p in pages] == [500, 1]
    assert adapter.call_count == 2
    assert adapter.last_request.qs["p"] == ["2"]
