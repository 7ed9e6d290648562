"""
Root conftest.py — Shared Pytest fixtures.

Provides fixtures for:
- A MagicMock standing in for the TestLink XML-RPC client, preloaded with
  realistic responses (projects, suites, created test case).
- A TestLinkSite wired to that mock.
- A TestLinkSite over a real TestlinkAPIClient whose server calls are
  answered by FakeTestLinkServer.
- Online/offline TestLinkSettings and a clean process-wide settings state.
"""

from __future__ import annotations

from typing import Any, Dict, Generator, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
from testlink import TestlinkAPIClient

from testlink_testcase.config import settings as settings_module
from testlink_testcase.config.settings import ENV_CONFIG_FILE, ENV_VARS, TestLinkSettings
from testlink_testcase.testlink_client import TestLinkSite

TESTLINK_URL = "http://localhost/testlink/lib/api/xmlrpc/v1/xmlrpc.php"
TESTLINK_DEVKEY = "57f7cf6a3319d271bb83bbf378ef1e6e"


def pytest_configure(config: pytest.Config) -> None:
    """Register the suite's own markers."""
    config.addinivalue_line(
        "markers",
        "functional: Annotated example tests, exported when TestLink is configured",
    )


# ---------------------------------------------------------------------------
# TestLink API Responses
# ---------------------------------------------------------------------------


@pytest.fixture
def projects_response() -> List[Dict[str, Any]]:
    """Answer of getProjects."""
    return [
        {"id": "1", "name": "p1", "prefix": "P1", "notes": "First project", "active": "1"},
        {"id": "2", "name": "p2", "prefix": "P2", "notes": "", "active": "1"},
    ]


@pytest.fixture
def suites_response() -> List[Dict[str, Any]]:
    """Answer of getFirstLevelTestSuitesForTestProject for project 1."""
    return [
        {"id": "10", "name": "s1", "parent_id": "1"},
        {"id": "11", "name": "s2", "parent_id": "1"},
    ]


@pytest.fixture
def create_test_case_response() -> List[Dict[str, Any]]:
    """Answer of createTestCase."""
    return [
        {
            "operation": "createTestCase",
            "status": True,
            "id": "100",
            "additionalInfo": {
                "id": "100",
                "external_id": "7",
                "status_ok": 1,
                "msg": "ok",
                "new_name": "",
                "version_number": 2,
                "has_duplicate": True,
            },
            "message": "Success!",
        }
    ]


@pytest.fixture
def api(
    projects_response: List[Dict[str, Any]],
    suites_response: List[Dict[str, Any]],
    create_test_case_response: List[Dict[str, Any]],
) -> MagicMock:
    """Mocked TestlinkAPIClient."""
    client = MagicMock(name="TestlinkAPIClient")
    client.ping.return_value = "Hello!"
    client.getProjects.return_value = projects_response
    client.getFirstLevelTestSuitesForTestProject.return_value = suites_response
    client.createTestCase.return_value = create_test_case_response
    client.assignRequirements.return_value = [
        {"operation": "assignRequirements", "status": True}
    ]
    client.updateTestCaseCustomFieldDesignValue.return_value = ""
    return client


class FakeTestLinkServer:
    """
    Stand-in for the XML-RPC transport of a real TestlinkAPIClient.

    Installed as the client's ``_callServer`` so argument checking and
    response checking of the client library still run. Records each call as
    ``(method, args)`` and answers from ``responses``.
    """

    def __init__(self, responses: Dict[str, Any]) -> None:
        self.responses = responses
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def __call__(self, method: str, args: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append((method, dict(args or {})))
        return self.responses.get(method, "")

    def last_args(self, method: str) -> Dict[str, Any]:
        for name, args in reversed(self.calls):
            if name == method:
                return args
        raise AssertionError(f"{method} was not called")


@pytest.fixture
def tl_server(
    projects_response: List[Dict[str, Any]],
    suites_response: List[Dict[str, Any]],
    create_test_case_response: List[Dict[str, Any]],
) -> FakeTestLinkServer:
    """Canned server answers for the real client."""
    return FakeTestLinkServer(
        {
            "getProjects": projects_response,
            "getFirstLevelTestSuitesForTestProject": suites_response,
            "createTestCase": create_test_case_response,
            "assignRequirements": [
                {"operation": "assignRequirements", "status": True, "msg": "ok"}
            ],
        }
    )


@pytest.fixture
def real_site(monkeypatch: pytest.MonkeyPatch, tl_server: FakeTestLinkServer) -> TestLinkSite:
    """TestLinkSite over a real TestlinkAPIClient whose transport is faked."""
    client = TestlinkAPIClient(TESTLINK_URL, TESTLINK_DEVKEY)
    monkeypatch.setattr(TestlinkAPIClient, "_callServer", tl_server)
    return TestLinkSite(TESTLINK_URL, TESTLINK_DEVKEY, api_factory=lambda url, devkey: client)


@pytest.fixture
def site(api: MagicMock) -> TestLinkSite:
    """TestLinkSite backed by the mocked client."""
    return TestLinkSite(TESTLINK_URL, TESTLINK_DEVKEY, api_factory=lambda url, devkey: api)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def online_settings() -> TestLinkSettings:
    """Settings with a URL and developer key."""
    return TestLinkSettings(url=TESTLINK_URL, devkey=TESTLINK_DEVKEY)


@pytest.fixture
def offline_settings() -> TestLinkSettings:
    """Settings without connection parameters."""
    return TestLinkSettings()


@pytest.fixture
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Remove TESTLINK_* variables and any process-wide settings for one test."""
    for variables in ENV_VARS.values():
        for variable in variables:
            monkeypatch.delenv(variable, raising=False)
    monkeypatch.delenv(ENV_CONFIG_FILE, raising=False)

    previous = settings_module._active_settings
    settings_module.configure(None)
    yield
    settings_module.configure(previous)
