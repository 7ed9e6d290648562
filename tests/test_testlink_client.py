"""
Unit Tests for the TestLink Client Module.

Covers:
- TestLinkSite: construction, lookups, steps, test case creation,
  requirements, custom fields, attachments, projects (API client mocked).
- Error conversion from the TestLink client library.
- Model helpers: create responses, requirement grouping.
"""

from __future__ import annotations

import xmlrpc.client
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from testlink.testlinkerrors import TLConnectionError, TLResponseError

from testlink_testcase.testlink_client import (
    ActionOnDuplicate,
    Attachment,
    ExecutionType,
    Requirement,
    TestCase,
    TestCaseStep,
    TestLinkSite,
    TestLinkSiteError,
    TestProject,
)
from testlink_testcase.testlink_client.models import requirements_to_api

from tests.conftest import TESTLINK_DEVKEY, TESTLINK_URL


class _ResponseError(TLResponseError):
    """TLResponseError with a given code, without the client's message formatting."""

    def __init__(self, message: str, code: object = None) -> None:
        Exception.__init__(self, message)
        self.code = code


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestTestLinkSiteInit:
    """Tests for TestLinkSite construction."""

    def test_client_created_with_url_and_devkey(self) -> None:
        """The factory receives the URL and developer key."""
        factory = MagicMock()
        site = TestLinkSite(TESTLINK_URL, TESTLINK_DEVKEY, api_factory=factory)

        factory.assert_called_once_with(TESTLINK_URL, TESTLINK_DEVKEY)
        assert site.api is factory.return_value

    @pytest.mark.parametrize("url", ["", "localhost/testlink", "ftp://host/xmlrpc.php", "http://"])
    def test_malformed_url(self, url: str) -> None:
        """Malformed URLs are rejected before creating the client."""
        factory = MagicMock()
        with pytest.raises(TestLinkSiteError, match="Connection problems with TestLink"):
            TestLinkSite(url, TESTLINK_DEVKEY, api_factory=factory)
        factory.assert_not_called()

    def test_client_creation_error(self) -> None:
        """Client construction errors become TestLinkSiteError."""
        factory = MagicMock(side_effect=TLConnectionError("refused"))
        with pytest.raises(TestLinkSiteError, match="Internal error when creating TestLink API"):
            TestLinkSite(TESTLINK_URL, TESTLINK_DEVKEY, api_factory=factory)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


class TestLookups:
    """Tests for ping, project and suite lookups."""

    def test_ping(self, site: TestLinkSite, api: MagicMock) -> None:
        """Ping returns the server answer."""
        assert site.ping() == "Hello!"
        api.ping.assert_called_once_with()

    def test_get_test_projects(self, site: TestLinkSite) -> None:
        """All projects are converted to TestProject."""
        projects = site.get_test_projects()
        assert [p.name for p in projects] == ["p1", "p2"]
        assert projects[0] == TestProject(id=1, name="p1", prefix="P1", notes="First project")

    def test_get_test_projects_empty_answer(self, site: TestLinkSite, api: MagicMock) -> None:
        """A non-list answer means no projects."""
        api.getProjects.return_value = ""
        assert site.get_test_projects() == []

    def test_get_test_project(self, site: TestLinkSite) -> None:
        """A project is found by exact name."""
        project = site.get_test_project("p2")
        assert project is not None
        assert project.id == 2
        assert project.prefix == "P2"

    def test_get_test_project_not_found(self, site: TestLinkSite) -> None:
        """Unknown or differently cased names yield None."""
        assert site.get_test_project("unknown") is None
        assert site.get_test_project("P1") is None

    def test_get_test_suite(self, site: TestLinkSite, api: MagicMock) -> None:
        """A first-level suite is found by exact name."""
        suite = site.get_test_suite(1, "s2")

        api.getFirstLevelTestSuitesForTestProject.assert_called_once_with(1)
        assert suite is not None
        assert suite.id == 11
        assert suite.parent_id == 1

    def test_get_test_suite_not_found(self, site: TestLinkSite) -> None:
        """Unknown suite names yield None."""
        assert site.get_test_suite(1, "missing") is None

    def test_get_test_suite_project_without_suites(
        self, site: TestLinkSite, api: MagicMock
    ) -> None:
        """The 'no suites' response code yields None."""
        api.getFirstLevelTestSuitesForTestProject.side_effect = _ResponseError(
            "no test suites", code=7008
        )
        assert site.get_test_suite(1, "s1") is None

    def test_get_test_suite_other_error(self, site: TestLinkSite, api: MagicMock) -> None:
        """Other response errors propagate as TestLinkSiteError."""
        api.getFirstLevelTestSuitesForTestProject.side_effect = _ResponseError(
            "invalid project", code=7000
        )
        with pytest.raises(TestLinkSiteError) as exc_info:
            site.get_test_suite(99, "s1")
        assert exc_info.value.code == 7000


class TestErrorConversion:
    """Tests for conversion of client errors."""

    def test_connection_error(self, site: TestLinkSite, api: MagicMock) -> None:
        """Connection errors become TestLinkSiteError."""
        api.getProjects.side_effect = TLConnectionError("server unreachable")
        with pytest.raises(TestLinkSiteError, match="server unreachable"):
            site.get_test_project("p1")

    def test_xmlrpc_fault(self, site: TestLinkSite, api: MagicMock) -> None:
        """XML-RPC faults become TestLinkSiteError."""
        api.ping.side_effect = xmlrpc.client.Fault(1, "boom")
        with pytest.raises(TestLinkSiteError):
            site.ping()

    def test_socket_error(self, site: TestLinkSite, api: MagicMock) -> None:
        """OS-level errors become TestLinkSiteError."""
        api.ping.side_effect = ConnectionRefusedError("refused")
        with pytest.raises(TestLinkSiteError, match="refused"):
            site.ping()


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


class TestCreateSteps:
    """Tests for step conversion."""

    def test_create_steps(self, site: TestLinkSite) -> None:
        """Each action/expected pair becomes a numbered manual step."""
        steps = site.create_steps(
            ["1. Open application", "2. Login"],
            ["1. Application starts", "2. User is authenticated"],
        )

        assert len(steps) == 2
        assert steps[0] == TestCaseStep(
            number=1,
            actions="1. Open application",
            expected_results="1. Application starts",
            execution_type=ExecutionType.MANUAL,
        )
        assert steps[1].number == 2

    def test_create_steps_empty(self, site: TestLinkSite) -> None:
        """Empty inputs give no steps."""
        assert site.create_steps([], []) == []

    @pytest.mark.parametrize(
        "actions, expected",
        [(None, ["a"]), (["a"], None), (None, None)],
    )
    def test_create_steps_null_input(self, site: TestLinkSite, actions, expected) -> None:
        """None inputs are rejected."""
        with pytest.raises(TestLinkSiteError, match="Input can not be null"):
            site.create_steps(actions, expected)

    def test_create_steps_size_mismatch(self, site: TestLinkSite) -> None:
        """Arrays of different sizes are rejected."""
        with pytest.raises(TestLinkSiteError, match="Input must have same size"):
            site.create_steps(["a", "b"], ["only one"])

    def test_create_steps_from_pairs(self, site: TestLinkSite) -> None:
        """Pairs give the same steps as parallel lists."""
        steps = site.create_steps_from_pairs([("Login", "Logged in"), ("Logout", "Logged out")])
        assert [s.number for s in steps] == [1, 2]
        assert steps[1].actions == "Logout"
        assert steps[1].expected_results == "Logged out"

    def test_create_steps_from_invalid_pair(self, site: TestLinkSite) -> None:
        """A pair without exactly two items is rejected."""
        with pytest.raises(TestLinkSiteError, match="Step 2"):
            site.create_steps_from_pairs([("a", "b"), ("c",)])

    def test_step_api_dict(self) -> None:
        """Steps serialize to the createTestCase step structure."""
        step = TestCaseStep(number=3, actions="act", expected_results="exp")
        assert step.to_api_dict() == {
            "step_number": 3,
            "actions": "act",
            "expected_results": "exp",
            "execution_type": 1,
        }


# ---------------------------------------------------------------------------
# Test Cases
# ---------------------------------------------------------------------------


class TestCreateTestCase:
    """Tests for test case creation."""

    def test_create_test_case_with_steps(self, site: TestLinkSite, api: MagicMock) -> None:
        """The client receives positional and optional arguments."""
        project = TestProject(id=1, name="p1", prefix="P1")
        steps = site.create_steps(["act"], ["exp"])

        test_case = site.create_test_case_with_steps(
            "tests.test_login.TestLogin",
            10,
            project,
            "admin",
            "Exported Unit Test",
            steps,
            preconditions="No preconditions for this test",
        )

        api.createTestCase.assert_called_once_with(
            "tests.test_login.TestLogin",
            10,
            1,
            "admin",
            "Exported Unit Test",
            steps=[step.to_api_dict() for step in steps],
            preconditions="No preconditions for this test",
            importance=2,
            executiontype=ExecutionType.AUTOMATED.value,
            checkduplicatedname=1,
            actiononduplicatedname=ActionOnDuplicate.CREATE_NEW_VERSION.value,
        )
        assert test_case.id == 100
        assert test_case.external_id == "7"
        assert test_case.full_external_id == "P1-7"
        assert test_case.version == 2
        assert test_case.test_project_id == 1

    def test_create_test_case_order_and_internal_id(
        self, site: TestLinkSite, api: MagicMock
    ) -> None:
        """Order and internal id are only sent when given."""
        project = TestProject(id=1, name="p1", prefix="P1")
        site.create_test_case_with_steps(
            "name", 10, project, "admin", "summary", [],
            order=5, internal_id=9, check_duplicated_name=False,
            action_on_duplicated_name=ActionOnDuplicate.BLOCK,
        )

        kwargs = api.createTestCase.call_args.kwargs
        assert kwargs["order"] == 5
        assert kwargs["internalid"] == 9
        assert kwargs["checkduplicatedname"] == 0
        assert kwargs["actiononduplicatedname"] == "block"

    def test_from_create_response_without_prefix(self) -> None:
        """Without a project prefix the external id is used as is."""
        response = {"id": "5", "additionalInfo": {"external_id": "3"}}
        test_case = TestCase.from_create_response(
            response, "name", TestProject(id=1, name="p1")
        )
        assert test_case.id == 5
        assert test_case.full_external_id == "3"
        assert test_case.version == 1


class TestRequirements:
    """Tests for requirement linking."""

    def test_requirements_grouped_by_srs(self) -> None:
        """Requirements are grouped per SRS in first-seen order."""
        requirements = [
            Requirement(id=12, req_spec_id=175),
            Requirement(id=30, req_spec_id=200),
            Requirement(id=13, req_spec_id=175),
        ]
        assert requirements_to_api(requirements) == [
            {"req_spec": 175, "requirements": [12, 13]},
            {"req_spec": 200, "requirements": [30]},
        ]

    def test_assign_requirements(self, site: TestLinkSite, api: MagicMock) -> None:
        """assignRequirements uses the full external id and project id."""
        test_case = TestCase(id=100, name="n", test_project_id=1, external_id="7", full_external_id="P1-7")
        site.assign_requirements(test_case, [Requirement(id=12, req_spec_id=175)])

        api.assignRequirements.assert_called_once_with(
            "P1-7", 1, [{"req_spec": 175, "requirements": [12]}]
        )


class TestCustomFields:
    """Tests for custom field access."""

    def test_get_custom_field(self, site: TestLinkSite, api: MagicMock) -> None:
        """The design value is read with full details."""
        api.getTestCaseCustomFieldDesignValue.return_value = {
            "id": "4", "name": "Python Class", "value": "tests.test_login.TestLogin",
        }
        field = site.get_custom_field(1, "P1-7", "Python Class", 2)

        api.getTestCaseCustomFieldDesignValue.assert_called_once_with(
            "P1-7", 2, 1, "Python Class", "full"
        )
        assert field.id == 4
        assert field.value == "tests.test_login.TestLogin"

    def test_get_custom_field_simple_value(self, site: TestLinkSite, api: MagicMock) -> None:
        """A bare value answer is wrapped in a CustomField."""
        api.getTestCaseCustomFieldDesignValue.return_value = "value"
        field = site.get_custom_field(1, "P1-7", "Python Class", 1)
        assert field.name == "Python Class"
        assert field.value == "value"

    def test_update_custom_fields(self, site: TestLinkSite, api: MagicMock) -> None:
        """Custom fields are written on the test case version."""
        test_case = TestCase(id=100, name="n", test_project_id=1, full_external_id="P1-7", version=2)
        site.update_custom_fields(test_case, {"Python Class": "tests.Test"})

        api.updateTestCaseCustomFieldDesignValue.assert_called_once_with(
            "P1-7", 2, 1, {"Python Class": "tests.Test"}
        )
        assert test_case.custom_fields == {"Python Class": "tests.Test"}

    def test_update_custom_fields_failure(self, site: TestLinkSite, api: MagicMock) -> None:
        """A failure status is raised and the local values stay unchanged."""
        api.updateTestCaseCustomFieldDesignValue.return_value = [
            {"status": False, "message": "denied"}
        ]
        test_case = TestCase(id=100, name="n", test_project_id=1, full_external_id="P1-7", version=2)

        with pytest.raises(TestLinkSiteError, match="denied"):
            site.update_custom_fields(test_case, {"Python Class": "tests.Test"})
        assert test_case.custom_fields == {}


# ---------------------------------------------------------------------------
# Attachments & Projects
# ---------------------------------------------------------------------------


class TestAttachments:
    """Tests for execution attachment upload."""

    def test_upload_attachment(self, site: TestLinkSite, api: MagicMock, tmp_path: Path) -> None:
        """The opened file and metadata are passed to the client."""
        image = tmp_path / "image.jpg"
        image.write_bytes(b"\xff\xd8\xff")
        api.uploadExecutionAttachment.return_value = {
            "fk_id": "42", "fk_table": "executions", "title": "Screenshot",
            "description": "", "file_name": "image.jpg", "file_type": "image/jpeg",
        }

        attachment = site.upload_attachment(image, 42, "Screenshot", file_type="image/jpeg")

        args, kwargs = api.uploadExecutionAttachment.call_args
        assert args[0].name == str(image)
        assert args[1:] == (42, "Screenshot", "")
        assert kwargs == {"filetype": "image/jpeg"}
        assert args[0].closed
        assert attachment == Attachment(
            execution_id=42, file_name="image.jpg", file_type="image/jpeg", title="Screenshot"
        )

    def test_upload_missing_file(self, site: TestLinkSite, api: MagicMock, tmp_path: Path) -> None:
        """An unreadable file is reported without calling the server."""
        with pytest.raises(TestLinkSiteError, match="Cannot read attachment"):
            site.upload_attachment(tmp_path / "missing.png", 42, "Missing")
        api.uploadExecutionAttachment.assert_not_called()


class TestCreateProject:
    """Tests for project creation."""

    def test_create_new_test_project(self, site: TestLinkSite, api: MagicMock) -> None:
        """Project flags are sent as integer options."""
        api.createTestProject.return_value = [
            {"operation": "createTestProject", "status": True, "id": "5", "message": "Success!"}
        ]

        project = site.create_new_test_project(
            "MonProjetTest", "MPT", notes="Created via API", enable_inventory=False
        )

        api.createTestProject.assert_called_once_with(
            "MonProjetTest",
            "MPT",
            notes="Created via API",
            active=1,
            public=1,
            options={
                "requirementsEnabled": 1,
                "testPriorityEnabled": 1,
                "automationEnabled": 1,
                "inventoryEnabled": 0,
            },
        )
        assert project == TestProject(id=5, name="MonProjetTest", prefix="MPT", notes="Created via API")

    def test_create_project_duplicate(self, site: TestLinkSite, api: MagicMock) -> None:
        """Server refusals are raised."""
        api.createTestProject.side_effect = _ResponseError("prefix already exists", code=7001)
        with pytest.raises(TestLinkSiteError, match="prefix already exists"):
            site.create_new_test_project("p1", "P1")
