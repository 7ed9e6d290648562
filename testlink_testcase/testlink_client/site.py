"""
TestLink Site Wrapper.

Provides a narrow wrapper around the TestLink XML-RPC client
(TestLink-API-Python-client) exposing only the calls the test case
integration needs:
- Connectivity check (ping).
- Project and first-level suite lookup by name.
- Conversion of annotated steps into TestLink step structures.
- Test case creation, requirement linking and custom fields.
- Execution attachment upload and project creation.

Not meant to be used directly by test authors; TestLinkTestCase and the
pytest plugin drive it.
"""

from __future__ import annotations

import xmlrpc.client
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from loguru import logger
from testlink import TestlinkAPIClient
from testlink.testlinkerrors import TestLinkError, TLResponseError

from testlink_testcase.testlink_client.models import (
    ActionOnDuplicate,
    Attachment,
    CustomField,
    ExecutionType,
    Requirement,
    TestCase,
    TestCaseStep,
    TestImportance,
    TestProject,
    TestSuite,
    requirements_to_api,
)

# Remote error code answered when a project has no test suites
NO_TEST_SUITES_CODE = 7008


class TestLinkSiteError(Exception):
    """Raised when a TestLink operation fails."""

    __test__ = False

    def __init__(self, message: str, code: Optional[Any] = None) -> None:
        super().__init__(message)
        self.code = code


class TestLinkSite:
    """
    Wrapper that represents one TestLink instance.

    URL format is ``http://<server>:<port>/testlink/lib/api/xmlrpc/v1/xmlrpc.php``.

    Usage::

        site = TestLinkSite(url, devkey)
        project = site.get_test_project("p1")
        suite = site.get_test_suite(project.id, "s1")
    """

    __test__ = False

    def __init__(
        self,
        url: str,
        devkey: str,
        api_factory: Callable[[str, str], Any] = TestlinkAPIClient,
    ) -> None:
        """
        Create the TestLink API client.

        Args:
            url: Address of the TestLink XML-RPC endpoint.
            devkey: Developer key of the TestLink user.
            api_factory: Callable building the client from (url, devkey).

        Raises:
            TestLinkSiteError: If the URL is malformed or the client cannot be created.
        """
        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            logger.error(
                f"Impossible to establish a connection to the TestLink server: "
                f"malformed URL '{url}'"
            )
            raise TestLinkSiteError(
                f"Connection problems with TestLink: malformed URL '{url}'"
            )

        try:
            self._api = api_factory(url, devkey)
        except (TestLinkError, OSError) as e:
            logger.error(f"Impossible to instantiate TestLink API: {e}")
            raise TestLinkSiteError(
                f"Internal error when creating TestLink API: {e}"
            ) from e

        self.url = url
        logger.info(f"TestLinkSite initialized — url={url}")

    @property
    def api(self) -> Any:
        """The underlying TestLink API client."""
        return self._api

    def _call(self, method: str, *args: Any, **kwargs: Any) -> Any:
        """
        Invoke a TestLink API method, converting client errors.

        Raises:
            TestLinkSiteError: If the call fails for any client, transport or I/O reason.
        """
        logger.debug(f"TestLink API {method}")
        try:
            return getattr(self._api, method)(*args, **kwargs)
        except TLResponseError as e:
            code = getattr(e, "code", None)
            logger.error(f"TestLink API {method} failed: {e} (code={code})")
            raise TestLinkSiteError(f"TestLink {method} failed: {e}", code=code) from e
        except (TestLinkError, xmlrpc.client.Error, OSError) as e:
            logger.error(f"TestLink API {method} error: {e}")
            raise TestLinkSiteError(f"TestLink {method} failed: {e}") from e

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def ping(self) -> str:
        """Ping the TestLink server and return its answer."""
        answer = self._call("ping")
        logger.debug(f"Answer to ping is: {answer}")
        return answer

    def get_test_projects(self) -> List[TestProject]:
        """Return all test projects visible to the developer key."""
        response = self._call("getProjects")
        if not isinstance(response, list):
            return []
        return [TestProject.from_api(item) for item in response]

    def get_test_project(self, test_project_name: str) -> Optional[TestProject]:
        """
        Given a test project name returns its associated object.

        Args:
            test_project_name: Exact name of the test project.

        Returns:
            The TestProject, or None if no project has that name.
        """
        for test_project in self.get_test_projects():
            if test_project.name == test_project_name:
                return test_project
        return None

    def get_test_suite(
        self, test_project_id: int, test_suite_name: str
    ) -> Optional[TestSuite]:
        """
        Given a test suite name returns its associated object.

        Only first-level suites of the project are searched.

        Args:
            test_project_id: Id of the owning test project.
            test_suite_name: Exact name of the test suite.

        Returns:
            The TestSuite, or None if no first-level suite has that name.
        """
        try:
            response = self._call(
                "getFirstLevelTestSuitesForTestProject", test_project_id
            )
        except TestLinkSiteError as e:
            if str(e.code) == str(NO_TEST_SUITES_CODE):
                logger.warning(f"Test project {test_project_id} has no test suites")
                return None
            raise

        for item in response or []:
            test_suite = TestSuite.from_api(item)
            if test_suite.name == test_suite_name:
                return test_suite
        return None

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def create_steps(
        self,
        actions: Optional[Sequence[str]],
        expected_results: Optional[Sequence[str]],
    ) -> List[TestCaseStep]:
        """
        Convert parallel lists of actions and expected results into steps.

        Args:
            actions: Step actions.
            expected_results: Expected result for each action.

        Returns:
            Manual TestCaseSteps numbered from 1.

        Raises:
            TestLinkSiteError: If an input is None or the sizes differ.
        """
        if actions is None or expected_results is None:
            logger.error("Error in test steps annotation: input can not be null")
            raise TestLinkSiteError("Input can not be null")

        if len(actions) != len(expected_results):
            logger.error(
                f"Error in test steps annotation: {len(actions)} actions but "
                f"{len(expected_results)} expected results"
            )
            raise TestLinkSiteError("Input must have same size")

        return [
            TestCaseStep(number=number, actions=action, expected_results=expected)
            for number, (action, expected) in enumerate(
                zip(actions, expected_results), start=1
            )
        ]

    def create_steps_from_pairs(
        self, test_steps: Sequence[Sequence[str]]
    ) -> List[TestCaseStep]:
        """
        Convert (action, expected result) pairs into steps.

        Raises:
            TestLinkSiteError: If a pair does not hold exactly two items.
        """
        for index, pair in enumerate(test_steps):
            if len(pair) != 2:
                logger.error(f"Error in test steps: step {index + 1} is not a pair")
                raise TestLinkSiteError(
                    f"Step {index + 1} must be an (action, expected result) pair"
                )
        return self.create_steps(
            [pair[0] for pair in test_steps],
            [pair[1] for pair in test_steps],
        )

    # ------------------------------------------------------------------
    # Test cases
    # ------------------------------------------------------------------

    def create_test_case_with_steps(
        self,
        test_case_name: str,
        test_suite_id: int,
        test_project: TestProject,
        author_login: str,
        summary: str,
        steps: Sequence[TestCaseStep],
        preconditions: str = "",
        importance: TestImportance = TestImportance.MEDIUM,
        execution_type: ExecutionType = ExecutionType.AUTOMATED,
        order: Optional[int] = None,
        internal_id: Optional[int] = None,
        check_duplicated_name: bool = True,
        action_on_duplicated_name: ActionOnDuplicate = ActionOnDuplicate.CREATE_NEW_VERSION,
    ) -> TestCase:
        """
        Create a test case on TestLink.

        Args:
            test_case_name: Name of the test case.
            test_suite_id: Id of the suite receiving the test case.
            test_project: Owning test project.
            author_login: Login of the author.
            summary: Test case summary.
            steps: Manual test steps.
            preconditions: Preconditions description.
            importance: Importance level.
            execution_type: Manual or automated.
            order: Order inside the suite.
            internal_id: Internal id for the test case.
            check_duplicated_name: Whether the server checks duplicate names.
            action_on_duplicated_name: What to do on a duplicate name.

        Returns:
            The created (or newly versioned) TestCase.
        """
        logger.info(
            f"Creating test case '{test_case_name}' in suite {test_suite_id} "
            f"with {len(steps)} steps"
        )
        optional: Dict[str, Any] = {
            "preconditions": preconditions,
            "importance": importance.value,
            "executiontype": execution_type.value,
            "checkduplicatedname": 1 if check_duplicated_name else 0,
            "actiononduplicatedname": action_on_duplicated_name.value,
        }
        if order is not None:
            optional["order"] = order
        if internal_id is not None:
            optional["internalid"] = internal_id

        # The client takes five positional args; steps are optional
        response = self._call(
            "createTestCase",
            test_case_name,
            test_suite_id,
            test_project.id,
            author_login,
            summary,
            steps=[step.to_api_dict() for step in steps],
            **optional,
        )
        test_case = TestCase.from_create_response(response, test_case_name, test_project)
        logger.info(
            f"Test case created: id={test_case.id}, "
            f"external_id={test_case.full_external_id}, version={test_case.version}"
        )
        return test_case

    def assign_requirements(
        self, test_case: TestCase, requirements: Sequence[Requirement]
    ) -> Any:
        """
        Given a test case and list of requirements, binds them together.

        Args:
            test_case: The test case receiving the requirements.
            requirements: Requirements to link.
        """
        logger.info(
            f"Assigning {len(requirements)} requirements to {test_case.full_external_id}"
        )
        return self._call(
            "assignRequirements",
            test_case.full_external_id,
            test_case.test_project_id,
            requirements_to_api(requirements),
        )

    def get_custom_field(
        self,
        test_project_id: int,
        test_case_external_id: str,
        custom_field_name: str,
        version_number: int,
    ) -> CustomField:
        """Return the design value of a custom field of a test case."""
        response = self._call(
            "getTestCaseCustomFieldDesignValue",
            test_case_external_id,
            version_number,
            test_project_id,
            custom_field_name,
            "full",
        )
        return CustomField.from_api(response, custom_field_name)

    def update_custom_fields(
        self, test_case: TestCase, custom_fields: Dict[str, str]
    ) -> Any:
        """Set design-time custom field values on a test case version."""
        logger.debug(
            f"Updating custom fields of {test_case.full_external_id}: {custom_fields}"
        )
        response = self._call(
            "updateTestCaseCustomFieldDesignValue",
            test_case.full_external_id,
            test_case.version,
            test_case.test_project_id,
            custom_fields,
        )
        self._check_status("updateTestCaseCustomFieldDesignValue", response)
        test_case.custom_fields.update(custom_fields)
        return response

    @staticmethod
    def _check_status(method: str, response: Any) -> None:
        """
        Raise when a response the client let through reports a failure.

        A successful update answers with an empty value; failures come back
        as ``[{"status": False, ...}]`` or ``[{"code": ..., "message": ...}]``.

        Raises:
            TestLinkSiteError: If the response carries a failure status or code.
        """
        results = response if isinstance(response, list) else [response]
        for result in results:
            if not isinstance(result, dict):
                continue
            if result.get("status") is False or "code" in result:
                message = result.get("message") or "operation failed"
                code = result.get("code")
                logger.error(f"TestLink API {method} failed: {message} (code={code})")
                raise TestLinkSiteError(f"TestLink {method} failed: {message}", code=code)

    # ------------------------------------------------------------------
    # Attachments & projects
    # ------------------------------------------------------------------

    def upload_attachment(
        self,
        attachment_file: str | Path,
        execution_id: int,
        title: str,
        description: str = "",
        file_name: Optional[str] = None,
        file_type: Optional[str] = None,
    ) -> Attachment:
        """
        Upload an attachment to a test case execution.

        The client reads and base64-encodes the file; file name and MIME type
        default to the ones it derives from the file.

        Args:
            attachment_file: Path of the file to attach.
            execution_id: Id of the execution.
            title: Attachment title.
            description: Attachment description.
            file_name: File name shown by TestLink.
            file_type: MIME type, e.g. ``image/jpeg``.

        Raises:
            TestLinkSiteError: If the file cannot be read or the upload fails.
        """
        optional: Dict[str, Any] = {}
        if file_name:
            optional["filename"] = file_name
        if file_type:
            optional["filetype"] = file_type

        path = Path(attachment_file)
        try:
            handle = path.open("rb")
        except OSError as e:
            logger.error(
                f"Error when trying to read an attachment to be added to a test case: {e}"
            )
            raise TestLinkSiteError(f"Cannot read attachment {path}: {e}") from e

        with handle:
            response = self._call(
                "uploadExecutionAttachment",
                handle,
                execution_id,
                title,
                description,
                **optional,
            )
        logger.info(f"Attachment {path.name} uploaded to execution {execution_id}")
        return Attachment.from_api(response)

    def create_new_test_project(
        self,
        test_project_name: str,
        test_project_prefix: str,
        notes: str = "",
        enable_requirements: bool = True,
        enable_test_priority: bool = True,
        enable_automation: bool = True,
        enable_inventory: bool = False,
        is_active: bool = True,
        is_public: bool = True,
    ) -> TestProject:
        """
        Create a new test project on TestLink.

        Args:
            test_project_name: Project name.
            test_project_prefix: Prefix used for test case external ids.
            notes: Project description.
            enable_requirements: Enable the requirements feature.
            enable_test_priority: Enable test priority.
            enable_automation: Enable test automation (API keys).
            enable_inventory: Enable inventory.
            is_active: Whether the project is active.
            is_public: Whether the project is public.
        """
        logger.info(
            f"Creating test project '{test_project_name}' (prefix={test_project_prefix})"
        )
        response = self._call(
            "createTestProject",
            test_project_name,
            test_project_prefix,
            notes=notes,
            active=int(is_active),
            public=int(is_public),
            options={
                "requirementsEnabled": int(enable_requirements),
                "testPriorityEnabled": int(enable_test_priority),
                "automationEnabled": int(enable_automation),
                "inventoryEnabled": int(enable_inventory),
            },
        )
        result = response[0] if isinstance(response, list) else response
        project = TestProject(
            id=int(result["id"]),
            name=test_project_name,
            prefix=test_project_prefix,
            notes=notes,
        )
        logger.info(f"Test project created: {project.name} (id={project.id})")
        return project
