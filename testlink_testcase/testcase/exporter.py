"""
Test Case Exporter.

Runs the sequence that pushes one annotated test into TestLink:

1. Convert the TestScript into TestLink steps.
2. Resolve the test project and first-level test suite by name.
3. Create the test case (a new version when the name already exists).
4. Link the requirements declared by Coverage.
5. Optionally record the test's qualified name in a custom field.
"""

from __future__ import annotations

from typing import List, Sequence

from loguru import logger

from testlink_testcase.annotations import TestMetadata
from testlink_testcase.config.settings import TestLinkSettings
from testlink_testcase.testlink_client import (
    ActionOnDuplicate,
    ExecutionType,
    Requirement,
    TestCase,
    TestImportance,
    TestLinkSite,
)


class TestLinkExportError(Exception):
    """Raised when an annotated test cannot be exported to TestLink."""

    __test__ = False


def build_requirements(srs_id: int | str, requirement_ids: Sequence[int | str]) -> List[Requirement]:
    """
    Build the requirements of one SRS folder.

    Args:
        srs_id: Id of the SRS folder.
        requirement_ids: Requirement ids, as integers or numeric strings.

    Raises:
        TestLinkExportError: If an id is not an integer.
    """
    try:
        spec_id = int(srs_id)
        return [Requirement(id=int(req_id), req_spec_id=spec_id) for req_id in requirement_ids]
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid requirement coverage srs={srs_id} requirements={requirement_ids}")
        raise TestLinkExportError(f"Requirement ids must be integers: {e}") from e


class TestCaseExporter:
    """
    Exports annotated tests through a TestLinkSite.

    Usage::

        exporter = TestCaseExporter(site, settings)
        test_case = exporter.export("tests.test_login.TestLogin", metadata)
    """

    __test__ = False

    def __init__(self, site: TestLinkSite, settings: TestLinkSettings) -> None:
        self.site = site
        self.settings = settings

    def export(self, test_case_name: str, metadata: TestMetadata) -> TestCase:
        """
        Create or update the TestLink test case of an annotated test.

        Args:
            test_case_name: Name of the test case (the test's qualified name).
            metadata: Annotations declared by the test.

        Returns:
            The created TestCase.

        Raises:
            TestLinkExportError: If TestInfo is missing, the project or suite
                cannot be found, or the coverage is invalid.
            TestLinkSiteError: If a TestLink call fails.
        """
        if metadata.info is None:
            logger.error(f"{test_case_name} has no TestInfo annotation")
            raise TestLinkExportError(f"Missing TestInfo annotation on {test_case_name}")

        project_name = metadata.info.project
        suite_name = metadata.info.suite

        if metadata.script is not None:
            steps = self.site.create_steps(
                metadata.script.actions, metadata.script.expected_results
            )
        else:
            logger.warning(f"{test_case_name} has no TestScript; exporting without steps")
            steps = []

        test_project = self.site.get_test_project(project_name)
        if test_project is None:
            logger.error(f"Could not find test project: {project_name}")
            raise TestLinkExportError(f"Could not find test project: {project_name}")

        test_suite = self.site.get_test_suite(test_project.id, suite_name)
        if test_suite is None:
            logger.error(f"Could not find test suite: {suite_name}")
            raise TestLinkExportError(f"Could not find test suite: {suite_name}")

        test_case = self.site.create_test_case_with_steps(
            test_case_name,
            test_suite.id,
            test_project,
            self.settings.author,
            self.settings.summary,
            steps,
            preconditions=self.settings.preconditions,
            importance=TestImportance.MEDIUM,
            execution_type=ExecutionType.AUTOMATED,
            check_duplicated_name=True,
            action_on_duplicated_name=ActionOnDuplicate.CREATE_NEW_VERSION,
        )

        coverage = metadata.coverage
        if coverage is not None and coverage.requirements:
            self.set_requirements(test_case, coverage.srs, coverage.requirements)

        if self.settings.class_custom_field:
            self.site.update_custom_fields(
                test_case, {self.settings.class_custom_field: test_case_name}
            )

        logger.info(
            f"Exported {test_case_name} to {project_name}/{suite_name} "
            f"as {test_case.full_external_id or test_case.id}"
        )
        return test_case

    def set_requirements(
        self,
        test_case: TestCase,
        srs_id: int | str,
        requirement_ids: Sequence[int | str],
    ) -> None:
        """Link requirements of one SRS folder to the test case."""
        requirements = build_requirements(srs_id, requirement_ids)
        self.site.assign_requirements(test_case, requirements)
