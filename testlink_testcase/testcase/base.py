"""
TestLink Base Test Class.

Test classes derive from TestLinkTestCase and declare their metadata with
the TestInfo, Coverage and TestScript decorators. At each test setup the
class reads that metadata and pushes it to TestLink, provided both the URL
and the developer key are configured; otherwise the test runs offline.

Failures while exporting (unreachable server, unknown project or suite,
malformed steps) are logged and re-raised so the test aborts.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Type, TypeVar

from loguru import logger

from testlink_testcase.annotations import collect_metadata, get_annotation, qualified_name
from testlink_testcase.config.settings import TestLinkSettings, get_settings
from testlink_testcase.testcase.exporter import TestCaseExporter, TestLinkExportError
from testlink_testcase.testlink_client import TestCase, TestLinkSite

A = TypeVar("A")


class TestLinkTestCase:
    """
    Base class for pytest test classes exported to TestLink.

    Usage::

        @TestInfo(project="p1", suite="s1")
        @Coverage(srs="175", requirements=["12"])
        @TestScript(actions=["1. Login"], expected_results=["1. Authenticated"])
        class TestLogin(TestLinkTestCase):
            def test_login(self):
                ...

    Attributes:
        testlink_settings: Settings for this class; None uses the process-wide ones.
        testlink: Site connected during setup, None when running offline.
        testlink_case: Test case created by the last export.
    """

    testlink_settings: Optional[TestLinkSettings] = None
    testlink: Optional[TestLinkSite] = None
    testlink_case: Optional[TestCase] = None

    def connect(self, url: str, devkey: str) -> None:
        """
        Establish the connection with TestLink.

        Raises:
            TestLinkSiteError: If the client cannot be created.
        """
        self.testlink = TestLinkSite(url, devkey)

    def setup_method(self, method: Any = None) -> None:
        self.export_to_testlink()

    def export_to_testlink(
        self, settings: Optional[TestLinkSettings] = None
    ) -> Optional[TestCase]:
        """
        Push this test's annotations to TestLink.

        Returns:
            The created TestCase, or None when running offline.
        """
        settings = settings or self.testlink_settings or get_settings()

        if not settings.is_online:
            logger.info("Running test offline")
            return None

        logger.info("Connecting to TestLink")
        try:
            self.connect(settings.url, settings.devkey)
            exporter = TestCaseExporter(self.testlink, settings)
            self.testlink_case = exporter.export(
                qualified_name(type(self)), collect_metadata(type(self))
            )
        except Exception as e:
            logger.error(f"Error running test: {e}")
            raise
        return self.testlink_case

    def set_requirements(
        self,
        test_case: TestCase,
        srs_id: int | str,
        requirement_ids: Sequence[int | str],
    ) -> None:
        """
        Given requirements of one SRS folder, link them to the test case.

        Args:
            test_case: The test case to be linked to requirements.
            srs_id: The SRS folder id.
            requirement_ids: The requirement ids.
        """
        if self.testlink is None:
            logger.error("Cannot set requirements: not connected to TestLink")
            raise TestLinkExportError("Not connected to TestLink; call connect() first")
        TestCaseExporter(
            self.testlink, self.testlink_settings or get_settings()
        ).set_requirements(test_case, srs_id, requirement_ids)

    @classmethod
    def get_annotation(cls, annotation_type: Type[A]) -> Optional[A]:
        """Get an annotation declared on the running test class."""
        return get_annotation(cls, annotation_type)
