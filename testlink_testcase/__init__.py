"""
TestLink Test Case Integration - Core Package.

This package contains the glue between annotated automated tests and a
TestLink test-management server:
- Annotations: Project/suite, requirement coverage and test-script metadata.
- TestLink Client: Narrow wrapper around the TestLink XML-RPC client.
- Test Case: Base test class and the export sequence run at test setup.
- Configuration: Process-wide connection settings.
"""

from testlink_testcase.annotations import Coverage, TestInfo, TestScript
from testlink_testcase.testcase import TestLinkTestCase

__version__ = "0.1.0"

__all__ = [
    "Coverage",
    "TestInfo",
    "TestScript",
    "TestLinkTestCase",
]
