"""
Test Case Module.

Provides:
- TestLinkTestCase: base test class exporting its annotations at setup.
- TestCaseExporter: the lookup/create/link sequence shared with the pytest plugin.
"""

from testlink_testcase.testcase.base import TestLinkTestCase
from testlink_testcase.testcase.exporter import (
    TestCaseExporter,
    TestLinkExportError,
    build_requirements,
)

__all__ = [
    "TestCaseExporter",
    "TestLinkExportError",
    "TestLinkTestCase",
    "build_requirements",
]
