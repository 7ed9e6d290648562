"""
TestLink Client Module.

Wraps the TestLink XML-RPC client for:
- Pinging the server and looking up projects and suites by name.
- Building test case steps from annotated actions/expected results.
- Creating test cases, linking requirements and setting custom fields.
- Uploading execution attachments and creating projects.
"""

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
)
from testlink_testcase.testlink_client.site import TestLinkSite, TestLinkSiteError

__all__ = [
    "ActionOnDuplicate",
    "Attachment",
    "CustomField",
    "ExecutionType",
    "Requirement",
    "TestCase",
    "TestCaseStep",
    "TestImportance",
    "TestLinkSite",
    "TestLinkSiteError",
    "TestProject",
    "TestSuite",
]
