"""
Annotations Module.

Declarative TestLink metadata for tests:
- TestInfo, Coverage, TestScript decorators for test classes and functions.
- Equivalent pytest markers (testlink_info, testlink_coverage, testlink_script).
"""

from testlink_testcase.annotations.metadata import (
    Coverage,
    TestInfo,
    TestMetadata,
    TestScript,
    collect_metadata,
    get_annotation,
    has_annotations,
    qualified_name,
)
from testlink_testcase.annotations.markers import (
    MARKER_HELP,
    has_testlink_markers,
    metadata_from_item,
)

__all__ = [
    "Coverage",
    "TestInfo",
    "TestMetadata",
    "TestScript",
    "collect_metadata",
    "get_annotation",
    "has_annotations",
    "qualified_name",
    "MARKER_HELP",
    "has_testlink_markers",
    "metadata_from_item",
]
