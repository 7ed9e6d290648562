"""
Pytest Marker Metadata.

Reads the TestLink metadata from pytest markers, for plain test functions
that do not derive from TestLinkTestCase::

    @pytest.mark.testlink_info(project="p1", suite="s1")
    @pytest.mark.testlink_coverage(srs="175", requirements=["12"])
    @pytest.mark.testlink_script(actions=["Login"], expected_results=["Logged in"])
    def test_login():
        ...

Decorator annotations on the test function (or its class) are honoured too;
markers win when both declare the same annotation.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type

from loguru import logger

from testlink_testcase.annotations.metadata import (
    Coverage,
    TestInfo,
    TestMetadata,
    TestScript,
    collect_metadata,
)

MARKERS: Dict[str, Type[Any]] = {
    "testlink_info": TestInfo,
    "testlink_coverage": Coverage,
    "testlink_script": TestScript,
}

MARKER_HELP = {
    "testlink_info": "testlink_info(project, suite): TestLink project and first-level suite",
    "testlink_coverage": "testlink_coverage(srs, requirements): requirements covered by the test",
    "testlink_script": "testlink_script(actions, expected_results): manual test steps",
}


def _annotation_from_marker(item: Any, marker_name: str) -> Optional[Any]:
    marker = item.get_closest_marker(marker_name)
    if marker is None:
        return None
    annotation_type = MARKERS[marker_name]
    try:
        return annotation_type(*marker.args, **marker.kwargs)
    except TypeError as e:
        logger.error(f"Invalid @{marker_name} marker on {item.nodeid}: {e}")
        raise


def metadata_from_item(item: Any) -> TestMetadata:
    """
    Build the TestLink metadata of a collected pytest item.

    Args:
        item: A pytest.Item.

    Returns:
        TestMetadata merged from decorator annotations and markers.
    """
    layers = [TestMetadata()]
    for target in (getattr(item, "cls", None), getattr(item, "obj", None)):
        if target is not None:
            layers.append(collect_metadata(target))
    layers.append(
        TestMetadata(
            info=_annotation_from_marker(item, "testlink_info"),
            coverage=_annotation_from_marker(item, "testlink_coverage"),
            script=_annotation_from_marker(item, "testlink_script"),
        )
    )

    # Later layers (function over class, markers over decorators) win
    merged = TestMetadata()
    for layer in layers:
        merged.info = layer.info or merged.info
        merged.coverage = layer.coverage or merged.coverage
        merged.script = layer.script or merged.script
    return merged


def has_testlink_markers(item: Any) -> bool:
    """Return True if the item carries any TestLink marker."""
    return any(item.get_closest_marker(name) is not None for name in MARKERS)
