"""
Pytest Plugin — TestLink export for annotated tests.

Registered through the ``pytest11`` entry point. Provides:
- CLI options for the TestLink connection (--testlink-url, --testlink-devkey,
  --testlink-config), overriding the TESTLINK_* environment variables.
- Registration of the testlink_info / testlink_coverage / testlink_script markers.
- Logging of the test -> TestLink project/suite mapping at collection.
- Export of marker- or decorator-annotated test functions at setup.
  TestLinkTestCase subclasses export themselves in setup_method and are
  skipped here.
"""

from __future__ import annotations

from typing import Dict

import pytest
from loguru import logger

from testlink_testcase.annotations import (
    MARKER_HELP,
    has_annotations,
    has_testlink_markers,
    metadata_from_item,
)
from testlink_testcase.config import settings as settings_module
from testlink_testcase.config.settings import TestLinkSettings
from testlink_testcase.testcase.base import TestLinkTestCase
from testlink_testcase.testcase.exporter import TestCaseExporter
from testlink_testcase.testlink_client import TestLinkSite

SETTINGS_KEY = pytest.StashKey[TestLinkSettings]()
SITE_KEY = pytest.StashKey[TestLinkSite]()


# ---------------------------------------------------------------------------
# CLI Options
# ---------------------------------------------------------------------------


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add the TestLink connection options."""
    group = parser.getgroup("testlink", "TestLink test case export")
    group.addoption(
        "--testlink-url",
        default=None,
        help="TestLink XML-RPC URL. Default: $TESTLINK_URL",
    )
    group.addoption(
        "--testlink-devkey",
        default=None,
        help="TestLink developer key. Default: $TESTLINK_DEVKEY",
    )
    group.addoption(
        "--testlink-config",
        default=None,
        help="YAML/JSON file with a 'testlink:' mapping. Default: $TESTLINK_CONFIG",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register markers and install the process-wide TestLink settings."""
    for help_line in MARKER_HELP.values():
        config.addinivalue_line("markers", help_line)

    settings = TestLinkSettings.load(
        config_file=config.getoption("--testlink-config", default=None),
        url=config.getoption("--testlink-url", default=None),
        devkey=config.getoption("--testlink-devkey", default=None),
    )
    config.stash[SETTINGS_KEY] = settings
    settings_module.configure(settings)
    if settings.is_online:
        logger.info(f"TestLink export enabled — url={settings.url}")
    else:
        logger.info("TestLink export disabled, running tests offline")


def pytest_unconfigure(config: pytest.Config) -> None:
    settings_module.configure(None)


# ---------------------------------------------------------------------------
# Collection & Setup
# ---------------------------------------------------------------------------


def _is_self_exporting(item: pytest.Item) -> bool:
    cls = getattr(item, "cls", None)
    return cls is not None and issubclass(cls, TestLinkTestCase)


def _is_annotated(item: pytest.Item) -> bool:
    targets = (getattr(item, "obj", None), getattr(item, "cls", None))
    return has_testlink_markers(item) or any(
        target is not None and has_annotations(target) for target in targets
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Log the mapping between annotated tests and TestLink projects/suites."""
    testlink_map: Dict[str, str] = {}
    for item in items:
        if not (_is_annotated(item) or _is_self_exporting(item)):
            continue
        metadata = metadata_from_item(item)
        if metadata.info is not None:
            testlink_map[item.nodeid] = f"{metadata.info.project}/{metadata.info.suite}"

    if testlink_map:
        logger.info(f"TestLink test mappings found: {len(testlink_map)}")
        for nodeid, target in testlink_map.items():
            logger.debug(f"  {nodeid} -> {target}")


def export_item(item: pytest.Item, settings: TestLinkSettings) -> None:
    """
    Export one annotated test function to TestLink.

    The site is created once per session and reused.
    """
    metadata = metadata_from_item(item)
    if metadata.info is None:
        logger.warning(f"{item.nodeid} has TestLink metadata but no testlink_info; not exported")
        return

    site = item.config.stash.get(SITE_KEY, None)
    if site is None:
        logger.info("Connecting to TestLink")
        site = TestLinkSite(settings.url, settings.devkey)
        item.config.stash[SITE_KEY] = site

    function = getattr(item, "function", None) or item.obj
    name = f"{function.__module__}.{function.__qualname__}"
    TestCaseExporter(site, settings).export(name, metadata)


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_setup(item: pytest.Item) -> None:
    """Export annotated test functions before they run."""
    if _is_self_exporting(item) or not _is_annotated(item):
        return

    settings = item.config.stash.get(SETTINGS_KEY, None) or settings_module.get_settings()
    if not settings.is_online:
        logger.debug(f"Running {item.nodeid} offline")
        return

    try:
        export_item(item, settings)
    except Exception as e:
        logger.error(f"Error running test: {e}")
        raise
