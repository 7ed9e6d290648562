"""
TestLink command line.

Operator utilities around the same TestLinkSite wrapper the tests use.

Usage:
    testlink-testcase ping
    testlink-testcase projects
    testlink-testcase create-project --name "My Project" --prefix MP --notes "Created via API"
    testlink-testcase upload-attachment --execution-id 42 --title "Screenshot" screen.png

Connection settings come from --url/--devkey/--config or the TESTLINK_*
environment variables.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from loguru import logger

from testlink_testcase import __version__
from testlink_testcase.config import ConfigurationError, TestLinkSettings
from testlink_testcase.testlink_client import TestLinkSite, TestLinkSiteError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="testlink-testcase",
        description="TestLink Test Case Integration — operator utilities",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--url", default=None, help="TestLink XML-RPC URL (default: $TESTLINK_URL)")
    parser.add_argument("--devkey", default=None, help="Developer key (default: $TESTLINK_DEVKEY)")
    parser.add_argument("--config", default=None, help="YAML/JSON configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("ping", help="Check the connection to TestLink")
    subparsers.add_parser("projects", help="List test projects")

    create = subparsers.add_parser("create-project", help="Create a test project")
    create.add_argument("--name", required=True, help="Test project name")
    create.add_argument("--prefix", required=True, help="Test case id prefix")
    create.add_argument("--notes", default="", help="Project description")
    create.add_argument("--no-requirements", action="store_true", help="Disable requirements")
    create.add_argument("--no-test-priority", action="store_true", help="Disable test priority")
    create.add_argument("--no-automation", action="store_true", help="Disable test automation")
    create.add_argument("--inventory", action="store_true", help="Enable inventory")
    create.add_argument("--inactive", action="store_true", help="Create the project inactive")
    create.add_argument("--private", action="store_true", help="Create the project private")

    upload = subparsers.add_parser(
        "upload-attachment", help="Attach a file to a test execution"
    )
    upload.add_argument("file", help="File to attach")
    upload.add_argument("--execution-id", type=int, required=True, help="Execution id")
    upload.add_argument("--title", required=True, help="Attachment title")
    upload.add_argument("--description", default="", help="Attachment description")
    upload.add_argument("--file-name", default=None, help="File name shown by TestLink")
    upload.add_argument("--file-type", default=None, help="MIME type, e.g. image/jpeg")

    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def run(args: argparse.Namespace, site: TestLinkSite) -> int:
    """Execute the selected command against a connected site."""
    if args.command == "ping":
        print(site.ping())

    elif args.command == "projects":
        for project in site.get_test_projects():
            print(f"{project.id}\t{project.prefix}\t{project.name}")

    elif args.command == "create-project":
        project = site.create_new_test_project(
            args.name,
            args.prefix,
            notes=args.notes,
            enable_requirements=not args.no_requirements,
            enable_test_priority=not args.no_test_priority,
            enable_automation=not args.no_automation,
            enable_inventory=args.inventory,
            is_active=not args.inactive,
            is_public=not args.private,
        )
        print(f"Created test project {project.name} (id={project.id})")

    elif args.command == "upload-attachment":
        attachment = site.upload_attachment(
            args.file,
            args.execution_id,
            args.title,
            description=args.description,
            file_name=args.file_name,
            file_type=args.file_type,
        )
        print(f"Uploaded {attachment.file_name or args.file} to execution {args.execution_id}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = TestLinkSettings.load(
            config_file=args.config, url=args.url, devkey=args.devkey
        )
        if not settings.is_online:
            logger.error("TestLink URL and developer key are required")
            return 2

        site = TestLinkSite(settings.url, settings.devkey)
        return run(args, site)
    except (ConfigurationError, TestLinkSiteError) as e:
        logger.error(f"[CLI] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
