#!/usr/bin/env python3
"""Draft Slot Management CLI

Command-line utility to inspect, export and clear the locally persisted
authoring draft kept by file-backed sessions.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from formdraft.config import Config  # noqa: E402
from formdraft.drafts import DraftPersistence  # noqa: E402
from formdraft.logger import ConsoleLogger, Logger  # noqa: E402
from formdraft.storage import FileKeyValueStorage  # noqa: E402
from formdraft.validation import FormType, SavePayload  # noqa: E402


def resolve_drafts_dir(cli_dir: Optional[str]) -> str:
    """Resolve drafts directory from CLI, environment variable, or project default."""
    if cli_dir:
        return cli_dir

    return str(Config.get_drafts_dir())


def open_drafts(args, logger: Logger) -> DraftPersistence:
    storage = FileKeyValueStorage(resolve_drafts_dir(args.drafts_dir), logger=logger)
    return DraftPersistence(storage, key=args.key or Config.get_draft_key(), logger=logger)


def show_draft(args, logger: Logger) -> int:
    """Print a summary of the stored draft"""
    try:
        drafts = open_drafts(args, logger)
        record = drafts.load()
        if record is None:
            logger.info("No draft found.")
            return 0

        logger.info(f"Draft '{drafts.key}':")
        logger.info(f"Template name:    {record.template_name or '(unnamed)'}")
        logger.info(f"Form type:        {record.form_type.value}")
        logger.info(f"Status:           {record.status.value}")
        logger.info(f"Customer:         {record.customer_name or record.customer_id or 'none'}")
        logger.info(f"Saved at:         {record.saved_at[:19]}")
        logger.info(f"Sections:         {len(record.sections)}")

        if args.verbose or record.form_type is FormType.MULTI_STEP:
            logger.info(f"  {'Order':<6} {'Section ID':<32} {'Name':<25} {'Size (bytes)'}")
            logger.info("  " + "-" * 80)
            for section in record.sections:
                marker = "*" if section.section_id == record.selected_section_id else " "
                logger.info(
                    f"{marker} {section.order:<6} {section.section_id:<32} "
                    f"{section.section_name:<25} {len(section.content_fragment)}"
                )
        return 0

    except Exception as e:
        logger.error(f"Error reading draft: {str(e)}")
        return 1


def export_draft(args, logger: Logger) -> int:
    """Write the draft as the payload shape the backend expects"""
    try:
        drafts = open_drafts(args, logger)
        record = drafts.load()
        if record is None:
            logger.info("No draft found.")
            return 1

        payload = SavePayload.from_document(record.metadata, record.sections).to_request(
            Config.get_customer_field()
        )
        text = json.dumps(payload, indent=2, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(text, encoding="utf-8")
            logger.info(f"Draft exported to {args.output}")
        else:
            print(text)
        return 0

    except Exception as e:
        logger.error(f"Error exporting draft: {str(e)}")
        return 1


def clear_draft(args, logger: Logger) -> int:
    """Remove the stored draft"""
    try:
        drafts = open_drafts(args, logger)
        if drafts.load() is None:
            logger.info("No draft found.")
            return 0

        if not args.yes:
            response = input("Discard the stored draft? (yes/no): ")
            if response.lower() != "yes":
                logger.info("Clear cancelled.")
                return 0

        drafts.clear()
        logger.info("Draft cleared.")
        return 0

    except Exception as e:
        logger.error(f"Error clearing draft: {str(e)}")
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="formdraft Draft Manager - Inspect and manage the local authoring draft",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python draft_manager.py show --verbose
  python draft_manager.py export --output draft.json
  python draft_manager.py clear --yes

  # Custom directory or key
  python draft_manager.py --drafts-dir /custom/path --key other_slot show

Environment Variables:
    FORMDRAFT_DATA_DIR      Override project data directory (optional)
    FORMDRAFT_DRAFT_KEY     Override the draft slot key (optional)
    FORMDRAFT_LOG_LEVEL     Logging verbosity (optional)
        """,
    )
    parser.add_argument(
        "--drafts-dir",
        type=str,
        default=None,
        help="Drafts directory path (default: data/drafts or FORMDRAFT_DATA_DIR env var)",
    )
    parser.add_argument(
        "--key", type=str, default=None, help="Draft slot key (default: form_builder_draft)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Draft command")

    show_parser = subparsers.add_parser("show", help="Show the stored draft")
    show_parser.add_argument("-v", "--verbose", action="store_true", help="List every section")

    export_parser = subparsers.add_parser("export", help="Export the draft as a save payload")
    export_parser.add_argument("-o", "--output", type=str, default=None, help="Output file")

    clear_parser = subparsers.add_parser("clear", help="Discard the stored draft")
    clear_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = getattr(logging, Config.get_log_level(), logging.INFO)
    logger: Logger = ConsoleLogger(name="formdraft.drafts_cli", level=level)

    commands = {"show": show_draft, "export": export_draft, "clear": clear_draft}
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args, logger)


if __name__ == "__main__":
    sys.exit(main())
