#!/usr/bin/env python3
"""
tasknotes - Task notes conversion and collaborative snapshots

Command line entry point. Converts notes between HTML and Markdown, shows the
block model of Markdown notes and builds collaborative snapshots for new or
existing tasks. Input is read from a file argument or stdin, results are
written to stdout.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from tasknotes.collab import create_collab_snapshot, rebuild_collab_snapshot
from tasknotes.config import config
from tasknotes.conversion import (
    MarkdownToHtmlOptions,
    html_to_markdown,
    markdown_to_html,
    parse_markdown_to_blocks,
    sanitize_html,
)
from tasknotes.exceptions import TaskNotesError
from tasknotes.notes import validate_task_id


def setup_logging():
    """Configure logging for the application."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    format_str = config.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = config.log_filename

    # stdout carries command output
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=format_str, handlers=handlers)


def read_input(path: Optional[str]) -> str:
    """Read command input from a file, or from stdin when path is omitted or '-'."""
    if not path or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def run_to_markdown(args) -> str:
    return html_to_markdown(read_input(args.input))


def run_to_html(args) -> str:
    options = MarkdownToHtmlOptions.from_config()
    html = markdown_to_html(read_input(args.input), options)
    if args.no_sanitize or not options.sanitize:
        return html
    return sanitize_html(html)


def run_blocks(args) -> str:
    blocks = parse_markdown_to_blocks(read_input(args.input))
    return json.dumps([block.model_dump(exclude_none=True) for block in blocks], indent=2, ensure_ascii=False)


def run_snapshot_create(args) -> str:
    validate_task_id(args.task_id)
    markdown = read_input(args.input) if args.input else ""
    snapshot = create_collab_snapshot(args.task_id, markdown)
    return json.dumps(snapshot.to_payload(), indent=2)


def run_snapshot_update(args) -> str:
    previous = json.loads(Path(args.snapshot).read_text(encoding="utf-8"))
    rebuild = rebuild_collab_snapshot(previous, read_input(args.input))
    if not rebuild.replayed:
        logging.warning("Previous snapshot could not be replayed; the new snapshot starts a fresh document")
    return json.dumps(rebuild.snapshot.to_payload(), indent=2)


COMMANDS = {
    "to-markdown": run_to_markdown,
    "to-html": run_to_html,
    "blocks": run_blocks,
    "snapshot-create": run_snapshot_create,
    "snapshot-update": run_snapshot_update,
}


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="tasknotes - Task notes conversion and collaborative snapshots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py to-markdown notes.html                       # HTML -> Markdown
  echo '**hi**' | python main.py to-html                      # Markdown -> sanitized HTML
  python main.py blocks notes.md                              # Show the block model as JSON
  python main.py snapshot-create 507f1f77bcf86cd799439011 notes.md
  python main.py snapshot-update snapshot.json notes.md       # Rebuild an existing snapshot
        """
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to a YAML configuration file (default: config.yaml)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="tasknotes 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    to_markdown = subparsers.add_parser("to-markdown", help="Convert HTML notes to Markdown")
    to_markdown.add_argument("input", nargs="?", help="HTML file (default: stdin)")

    to_html = subparsers.add_parser("to-html", help="Convert Markdown notes to HTML")
    to_html.add_argument("input", nargs="?", help="Markdown file (default: stdin)")
    to_html.add_argument("--no-sanitize", action="store_true", help="Keep scripts and event handlers in the output")

    blocks = subparsers.add_parser("blocks", help="Print the block model of Markdown notes")
    blocks.add_argument("input", nargs="?", help="Markdown file (default: stdin)")

    create = subparsers.add_parser("snapshot-create", help="Build the collaborative snapshot for a new task")
    create.add_argument("task_id", help="24 character hexadecimal task id")
    create.add_argument("input", nargs="?", help="Markdown file (default: empty notes)")

    update = subparsers.add_parser("snapshot-update", help="Rebuild an existing snapshot with new notes")
    update.add_argument("snapshot", help="JSON file holding the task's current snapshot")
    update.add_argument("input", nargs="?", help="Markdown file (default: stdin)")

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)
    if args.config:
        config.config_path = Path(args.config)
        config.reload()
    setup_logging()

    try:
        output = COMMANDS[args.command](args)

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        sys.exit(130)

    except (TaskNotesError, OSError, json.JSONDecodeError) as e:
        logging.error(f"{args.command} failed: {e}")
        sys.exit(1)

    print(output)


if __name__ == "__main__":
    main()
