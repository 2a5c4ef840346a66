#!/usr/bin/env python3
"""CanvasSmith - turn a product spec into a multi-page HTML prototype.

Usage:
    python main.py generate --version-id myproject/v1             # run the pipeline
    python main.py --verbose generate --version-id myproject/v1   # with debug logging
    python main.py show --version-id myproject/v1                 # list stored pages
    python main.py history --version-id myproject/v1 --limit 10
    python main.py revert --version-id myproject/v1 --page-id abc123 --commit 1a2b3c4
"""

import argparse
import logging
import sys
import threading

from config.defaults import DEFAULTS
from core.canvas_store import CanvasStore
from core.errors import WorkflowError
from core.orchestrator import run_workflow


def _format_event(event):
    """Format one workflow event for terminal display."""
    data = event.to_dict()
    if data["event"] == "done":
        return f"\nDone: canvas {data['canvasId']}, {data['pageCount']} page(s)"
    if data["event"] == "error":
        return f"  [ERROR] {data['step']} — {data['error']}"

    line = f"  [{data['step']:9s}] {data['status']}"
    if "detail" in data:
        line += f" — {data['detail']}"
    if "result" in data:
        line += " " + ", ".join(f"{k}={v}" for k, v in data["result"].items())
    return line


def cmd_generate(args):
    """Run the full pipeline, printing events as they stream."""
    cancel = threading.Event()
    failed = False
    finished = False
    events = run_workflow(args.version_id, cancel=cancel)
    try:
        for event in events:
            print(_format_event(event), flush=True)
            failed = failed or event.name == "error"
            finished = finished or event.name == "done"
    except KeyboardInterrupt:
        cancel.set()
        events.close()
        print("\nCancelled.")
        return 130

    if not failed and not finished:
        print("\nStopped before completion.")
    return 1 if failed else 0


def cmd_show(args):
    canvas = CanvasStore(args.version_id).get()
    if canvas is None:
        print(f"No canvas for {args.version_id}")
        return 1

    print(f"Canvas:  {canvas['name']} ({canvas['id']})")
    print(f"Updated: {canvas['updatedAt']}")
    print(f"\n{len(canvas['pages'])} page(s):")
    for page in canvas["pages"]:
        size = len(page["htmlContent"])
        status = f"{size} chars" if size else "missing HTML"
        print(f"  {page['id']}  {page['name']:30s} {status}")
    return 0


def cmd_history(args):
    commits = CanvasStore(args.version_id).history(args.limit)
    if not commits:
        print("No history.")
    for c in commits:
        print(f"  {c.hash[:7]}  {c.date}  {c.message}")
    return 0


def cmd_revert(args):
    CanvasStore(args.version_id).revert_page(args.page_id, args.commit)
    print(f"Reverted page {args.page_id} to {args.commit[:7]}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="canvassmith",
        description="Generate HTML prototype pages from a product spec",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    gen_parser = subparsers.add_parser("generate", help="Run the design → plan → code → review pipeline")
    gen_parser.add_argument("--version-id", required=True, help='Version as "projectId/versionFolder"')
    gen_parser.set_defaults(func=cmd_generate)

    show_parser = subparsers.add_parser("show", help="List the pages stored for a version")
    show_parser.add_argument("--version-id", required=True)
    show_parser.set_defaults(func=cmd_show)

    history_parser = subparsers.add_parser("history", help="Show the canvas commit history")
    history_parser.add_argument("--version-id", required=True)
    history_parser.add_argument("--limit", type=int, default=50, help="Max commits (default: 50)")
    history_parser.set_defaults(func=cmd_history)

    revert_parser = subparsers.add_parser("revert", help="Restore a page from an earlier commit")
    revert_parser.add_argument("--version-id", required=True)
    revert_parser.add_argument("--page-id", required=True)
    revert_parser.add_argument("--commit", required=True, help="Commit hash to restore from")
    revert_parser.set_defaults(func=cmd_revert)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else DEFAULTS["log_level"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        sys.exit(args.func(args))
    except WorkflowError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
