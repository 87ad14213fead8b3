"""CLI entrypoint for inspecting workflow documents.

Every command reads a document JSON file (the persistence wire shape) and
prints to stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from flow_editor import __version__
from flow_editor.editor.config import EditorSettings
from flow_editor.editor.logging import configure_logging
from flow_editor.editor.workflow.catalog import action_label, trigger_label
from flow_editor.editor.workflow.document import WorkflowDocument
from flow_editor.editor.workflow.layout import connections, describe_node, layout_document
from flow_editor.editor.workflow.membership import check_integrity, top_level_sequence

logger = logging.getLogger(__name__)

EXIT_CONFIG = 2
EXIT_BAD_DOCUMENT = 3
EXIT_INVALID = 4


class DocumentLoadError(Exception):
    pass


def load_document(path: Path) -> WorkflowDocument:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DocumentLoadError(f"No such file: {path}") from e
    except json.JSONDecodeError as e:
        raise DocumentLoadError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise DocumentLoadError(f"{path} must contain a JSON object")
    return WorkflowDocument.from_json(raw)


def render_outline(document: WorkflowDocument) -> list[str]:
    """Indented text tree of the flow, following branch arrays."""

    nodes = {node.id: node for node in document.actions}
    trigger = document.trigger
    lines = [f"Trigger: {trigger_label(trigger.kind) if trigger.is_set else '(not set)'}"]

    def _walk(ids: list[str], indent: int, path: frozenset[str]) -> None:
        for node_id in ids:
            node = nodes.get(node_id)
            if node is None:
                lines.append(f"{'  ' * indent}- {node_id} (missing)")
                continue
            if node_id in path:
                lines.append(f"{'  ' * indent}- {node_id} (cycle)")
                continue
            lines.append(
                f"{'  ' * indent}- {action_label(node.kind)} [{node.id}]: {describe_node(node)}"
            )
            for key in node.branch_keys or ():
                lines.append(f"{'  ' * (indent + 1)}{key}:")
                _walk(node.branch(key), indent + 2, path | {node_id})

    _walk(top_level_sequence(document.actions), 0, frozenset())
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flow-editor",
        description="Inspect marketing automation workflow documents",
    )
    parser.add_argument("--version", action="version", version=f"flow-editor {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    layout = subparsers.add_parser("layout", help="Print canvas placements as JSON")
    layout.add_argument("file", type=Path, help="Workflow document JSON file")
    layout.add_argument(
        "--connections",
        action="store_true",
        help="Include the connection lines between placed nodes",
    )

    validate = subparsers.add_parser("validate", help="Check structural integrity")
    validate.add_argument("file", type=Path, help="Workflow document JSON file")

    outline = subparsers.add_parser("outline", help="Print the flow as an indented tree")
    outline.add_argument("file", type=Path, help="Workflow document JSON file")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = EditorSettings()
    except ValidationError as e:
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_CONFIG

    configure_logging(settings.log_level)

    try:
        document = load_document(args.file)

        if args.command == "layout":
            result = layout_document(document, settings.layout_constants())
            payload = result.to_json()
            if args.connections:
                payload["connections"] = [c.to_json() for c in connections(document, result)]
            print(json.dumps(payload, indent=2))
            return 0

        if args.command == "validate":
            errors = check_integrity(document)
            if errors:
                for error in errors:
                    print(error)
                logger.warning(
                    "Document failed integrity check",
                    extra={"file": str(args.file), "errors": len(errors)},
                )
                return EXIT_INVALID
            print(f"OK: {len(document.actions)} action(s)")
            return 0

        if args.command == "outline":
            print("\n".join(render_outline(document)))
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_CONFIG

    except DocumentLoadError as e:
        print(str(e), file=sys.stderr)
        return EXIT_BAD_DOCUMENT

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
