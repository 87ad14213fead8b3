"""Flow editor core: settings, logging, persistence and the CLI."""

from flow_editor.editor.config import EditorSettings

__all__ = ["EditorSettings"]
