"""Flow Editor.

Model behind the marketing automation editor:
- a flat workflow document with branch membership by id reference
- a recursive canvas layout
- pure graph mutations that keep branch references consistent
- a JSON-file store and a REST API over it
"""

__version__ = "0.1.0"

from flow_editor.editor.config import EditorSettings

__all__ = ["__version__", "EditorSettings"]
