"""FastAPI server adapter for the flow editor.

Design intent:
- Keep the flow model in `flow_editor.editor.workflow`
- Keep server-specific concerns (routing, CORS, HTTP error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from flow_editor.server.app import create_app
