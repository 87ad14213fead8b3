"""Settings for the flow editor.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Layout constants default to the canvas geometry the editor UI is drawn with;
overriding them only changes the coordinates the layout pass produces.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from flow_editor.editor.workflow.layout import LayoutConstants


class EditorSettings(BaseSettings):
    """Settings for the CLI and the automation store.

    Environment variables:
    - LOG_LEVEL               (optional)
    - FLOW_EDITOR_STATE_PATH  (optional)
    - FLOW_EDITOR_NODE_HEIGHT, FLOW_EDITOR_VERTICAL_GAP, FLOW_EDITOR_BRANCH_GAP,
      FLOW_EDITOR_DEPTH_GAP, FLOW_EDITOR_BRANCH_EXTRA_GAP  (optional)

    Notes:
        Tests can point at a specific env file via `EditorSettings(_env_file=path)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    state_path: Path = Field(
        default=Path("flow_state"),
        validation_alias="FLOW_EDITOR_STATE_PATH",
        description="Directory where automations are persisted",
    )

    node_height: int = Field(default=80, gt=0, validation_alias="FLOW_EDITOR_NODE_HEIGHT")
    vertical_gap: int = Field(default=100, ge=0, validation_alias="FLOW_EDITOR_VERTICAL_GAP")
    branch_gap: int = Field(default=180, ge=0, validation_alias="FLOW_EDITOR_BRANCH_GAP")
    depth_gap: int = Field(default=40, ge=0, validation_alias="FLOW_EDITOR_DEPTH_GAP")
    branch_extra_gap: int = Field(
        default=20, ge=0, validation_alias="FLOW_EDITOR_BRANCH_EXTRA_GAP"
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @property
    def automations_state_file(self) -> Path:
        """Path where automation records are persisted."""

        return self.state_path / "automations.json"

    def layout_constants(self) -> LayoutConstants:
        return LayoutConstants(
            node_height=self.node_height,
            vertical_gap=self.vertical_gap,
            branch_gap=self.branch_gap,
            depth_gap=self.depth_gap,
            branch_extra_gap=self.branch_extra_gap,
        )
