"""Configuration for the REST server."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Settings for the automation REST API.

    The state path is shared with :class:`flow_editor.editor.config.EditorSettings`
    so the CLI and the server read the same store.
    """

    state_path: Path = Field(
        default=Path("flow_state"),
        validation_alias="FLOW_EDITOR_STATE_PATH",
    )

    # Dev-friendly CORS for the editor UI. Override via FLOW_EDITOR_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        validation_alias="FLOW_EDITOR_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    @property
    def automations_state_file(self) -> Path:
        return self.state_path / "automations.json"

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
