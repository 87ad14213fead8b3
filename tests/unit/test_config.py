"""Unit tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from flow_editor.editor.config import EditorSettings
from flow_editor.editor.workflow.layout import DEFAULT_CONSTANTS
from flow_editor.server.config import ServerSettings


@pytest.mark.usefixtures("isolated_env")
def test_defaults() -> None:
    settings = EditorSettings()

    assert settings.log_level == "INFO"
    assert settings.state_path == Path("flow_state")
    assert settings.automations_state_file == Path("flow_state") / "automations.json"
    assert settings.layout_constants() == DEFAULT_CONSTANTS


@pytest.mark.usefixtures("isolated_env")
def test_settings_load_from_dotenv(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "\n".join(
            [
                "LOG_LEVEL=DEBUG",
                "FLOW_EDITOR_STATE_PATH=/var/lib/flows",
                "FLOW_EDITOR_BRANCH_GAP=250",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = EditorSettings()

    assert settings.log_level == "DEBUG"
    assert settings.state_path == Path("/var/lib/flows")
    assert settings.layout_constants().branch_gap == 250
    assert ServerSettings().automations_state_file == Path("/var/lib/flows") / "automations.json"


@pytest.mark.usefixtures("isolated_env")
def test_invalid_layout_override_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLOW_EDITOR_NODE_HEIGHT", "0")

    with pytest.raises(ValidationError):
        EditorSettings()


@pytest.mark.usefixtures("isolated_env")
def test_cors_origins_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLOW_EDITOR_CORS_ORIGINS", " http://a.test , ,http://b.test")

    assert ServerSettings().parsed_cors_origins() == ["http://a.test", "http://b.test"]
