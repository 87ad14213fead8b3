"""Test configuration and fixtures."""

from __future__ import annotations

import itertools
from collections.abc import Callable

import pytest

from flow_editor.editor.workflow.document import ActionNode, Trigger, WorkflowDocument


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Deterministic ids: n1, n2, ..."""
    counter = itertools.count(1)
    return lambda: f"n{next(counter)}"


@pytest.fixture
def canonical_document() -> WorkflowDocument:
    """A: wait, B: condition(true=[C], false=[D]), C: send_email, D: add_tag."""
    return WorkflowDocument(
        trigger=Trigger(kind="form_submission", config={}),
        actions=(
            ActionNode(id="A", kind="wait", config={"waitDuration": 1, "waitUnit": "days"}),
            ActionNode(
                id="B",
                kind="condition",
                config={
                    "conditions": [{"field": "email", "operator": "contains", "value": "@"}],
                    "conditionOperator": "AND",
                    "trueBranch": ["C"],
                    "falseBranch": ["D"],
                },
            ),
            ActionNode(id="C", kind="send_email", config={"subject": "Welcome"}),
            ActionNode(id="D", kind="add_tag", config={"tagName": "cold"}),
        ),
    )


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Run with no flow-editor env vars and an empty working directory."""
    for name in (
        "LOG_LEVEL",
        "FLOW_EDITOR_STATE_PATH",
        "FLOW_EDITOR_NODE_HEIGHT",
        "FLOW_EDITOR_VERTICAL_GAP",
        "FLOW_EDITOR_BRANCH_GAP",
        "FLOW_EDITOR_DEPTH_GAP",
        "FLOW_EDITOR_BRANCH_EXTRA_GAP",
        "FLOW_EDITOR_CORS_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
