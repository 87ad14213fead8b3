"""Unit tests for graph mutations.

Every operation returns a new document; the input value must never change.
"""

from __future__ import annotations

import random
import re
from collections import Counter
from collections.abc import Callable

import pytest

from flow_editor.editor.workflow.catalog import BRANCH_KEYS
from flow_editor.editor.workflow.document import StructuralError, WorkflowDocument
from flow_editor.editor.workflow.layout import layout_document
from flow_editor.editor.workflow.membership import (
    check_integrity,
    is_branch_owned,
    top_level_sequence,
)
from flow_editor.editor.workflow.mutator import (
    DeletePolicy,
    add_to_branch,
    add_top_level,
    delete_node,
    generate_action_id,
    move_adjacent,
    move_top_level,
    set_trigger,
    update_config,
    update_trigger_config,
)


def test_add_top_level_appends_with_default_config(id_factory: Callable[[], str]) -> None:
    result = add_top_level(WorkflowDocument(), "wait", id_factory=id_factory)

    assert result.node_id == "n1"
    node = result.document.get("n1")
    assert node is not None
    assert node.kind == "wait"
    assert node.config == {"waitDuration": 1, "waitUnit": "days"}


def test_add_top_level_after_id(
    canonical_document: WorkflowDocument, id_factory: Callable[[], str]
) -> None:
    result = add_top_level(canonical_document, "add_tag", after_id="A", id_factory=id_factory)

    assert result.document.ids() == ["A", "n1", "B", "C", "D"]
    assert top_level_sequence(result.document.actions) == ["A", "n1", "B"]
    assert canonical_document.ids() == ["A", "B", "C", "D"]


def test_add_top_level_unknown_after_id_appends(
    canonical_document: WorkflowDocument, id_factory: Callable[[], str]
) -> None:
    result = add_top_level(canonical_document, "wait", after_id="missing", id_factory=id_factory)

    assert result.document.ids()[-1] == "n1"


def test_add_top_level_unknown_kind_gets_empty_config(id_factory: Callable[[], str]) -> None:
    result = add_top_level(WorkflowDocument(), "go_to", id_factory=id_factory)

    assert result.document.get(result.node_id).config == {}  # type: ignore[union-attr]


def test_add_to_branch_appends_to_one_branch_only(
    canonical_document: WorkflowDocument, id_factory: Callable[[], str]
) -> None:
    result = add_to_branch(canonical_document, "B", "falseBranch", "wait", id_factory=id_factory)
    doc = result.document
    parent = doc.get("B")

    assert result.node_id == "n1"
    assert parent is not None
    assert parent.branch("falseBranch") == ["D", "n1"]
    assert parent.branch("trueBranch") == ["C"]
    assert doc.ids()[-1] == "n1"
    assert top_level_sequence(doc.actions) == ["A", "B"]
    # the original document still has the old branch
    assert canonical_document.get("B").branch("falseBranch") == ["D"]  # type: ignore[union-attr]


def test_add_to_branch_twice_creates_distinct_nodes(canonical_document: WorkflowDocument) -> None:
    first = add_to_branch(canonical_document, "B", "trueBranch", "wait")
    second = add_to_branch(first.document, "B", "trueBranch", "wait")

    assert first.node_id != second.node_id
    assert second.document.get(first.node_id).config == second.document.get(second.node_id).config  # type: ignore[union-attr]
    assert second.document.get("B").branch("trueBranch") == ["C", first.node_id, second.node_id]  # type: ignore[union-attr]


@pytest.mark.parametrize(
    ("parent_id", "branch_key"),
    [
        ("missing", "trueBranch"),
        ("A", "trueBranch"),
        ("B", "splitBranchA"),
        ("B", "nextAction"),
    ],
)
def test_add_to_branch_rejects_invalid_targets(
    canonical_document: WorkflowDocument, parent_id: str, branch_key: str
) -> None:
    with pytest.raises(StructuralError):
        add_to_branch(canonical_document, parent_id, branch_key, "wait")

    assert canonical_document.ids() == ["A", "B", "C", "D"]


def test_add_to_nested_branch(id_factory: Callable[[], str]) -> None:
    doc = add_top_level(WorkflowDocument(), "split", id_factory=id_factory).document
    doc = add_to_branch(doc, "n1", "splitBranchA", "condition", id_factory=id_factory).document
    doc = add_to_branch(doc, "n2", "trueBranch", "send_email", id_factory=id_factory).document

    assert top_level_sequence(doc.actions) == ["n1"]
    assert is_branch_owned("n3", doc.actions)
    positions = {p.id: (p.x, p.y) for p in layout_document(doc).placements}
    assert positions["n3"] == (0, 590)


def test_delete_branch_parent_promotes_children(canonical_document: WorkflowDocument) -> None:
    doc = delete_node(canonical_document, "B")

    assert doc.ids() == ["A", "C", "D"]
    assert top_level_sequence(doc.actions) == ["A", "C", "D"]
    assert check_integrity(doc) == []


def test_delete_promotion_is_logged(
    canonical_document: WorkflowDocument, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level("WARNING"):
        delete_node(canonical_document, "B")

    assert any(getattr(r, "promoted", None) == ["C", "D"] for r in caplog.records)


def test_delete_cascade_removes_subtree(id_factory: Callable[[], str]) -> None:
    doc = add_top_level(WorkflowDocument(), "condition", id_factory=id_factory).document
    doc = add_to_branch(doc, "n1", "trueBranch", "split", id_factory=id_factory).document
    doc = add_to_branch(doc, "n2", "splitBranchB", "wait", id_factory=id_factory).document
    doc = add_top_level(doc, "send_email", id_factory=id_factory).document

    result = delete_node(doc, "n1", DeletePolicy.CASCADE)

    assert result.ids() == ["n4"]


def test_delete_branch_child_strips_reference(canonical_document: WorkflowDocument) -> None:
    doc = delete_node(canonical_document, "C")

    assert doc.ids() == ["A", "B", "D"]
    assert doc.get("B").branch("trueBranch") == []  # type: ignore[union-attr]
    assert doc.get("B").branch("falseBranch") == ["D"]  # type: ignore[union-attr]


def test_delete_unknown_id_is_noop(canonical_document: WorkflowDocument) -> None:
    assert delete_node(canonical_document, "nope") is canonical_document


def test_move_top_level_uses_raw_indices(
    canonical_document: WorkflowDocument, id_factory: Callable[[], str]
) -> None:
    doc = add_top_level(canonical_document, "wait", id_factory=id_factory).document
    assert doc.ids() == ["A", "B", "C", "D", "n1"]

    moved = move_top_level(doc, "n1", "A")
    assert moved.ids() == ["n1", "A", "B", "C", "D"]
    assert top_level_sequence(moved.actions) == ["n1", "A", "B"]

    back = move_top_level(moved, "n1", "B")
    assert back.ids() == ["A", "B", "n1", "C", "D"]


def test_move_top_level_rejects_branch_owned_nodes(canonical_document: WorkflowDocument) -> None:
    with pytest.raises(StructuralError):
        move_top_level(canonical_document, "A", "C")
    with pytest.raises(StructuralError):
        move_top_level(canonical_document, "D", "A")
    with pytest.raises(StructuralError):
        move_top_level(canonical_document, "A", "missing")


def test_move_adjacent(canonical_document: WorkflowDocument) -> None:
    assert move_adjacent(canonical_document, "B", "up").ids() == ["B", "A", "C", "D"]
    assert move_adjacent(canonical_document, "A", "up") is canonical_document
    assert move_adjacent(canonical_document, "D", "down") is canonical_document
    with pytest.raises(StructuralError):
        move_adjacent(canonical_document, "A", "sideways")


def test_update_config_merges_fields(canonical_document: WorkflowDocument) -> None:
    doc = update_config(canonical_document, "C", {"emailTemplateId": "tpl-1"})

    assert doc.get("C").config == {"subject": "Welcome", "emailTemplateId": "tpl-1"}  # type: ignore[union-attr]
    assert canonical_document.get("C").config == {"subject": "Welcome"}  # type: ignore[union-attr]


def test_update_config_refuses_branch_arrays(canonical_document: WorkflowDocument) -> None:
    with pytest.raises(StructuralError, match="trueBranch"):
        update_config(canonical_document, "B", {"trueBranch": ["A"]})
    with pytest.raises(StructuralError):
        update_config(canonical_document, "missing", {"subject": "x"})


def test_set_trigger_uses_catalog_default(canonical_document: WorkflowDocument) -> None:
    doc = set_trigger(canonical_document, "date_based")

    assert doc.trigger.kind == "date_based"
    assert doc.trigger.config == {"schedule": {"type": "once", "time": "09:00"}}
    assert doc.actions == canonical_document.actions

    doc = update_trigger_config(doc, {"schedule": {"type": "recurring", "time": "18:30"}})
    assert doc.trigger.config["schedule"] == {"type": "recurring", "time": "18:30"}


def test_generated_ids_have_expected_shape() -> None:
    assert re.fullmatch(r"action-\d+-[0-9a-z]{9}", generate_action_id())


def test_colliding_id_factory_is_retried(canonical_document: WorkflowDocument) -> None:
    candidates = iter(["A", "B", "fresh"])

    result = add_top_level(canonical_document, "wait", id_factory=lambda: next(candidates))

    assert result.node_id == "fresh"


def _branch_references(doc: WorkflowDocument) -> Counter[str]:
    counts: Counter[str] = Counter()
    for node in doc.actions:
        for key in BRANCH_KEYS:
            if node.branch_keys and key in node.branch_keys:
                counts.update(node.branch(key))
    return counts


@pytest.mark.parametrize("seed", range(5))
def test_random_edit_sessions_keep_invariants(seed: int) -> None:
    rng = random.Random(seed)
    kinds = ["wait", "send_email", "condition", "split", "add_tag"]
    doc = WorkflowDocument()

    for _ in range(60):
        ids = doc.ids()
        branching = [n for n in doc.actions if n.branch_keys]
        top = top_level_sequence(doc.actions)
        op = rng.choice(["top", "branch", "delete", "move"])
        if op == "top" or not ids:
            doc = add_top_level(doc, rng.choice(kinds), rng.choice([None, *ids])).document
        elif op == "branch" and branching:
            parent = rng.choice(branching)
            key = rng.choice(parent.branch_keys)  # type: ignore[arg-type]
            doc = add_to_branch(doc, parent.id, key, rng.choice(kinds)).document
        elif op == "delete":
            policy = rng.choice(list(DeletePolicy))
            doc = delete_node(doc, rng.choice(ids), policy)
        elif op == "move" and len(top) > 1:
            doc = move_top_level(doc, rng.choice(top), rng.choice(top))

        assert check_integrity(doc) == []
        assert len(set(doc.ids())) == len(doc.ids())
        assert all(count == 1 for count in _branch_references(doc).values())
        # every node is either top-level or reachable through branches
        placed = {p.id for p in layout_document(doc).placements}
        assert set(doc.ids()) <= placed
