"""Derive tree structure from the flat action list.

Nothing here is cached: membership is recomputed from the branch arrays on every
call so there is exactly one source of truth. The scans are O(n*m), which is
fine for editor-sized flows (tens of nodes).
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from .document import ActionNode, WorkflowDocument


def _owned_ids(node: ActionNode) -> list[str]:
    keys = node.branch_keys
    if keys is None:
        return []
    first, second = keys
    return [*node.branch(first), *node.branch(second)]


def is_branch_owned(node_id: str, actions: Sequence[ActionNode]) -> bool:
    """True if any condition/split node lists ``node_id`` in one of its branches."""

    for node in actions:
        keys = node.branch_keys
        if keys is None:
            continue
        for key in keys:
            if node_id in node.branch(key):
                return True
    return False


def top_level_sequence(actions: Sequence[ActionNode]) -> list[str]:
    """Ids of the nodes that no branch references, in storage order."""

    return [node.id for node in actions if not is_branch_owned(node.id, actions)]


def owner_of(node_id: str, actions: Sequence[ActionNode]) -> tuple[str, str] | None:
    """Return ``(owner_id, branch_key)`` for a branch-owned node, else None.

    When a (malformed) document lists an id in several branches, the first
    owner in storage order wins.
    """

    for node in actions:
        keys = node.branch_keys
        if keys is None:
            continue
        for key in keys:
            if node_id in node.branch(key):
                return node.id, key
    return None


def descendants(node_id: str, actions: Sequence[ActionNode]) -> list[str]:
    """All ids owned transitively by ``node_id``, depth-first in branch order.

    Unresolvable ids are skipped and each id is visited at most once, so this
    terminates even on documents that violate the ownership invariants.
    """

    by_id = {node.id: node for node in actions}
    out: list[str] = []
    seen: set[str] = {node_id}

    def _walk(current: str) -> None:
        node = by_id.get(current)
        if node is None:
            return
        for child in _owned_ids(node):
            if child in seen or child not in by_id:
                continue
            seen.add(child)
            out.append(child)
            _walk(child)

    _walk(node_id)
    return out


def check_integrity(document: WorkflowDocument) -> list[str]:
    """Validate the structural invariants of a document.

    Returns a list of error messages (empty = valid). Business rules (empty
    subjects, missing templates, ...) are not checked here.
    """

    errors: list[str] = []
    actions = document.actions

    counts = Counter(node.id for node in actions)
    for node_id, count in counts.items():
        if count > 1:
            errors.append(f"Duplicate action id: {node_id} ({count} occurrences)")

    known = set(counts)
    owners: dict[str, list[str]] = {}
    for node in actions:
        for child in _owned_ids(node):
            owners.setdefault(child, []).append(node.id)
            if child not in known:
                errors.append(f"Branch of {node.id} references unknown action: {child}")

    for child, parents in owners.items():
        if len(parents) > 1:
            errors.append(
                f"Action {child} is referenced by more than one branch: {', '.join(parents)}"
            )

    # With single ownership, a cycle shows up as an owner chain that revisits a node.
    parent_of = {child: parents[0] for child, parents in owners.items()}
    reported: set[str] = set()
    for start in parent_of:
        chain: list[str] = []
        current: str | None = start
        while current is not None and current in parent_of:
            if current in chain:
                cycle = chain[chain.index(current) :]
                key = min(cycle)
                if key not in reported:
                    reported.add(key)
                    errors.append(f"Branch ownership cycle: {' -> '.join([*cycle, current])}")
                break
            chain.append(current)
            current = parent_of[current]

    return errors
