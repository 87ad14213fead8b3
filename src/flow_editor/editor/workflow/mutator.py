"""Graph mutations over a workflow document.

This module is the only writer of :class:`WorkflowDocument`. Every operation is a
pure function: it returns a new document and never touches its input, so a
refused operation (``StructuralError``) leaves the caller's value as it was.
"""

from __future__ import annotations

import copy
import logging
import random
import string
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum

from .catalog import BRANCH_KEYS, default_action_config, default_trigger_config
from .document import ActionNode, StructuralError, Trigger, WorkflowDocument
from .membership import descendants, is_branch_owned

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]

_ID_ALPHABET = string.digits + string.ascii_lowercase


class DeletePolicy(str, Enum):
    """What happens to the branches of a deleted condition/split node.

    PROMOTE keeps the former children in the document; since nothing references
    them any more they become part of the top-level sequence. CASCADE removes the
    whole subtree.
    """

    PROMOTE = "promote"
    CASCADE = "cascade"


@dataclass(frozen=True, slots=True)
class AddResult:
    document: WorkflowDocument
    node_id: str


def generate_action_id() -> str:
    """``action-<epoch ms>-<9 base36 chars>``."""

    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"action-{int(time.time() * 1000)}-{suffix}"


def _fresh_id(document: WorkflowDocument, id_factory: IdFactory | None) -> str:
    factory = id_factory or generate_action_id
    existing = set(document.ids())
    for _ in range(100):
        candidate = factory()
        if candidate and candidate not in existing:
            return candidate
    raise StructuralError("Could not generate a unique action id")


def _new_node(document: WorkflowDocument, kind: str, id_factory: IdFactory | None) -> ActionNode:
    return ActionNode(
        id=_fresh_id(document, id_factory),
        kind=kind,
        config=default_action_config(kind),
    )


def add_top_level(
    document: WorkflowDocument,
    kind: str,
    after_id: str | None = None,
    *,
    id_factory: IdFactory | None = None,
) -> AddResult:
    """Add a node to the main flow.

    With ``after_id`` the node is spliced right after that node's position in
    storage; top-level nodes keep their relative storage order, so this is the
    same as inserting after it in the top-level view. Otherwise (or when
    ``after_id`` is unknown) it is appended.
    """

    node = _new_node(document, kind, id_factory)
    actions = list(document.actions)
    index = document.index_of(after_id) if after_id else None
    if index is None:
        actions.append(node)
    else:
        actions.insert(index + 1, node)

    logger.debug(
        "Added top-level action",
        extra={"node_id": node.id, "kind": kind, "after_id": after_id},
    )
    return AddResult(document=document.replace(actions=actions), node_id=node.id)


def add_to_branch(
    document: WorkflowDocument,
    parent_id: str,
    branch_key: str,
    kind: str,
    *,
    id_factory: IdFactory | None = None,
) -> AddResult:
    """Append a new node to one branch of a condition/split node.

    The node itself is appended to the flat list; only the parent's branch
    array decides where it shows up.
    """

    parent = document.get(parent_id)
    if parent is None:
        raise StructuralError(f"Unknown parent action: {parent_id}")
    keys = parent.branch_keys
    if keys is None or branch_key not in keys:
        raise StructuralError(
            f"Action {parent_id} ({parent.kind or 'unknown'}) has no branch {branch_key!r}"
        )

    node = _new_node(document, kind, id_factory)
    config = copy.deepcopy(parent.config)
    config[branch_key] = [*parent.branch(branch_key), node.id]
    updated_parent = parent.with_config(config)

    actions = [updated_parent if n.id == parent_id else n for n in document.actions]
    actions.append(node)

    logger.debug(
        "Added branch action",
        extra={"node_id": node.id, "kind": kind, "parent_id": parent_id, "branch": branch_key},
    )
    return AddResult(document=document.replace(actions=actions), node_id=node.id)


def _strip_references(node: ActionNode, removed: set[str]) -> ActionNode:
    keys = node.branch_keys
    if keys is None:
        return node
    config = copy.deepcopy(node.config)
    changed = False
    for key in keys:
        raw = config.get(key)
        if not isinstance(raw, list):
            continue
        kept = [item for item in raw if item not in removed]
        if len(kept) != len(raw):
            config[key] = kept
            changed = True
    return node.with_config(config) if changed else node


def delete_node(
    document: WorkflowDocument,
    node_id: str,
    policy: DeletePolicy = DeletePolicy.PROMOTE,
) -> WorkflowDocument:
    """Remove a node and every branch reference to it.

    With the default PROMOTE policy the children of a deleted condition/split
    stay in the document and reappear in the main flow. CASCADE deletes them
    along with their own descendants.
    """

    target = document.get(node_id)
    if target is None:
        return document

    removed = {node_id}
    if policy is DeletePolicy.CASCADE:
        removed.update(descendants(node_id, document.actions))
    elif target.branch_keys is not None:
        promoted = [child for key in target.branch_keys for child in target.branch(key)]
        if promoted:
            logger.warning(
                "Deleted branching action; its branch children move to the top level",
                extra={"node_id": node_id, "promoted": promoted},
            )

    actions = [
        _strip_references(node, removed) for node in document.actions if node.id not in removed
    ]
    logger.debug(
        "Deleted action",
        extra={"node_id": node_id, "policy": policy.value, "removed": sorted(removed)},
    )
    return document.replace(actions=actions)


def move_top_level(document: WorkflowDocument, from_id: str, to_id: str) -> WorkflowDocument:
    """Move ``from_id`` to the storage position currently held by ``to_id``.

    Indices are raw positions in the flat list. Both nodes must be top-level;
    moving relative to a branch-owned node has no defined meaning and is
    refused.
    """

    from_index = document.index_of(from_id)
    to_index = document.index_of(to_id)
    if from_index is None or to_index is None:
        raise StructuralError(f"Unknown action: {from_id if from_index is None else to_id}")
    for node_id in (from_id, to_id):
        if is_branch_owned(node_id, document.actions):
            raise StructuralError(f"Action {node_id} belongs to a branch and cannot be reordered")
    if from_index == to_index:
        return document

    actions = list(document.actions)
    moved = actions.pop(from_index)
    actions.insert(to_index, moved)
    return document.replace(actions=actions)


def move_adjacent(document: WorkflowDocument, node_id: str, direction: str) -> WorkflowDocument:
    """Swap a node with its raw neighbour (list view up/down buttons)."""

    if direction not in {"up", "down"}:
        raise StructuralError(f"Unknown direction: {direction!r}")
    index = document.index_of(node_id)
    if index is None:
        raise StructuralError(f"Unknown action: {node_id}")
    other = index - 1 if direction == "up" else index + 1
    if other < 0 or other >= len(document.actions):
        return document

    actions = list(document.actions)
    actions[index], actions[other] = actions[other], actions[index]
    return document.replace(actions=actions)


def update_config(
    document: WorkflowDocument, node_id: str, updates: Mapping[str, object]
) -> WorkflowDocument:
    """Merge field-level updates into a node's config.

    Branch arrays are off limits: ownership only changes through
    :func:`add_to_branch` and :func:`delete_node`.
    """

    node = document.get(node_id)
    if node is None:
        raise StructuralError(f"Unknown action: {node_id}")
    touched = sorted(set(updates) & set(BRANCH_KEYS))
    if touched:
        raise StructuralError(f"Branch arrays cannot be edited directly: {', '.join(touched)}")

    config = copy.deepcopy(node.config)
    config.update(copy.deepcopy(dict(updates)))
    updated = node.with_config(config)
    return document.replace(actions=[updated if n.id == node_id else n for n in document.actions])


def set_trigger(
    document: WorkflowDocument, kind: str, config: Mapping[str, object] | None = None
) -> WorkflowDocument:
    """Replace the trigger. Without ``config`` the catalog default is used."""

    trigger_config = (
        default_trigger_config(kind) if config is None else copy.deepcopy(dict(config))
    )
    return document.replace(trigger=Trigger(kind=kind, config=trigger_config))


def update_trigger_config(
    document: WorkflowDocument, updates: Mapping[str, object]
) -> WorkflowDocument:
    config = copy.deepcopy(document.trigger.config)
    config.update(copy.deepcopy(dict(updates)))
    return document.replace(trigger=Trigger(kind=document.trigger.kind, config=config))
