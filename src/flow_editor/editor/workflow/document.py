"""The workflow document: one trigger plus a flat list of action nodes.

Branch membership is never stored on a node. A node belongs to a branch only
because its id appears in a branching node's ``config`` (see
:mod:`flow_editor.editor.workflow.membership`).
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from dataclasses import dataclass, field

from .catalog import branch_keys_for


class StructuralError(ValueError):
    """A mutation would break the structure of the document."""


@dataclass(frozen=True, slots=True)
class Trigger:
    kind: str = ""
    config: dict[str, object] = field(default_factory=dict)

    @property
    def is_set(self) -> bool:
        return bool(self.kind)

    def to_json(self) -> dict[str, object]:
        return {"kind": self.kind, "config": copy.deepcopy(self.config)}

    @staticmethod
    def from_json(obj: dict[str, object]) -> Trigger:
        kind = obj.get("kind", obj.get("type"))
        config = obj.get("config")
        return Trigger(
            kind=kind if isinstance(kind, str) else "",
            config=copy.deepcopy(config) if isinstance(config, dict) else {},
        )


@dataclass(frozen=True, slots=True)
class ActionNode:
    id: str
    kind: str
    config: dict[str, object] = field(default_factory=dict)

    @property
    def branch_keys(self) -> tuple[str, str] | None:
        return branch_keys_for(self.kind)

    def branch(self, key: str) -> list[str]:
        """Ids in one branch array; empty for missing or malformed arrays."""

        raw = self.config.get(key)
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, str)]

    def with_config(self, config: dict[str, object]) -> ActionNode:
        return ActionNode(id=self.id, kind=self.kind, config=config)

    def to_json(self) -> dict[str, object]:
        return {"id": self.id, "kind": self.kind, "config": copy.deepcopy(self.config)}

    @staticmethod
    def from_json(obj: dict[str, object]) -> ActionNode | None:
        node_id = obj.get("id")
        kind = obj.get("kind", obj.get("type"))
        if not isinstance(node_id, str) or not node_id:
            return None
        config = obj.get("config")
        return ActionNode(
            id=node_id,
            kind=kind if isinstance(kind, str) else "",
            config=copy.deepcopy(config) if isinstance(config, dict) else {},
        )


@dataclass(frozen=True, slots=True)
class WorkflowDocument:
    """An immutable flow value.

    Every mutation produces a new document, which keeps undo trivial and lets the
    caller keep the previous value when an operation is refused.
    """

    trigger: Trigger = field(default_factory=Trigger)
    actions: tuple[ActionNode, ...] = ()

    def get(self, node_id: str) -> ActionNode | None:
        for node in self.actions:
            if node.id == node_id:
                return node
        return None

    def index_of(self, node_id: str) -> int | None:
        for idx, node in enumerate(self.actions):
            if node.id == node_id:
                return idx
        return None

    def ids(self) -> list[str]:
        return [node.id for node in self.actions]

    def replace(
        self,
        *,
        trigger: Trigger | None = None,
        actions: Iterable[ActionNode] | None = None,
    ) -> WorkflowDocument:
        return WorkflowDocument(
            trigger=self.trigger if trigger is None else trigger,
            actions=self.actions if actions is None else tuple(actions),
        )

    def to_json(self) -> dict[str, object]:
        return {
            "trigger": self.trigger.to_json(),
            "actions": [node.to_json() for node in self.actions],
        }

    @staticmethod
    def from_json(obj: dict[str, object]) -> WorkflowDocument:
        trigger_raw = obj.get("trigger")
        trigger = Trigger.from_json(trigger_raw) if isinstance(trigger_raw, dict) else Trigger()

        actions: list[ActionNode] = []
        actions_raw = obj.get("actions")
        if isinstance(actions_raw, list):
            for item in actions_raw:
                if not isinstance(item, dict):
                    continue
                node = ActionNode.from_json(item)
                if node is not None:
                    actions.append(node)
        return WorkflowDocument(trigger=trigger, actions=tuple(actions))
