"""Canvas layout for a workflow document.

The layout is a pure recursive pass. Each call positions one sequence (the top
level or a single branch) and returns how far down it extended, so whatever
follows a branching node starts below the taller of its two branches at any
nesting depth.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .document import ActionNode, WorkflowDocument
from .membership import top_level_sequence

TRIGGER_NODE_ID = "trigger"

BRANCH_LABELS: dict[str, str] = {
    "trueBranch": "true",
    "falseBranch": "false",
    "splitBranchA": "A",
    "splitBranchB": "B",
}


@dataclass(frozen=True, slots=True)
class LayoutConstants:
    node_width: int = 200
    node_height: int = 80
    vertical_gap: int = 100
    branch_gap: int = 180
    depth_gap: int = 40
    branch_extra_gap: int = 20
    origin_x: int = 400
    origin_y: int = 50

    @property
    def step(self) -> int:
        """Vertical advance after a plain node."""

        return self.node_height + self.vertical_gap

    def branch_offset(self, depth: int) -> int:
        return self.branch_gap + depth * self.depth_gap


DEFAULT_CONSTANTS = LayoutConstants()


@dataclass(frozen=True, slots=True)
class Placement:
    id: str
    x: int
    y: int
    kind: str

    def to_json(self) -> dict[str, object]:
        return {"id": self.id, "x": self.x, "y": self.y, "kind": self.kind}


@dataclass(frozen=True, slots=True)
class Connection:
    source: str
    target: str
    # None for a plain sequence link.
    branch: str | None = None

    def to_json(self) -> dict[str, object]:
        return {"source": self.source, "target": self.target, "branch": self.branch}


@dataclass(frozen=True, slots=True)
class LayoutResult:
    placements: tuple[Placement, ...]
    end_y: int

    def position_of(self, node_id: str) -> tuple[int, int] | None:
        for placement in self.placements:
            if placement.id == node_id:
                return placement.x, placement.y
        return None

    def to_json(self) -> dict[str, object]:
        return {"placements": [p.to_json() for p in self.placements], "endY": self.end_y}


def layout_sequence(
    ids: Sequence[str],
    start_y: int,
    start_x: int,
    depth: int = 0,
    *,
    nodes: Mapping[str, ActionNode],
    constants: LayoutConstants = DEFAULT_CONSTANTS,
    ancestors: frozenset[str] = frozenset(),
) -> tuple[list[Placement], int]:
    """Place one sequence of ids and every branch below it.

    Returns the placements of the whole subtree and the y coordinate just past
    its lowest node. Ids missing from ``nodes`` are skipped without advancing,
    as are ids already on the current branch path (malformed, cyclic input).
    """

    placements: list[Placement] = []
    y = start_y

    for node_id in ids:
        node = nodes.get(node_id)
        if node is None or node_id in ancestors:
            continue

        placements.append(Placement(id=node.id, x=start_x, y=y, kind=node.kind))

        keys = node.branch_keys
        if keys is None:
            y += constants.step
            continue

        offset = constants.branch_offset(depth)
        below = y + constants.step
        ends: list[int] = []
        for key, x in ((keys[0], start_x - offset), (keys[1], start_x + offset)):
            branch = node.branch(key)
            if not branch:
                ends.append(below)
                continue
            sub, end = layout_sequence(
                branch,
                below,
                x,
                depth + 1,
                nodes=nodes,
                constants=constants,
                ancestors=ancestors | {node_id},
            )
            placements.extend(sub)
            ends.append(end)

        y = max(ends) + constants.branch_extra_gap

    return placements, y


def layout_document(
    document: WorkflowDocument, constants: LayoutConstants = DEFAULT_CONSTANTS
) -> LayoutResult:
    """Position the trigger and every node reachable from the top-level sequence.

    Nodes that nothing reaches (for example a stray id owned by a dangling
    cycle) are not placed.
    """

    trigger = Placement(
        id=TRIGGER_NODE_ID,
        x=constants.origin_x,
        y=constants.origin_y,
        kind=document.trigger.kind,
    )
    nodes = {node.id: node for node in document.actions}
    placements, end_y = layout_sequence(
        top_level_sequence(document.actions),
        constants.origin_y + constants.step,
        constants.origin_x,
        0,
        nodes=nodes,
        constants=constants,
    )
    return LayoutResult(placements=(trigger, *placements), end_y=end_y)


def connections(document: WorkflowDocument, result: LayoutResult) -> list[Connection]:
    """Lines drawn between placed nodes.

    - trigger to the first top-level node
    - each node to the next id of its own sequence
    - each branching node to every node of each of its branches
    """

    placed = {p.id for p in result.placements}
    nodes = {node.id: node for node in document.actions}
    out: list[Connection] = []
    visited: set[str] = set()

    def _sequence(ids: Sequence[str]) -> None:
        for idx, node_id in enumerate(ids):
            node = nodes.get(node_id)
            if node is None or node_id not in placed or node_id in visited:
                continue
            visited.add(node_id)
            if idx + 1 < len(ids) and ids[idx + 1] in placed:
                out.append(Connection(source=node_id, target=ids[idx + 1]))
            keys = node.branch_keys
            if keys is None:
                continue
            for key in keys:
                branch = node.branch(key)
                for child in branch:
                    if child in placed:
                        out.append(
                            Connection(source=node_id, target=child, branch=BRANCH_LABELS[key])
                        )
                _sequence(branch)

    top = top_level_sequence(document.actions)
    if top:
        out.append(Connection(source=TRIGGER_NODE_ID, target=top[0]))
    _sequence(top)
    return out


def describe_node(node: ActionNode) -> str:
    """One-line summary shown on a canvas card."""

    config = node.config
    if node.kind == "send_email":
        return str(config.get("subject") or "No subject")
    if node.kind in {"add_tag", "remove_tag"}:
        return str(config.get("tagName") or "No tag")
    if node.kind == "wait":
        return f"Wait {config.get('waitDuration') or 1} {config.get('waitUnit') or 'days'}"
    if node.kind == "send_notification":
        return str(config.get("notificationMessage") or "No message")[:30]
    if node.kind == "webhook":
        return str(config.get("webhookUrl") or "No URL")[:30]
    if node.kind == "condition":
        conditions = config.get("conditions")
        count = len(conditions) if isinstance(conditions, list) else 0
        return f"If {count} condition(s)"
    if node.kind == "split":
        pct = config.get("splitPercentageA")
        pct_a = pct if isinstance(pct, int) and pct else 50
        return f"A/B: {pct_a}% / {100 - pct_a}%"
    return "Click to configure"
