"""Marketing automation flow model.

This package holds the editor-side model of a flow:
- the catalog of trigger and action kinds
- the flat workflow document (one trigger, a list of action nodes)
- membership derived from branch arrays (no stored parent pointers)
- the recursive canvas layout
- the mutator, the only writer of a document
- the automation lifecycle (draft/active/paused/archived)

Nothing here performs I/O.
"""

from .document import ActionNode, StructuralError, Trigger, WorkflowDocument
from .layout import LayoutConstants, LayoutResult, Placement, layout_document
from .membership import check_integrity, is_branch_owned, top_level_sequence
from .mutator import (
    AddResult,
    DeletePolicy,
    add_to_branch,
    add_top_level,
    delete_node,
    move_top_level,
)

__all__ = [
    "ActionNode",
    "AddResult",
    "DeletePolicy",
    "LayoutConstants",
    "LayoutResult",
    "Placement",
    "StructuralError",
    "Trigger",
    "WorkflowDocument",
    "add_to_branch",
    "add_top_level",
    "check_integrity",
    "delete_node",
    "is_branch_owned",
    "layout_document",
    "move_top_level",
    "top_level_sequence",
]
