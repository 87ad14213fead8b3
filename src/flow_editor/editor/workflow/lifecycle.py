from __future__ import annotations

from enum import Enum

from .document import WorkflowDocument


class AutomationStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


ALLOWED_TRANSITIONS: dict[AutomationStatus, set[AutomationStatus]] = {
    AutomationStatus.DRAFT: {AutomationStatus.ACTIVE, AutomationStatus.ARCHIVED},
    AutomationStatus.ACTIVE: {AutomationStatus.PAUSED, AutomationStatus.ARCHIVED},
    AutomationStatus.PAUSED: {AutomationStatus.ACTIVE, AutomationStatus.ARCHIVED},
    AutomationStatus.ARCHIVED: {AutomationStatus.DRAFT},
}


class IllegalTransitionError(ValueError):
    pass


class ActivationError(IllegalTransitionError):
    """The flow is not complete enough to run."""


def activation_problems(document: WorkflowDocument) -> list[str]:
    problems: list[str] = []
    if not document.trigger.is_set:
        problems.append("A trigger must be selected")
    if not document.actions:
        problems.append("At least one action is required")
    return problems


def transition(
    *, current: AutomationStatus, to: AutomationStatus, document: WorkflowDocument
) -> AutomationStatus:
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    if to is AutomationStatus.ACTIVE:
        problems = activation_problems(document)
        if problems:
            raise ActivationError("; ".join(problems))
    return to


def can_replace_trigger(status: AutomationStatus) -> bool:
    """The trigger is fixed while the automation is live."""

    return status is not AutomationStatus.ACTIVE
