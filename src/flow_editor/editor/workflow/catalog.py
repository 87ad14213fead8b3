"""Static registries of trigger and action kinds.

Defaults are consulted only when a node (or trigger) is created. Later edits
never look at the catalog again, so schema drift in stored documents is
tolerated: unknown kinds simply get an empty config.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import Enum


class TriggerKind(str, Enum):
    FORM_SUBMISSION = "form_submission"
    LANDING_PAGE_VISIT = "landing_page_visit"
    EMAIL_OPENED = "email_opened"
    EMAIL_CLICKED = "email_clicked"
    CONTACT_CREATED = "contact_created"
    CONTACT_UPDATED = "contact_updated"
    TAG_ADDED = "tag_added"
    DEAL_STAGE_CHANGED = "deal_stage_changed"
    DEAL_WON = "deal_won"
    DATE_BASED = "date_based"
    WEBHOOK = "webhook"


class ActionKind(str, Enum):
    SEND_EMAIL = "send_email"
    SEND_WHATSAPP = "send_whatsapp"
    ADD_TAG = "add_tag"
    REMOVE_TAG = "remove_tag"
    UPDATE_CONTACT = "update_contact"
    SEND_NOTIFICATION = "send_notification"
    WEBHOOK = "webhook"
    WAIT = "wait"
    CONDITION = "condition"
    SPLIT = "split"


@dataclass(frozen=True, slots=True)
class TriggerSpec:
    kind: TriggerKind
    label: str
    category: str
    description: str
    default_config: dict[str, object]
    variables: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ActionSpec:
    kind: ActionKind
    label: str
    description: str
    default_config: dict[str, object]
    # Ordered (first, second): first is laid out to the left, second to the right.
    branch_keys: tuple[str, str] | None = None

    @property
    def is_branching(self) -> bool:
        return self.branch_keys is not None


CONDITION_OPERATORS: tuple[str, ...] = (
    "equals",
    "not_equals",
    "contains",
    "not_contains",
    "greater_than",
    "less_than",
    "is_empty",
    "is_not_empty",
)

WAIT_UNITS: tuple[str, ...] = ("minutes", "hours", "days")
WEBHOOK_METHODS: tuple[str, ...] = ("GET", "POST", "PUT")

COMMON_VARIABLES: tuple[str, ...] = (
    "{{contact.firstName}}",
    "{{contact.lastName}}",
    "{{contact.email}}",
    "{{contact.phone}}",
    "{{contact.company}}",
    "{{contact.position}}",
    "{{today}}",
    "{{now}}",
)

TRIGGERS: dict[TriggerKind, TriggerSpec] = {
    spec.kind: spec
    for spec in (
        TriggerSpec(
            kind=TriggerKind.FORM_SUBMISSION,
            label="Form submission",
            category="marketing",
            description="When someone submits a form",
            default_config={},
            variables=("{{form.name}}", "{{form.submittedAt}}"),
        ),
        TriggerSpec(
            kind=TriggerKind.LANDING_PAGE_VISIT,
            label="Landing page visit",
            category="marketing",
            description="When someone visits a landing page",
            default_config={},
            variables=("{{page.name}}", "{{page.url}}", "{{visit.date}}"),
        ),
        TriggerSpec(
            kind=TriggerKind.EMAIL_OPENED,
            label="Email opened",
            category="marketing",
            description="When a campaign email is opened",
            default_config={},
            variables=("{{email.subject}}", "{{email.campaign}}", "{{email.openedAt}}"),
        ),
        TriggerSpec(
            kind=TriggerKind.EMAIL_CLICKED,
            label="Email clicked",
            category="marketing",
            description="When a link in an email is clicked",
            default_config={},
            variables=("{{email.subject}}", "{{link.url}}", "{{link.clickedAt}}"),
        ),
        TriggerSpec(
            kind=TriggerKind.CONTACT_CREATED,
            label="Contact created",
            category="contact",
            description="When a contact is created",
            default_config={},
            variables=("{{contact.source}}", "{{contact.createdAt}}"),
        ),
        TriggerSpec(
            kind=TriggerKind.CONTACT_UPDATED,
            label="Contact updated",
            category="contact",
            description="When a contact is updated",
            default_config={},
            variables=(
                "{{contact.updatedField}}",
                "{{contact.oldValue}}",
                "{{contact.newValue}}",
            ),
        ),
        TriggerSpec(
            kind=TriggerKind.TAG_ADDED,
            label="Tag added",
            category="contact",
            description="When a tag is added to a contact",
            default_config={},
            variables=("{{tag.name}}", "{{tag.addedAt}}"),
        ),
        TriggerSpec(
            kind=TriggerKind.DEAL_STAGE_CHANGED,
            label="Deal stage changed",
            category="sales",
            description="When a deal moves to another stage",
            default_config={},
            variables=(
                "{{deal.title}}",
                "{{deal.value}}",
                "{{deal.previousStage}}",
                "{{deal.currentStage}}",
            ),
        ),
        TriggerSpec(
            kind=TriggerKind.DEAL_WON,
            label="Deal won",
            category="sales",
            description="When a deal is won",
            default_config={},
            variables=("{{deal.title}}", "{{deal.value}}", "{{deal.wonAt}}", "{{deal.assignee}}"),
        ),
        TriggerSpec(
            kind=TriggerKind.DATE_BASED,
            label="Scheduled",
            category="system",
            description="On a specific date and time",
            default_config={"schedule": {"type": "once", "time": "09:00"}},
            variables=("{{schedule.date}}", "{{schedule.time}}"),
        ),
        TriggerSpec(
            kind=TriggerKind.WEBHOOK,
            label="Incoming webhook",
            category="system",
            description="When an external webhook is received",
            default_config={},
            variables=("{{webhook.data}}", "{{webhook.receivedAt}}"),
        ),
    )
}

ACTIONS: dict[ActionKind, ActionSpec] = {
    spec.kind: spec
    for spec in (
        ActionSpec(
            kind=ActionKind.SEND_EMAIL,
            label="Send email",
            description="Send an email to the contact",
            default_config={"subject": ""},
        ),
        ActionSpec(
            kind=ActionKind.SEND_WHATSAPP,
            label="Send WhatsApp",
            description="Send a WhatsApp template message",
            default_config={},
        ),
        ActionSpec(
            kind=ActionKind.ADD_TAG,
            label="Add tag",
            description="Add a tag to the contact",
            default_config={"tagName": ""},
        ),
        ActionSpec(
            kind=ActionKind.REMOVE_TAG,
            label="Remove tag",
            description="Remove a tag from the contact",
            default_config={"tagName": ""},
        ),
        ActionSpec(
            kind=ActionKind.UPDATE_CONTACT,
            label="Update contact",
            description="Update a contact field",
            default_config={},
        ),
        ActionSpec(
            kind=ActionKind.SEND_NOTIFICATION,
            label="Notify team",
            description="Send an internal notification",
            default_config={"notificationMessage": ""},
        ),
        ActionSpec(
            kind=ActionKind.WEBHOOK,
            label="Call webhook",
            description="Call an external endpoint",
            default_config={"webhookUrl": "", "webhookMethod": "POST"},
        ),
        ActionSpec(
            kind=ActionKind.WAIT,
            label="Wait",
            description="Wait before continuing",
            default_config={"waitDuration": 1, "waitUnit": "days"},
        ),
        ActionSpec(
            kind=ActionKind.CONDITION,
            label="Condition",
            description="Branch on contact data (if/else)",
            default_config={
                "conditions": [{"field": "", "operator": "equals", "value": ""}],
                "conditionOperator": "AND",
                "trueBranch": [],
                "falseBranch": [],
            },
            branch_keys=("trueBranch", "falseBranch"),
        ),
        ActionSpec(
            kind=ActionKind.SPLIT,
            label="A/B split",
            description="Split traffic between two paths",
            default_config={
                "splitPercentageA": 50,
                "splitBranchA": [],
                "splitBranchB": [],
                "splitName": "",
            },
            branch_keys=("splitBranchA", "splitBranchB"),
        ),
    )
}

BRANCH_KEYS: tuple[str, ...] = ("trueBranch", "falseBranch", "splitBranchA", "splitBranchB")


def _action_spec(kind: str) -> ActionSpec | None:
    try:
        return ACTIONS[ActionKind(kind)]
    except ValueError:
        return None


def _trigger_spec(kind: str) -> TriggerSpec | None:
    try:
        return TRIGGERS[TriggerKind(kind)]
    except ValueError:
        return None


def default_action_config(kind: str) -> dict[str, object]:
    """Return a fresh default config for an action kind (``{}`` when unknown)."""

    spec = _action_spec(kind)
    if spec is None:
        return {}
    return copy.deepcopy(spec.default_config)


def default_trigger_config(kind: str) -> dict[str, object]:
    spec = _trigger_spec(kind)
    if spec is None:
        return {}
    return copy.deepcopy(spec.default_config)


def branch_keys_for(kind: str) -> tuple[str, str] | None:
    """Branch array keys exposed by ``kind``, or None for non-branching kinds."""

    spec = _action_spec(kind)
    return spec.branch_keys if spec is not None else None


def is_branching(kind: str) -> bool:
    return branch_keys_for(kind) is not None


def action_label(kind: str) -> str:
    spec = _action_spec(kind)
    return spec.label if spec is not None else kind


def trigger_label(kind: str) -> str:
    spec = _trigger_spec(kind)
    return spec.label if spec is not None else kind


def trigger_variables(kind: str) -> list[str]:
    """Template variables available to actions under a given trigger."""

    spec = _trigger_spec(kind)
    specific = list(spec.variables) if spec is not None else []
    out: list[str] = []
    for name in (*specific, *COMMON_VARIABLES):
        if name not in out:
            out.append(name)
    return out
