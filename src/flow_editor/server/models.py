"""Pydantic models for the REST server."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from flow_editor.editor.store import AutomationSettings
from flow_editor.editor.workflow.lifecycle import AutomationStatus


class ApiTrigger(BaseModel):
    kind: str = ""
    config: dict[str, object] = Field(default_factory=dict)


class ApiAction(BaseModel):
    id: str
    kind: str
    config: dict[str, object] = Field(default_factory=dict)


class CreateAutomationRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""


class UpdateAutomationRequest(BaseModel):
    """Whole-document save from the editor."""

    name: str = Field(min_length=1)
    description: str = ""
    trigger: ApiTrigger = Field(default_factory=ApiTrigger)
    actions: list[ApiAction] = Field(default_factory=list)
    settings: AutomationSettings = Field(default_factory=AutomationSettings)


class StatusRequest(BaseModel):
    status: AutomationStatus


class AddActionRequest(BaseModel):
    kind: str
    afterId: str | None = None


class AddBranchActionRequest(BaseModel):
    kind: str


class MoveActionRequest(BaseModel):
    """Exactly one of `toId` or `direction` should be set."""

    toId: str | None = None
    direction: Literal["up", "down"] | None = None


class SetTriggerRequest(BaseModel):
    kind: str
    config: dict[str, object] | None = None


class ApiPlacement(BaseModel):
    id: str
    x: int
    y: int
    kind: str
    summary: str = ""


class ApiConnection(BaseModel):
    source: str
    target: str
    branch: str | None = None


class ApiLayout(BaseModel):
    placements: list[ApiPlacement]
    connections: list[ApiConnection]
    endY: int
    topLevel: list[str]


class ApiAddedAction(BaseModel):
    nodeId: str
    automation: dict[str, object]


class ApiTriggerSpec(BaseModel):
    kind: str
    label: str
    category: str
    description: str
    defaultConfig: dict[str, object]
    variables: list[str]


class ApiActionSpec(BaseModel):
    kind: str
    label: str
    description: str
    defaultConfig: dict[str, object]
    branchKeys: list[str] | None = None


class ApiCatalog(BaseModel):
    triggers: list[ApiTriggerSpec]
    actions: list[ApiActionSpec]
    conditionOperators: list[str]
