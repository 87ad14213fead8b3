"""Automation REST API.

All routes are mounted under `/api`. Handlers load the stored automation,
apply one pure operation from :mod:`flow_editor.editor.workflow` and save the
resulting document back as a whole record.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import APIRouter, HTTPException, Query, Request, Response

from flow_editor.editor.store import AutomationRecord, AutomationStore, NotFound
from flow_editor.editor.workflow import catalog
from flow_editor.editor.workflow.document import StructuralError, WorkflowDocument
from flow_editor.editor.workflow.layout import (
    DEFAULT_CONSTANTS,
    TRIGGER_NODE_ID,
    connections,
    describe_node,
    layout_document,
)
from flow_editor.editor.workflow.lifecycle import (
    IllegalTransitionError,
    can_replace_trigger,
    transition,
)
from flow_editor.editor.workflow.membership import check_integrity, top_level_sequence
from flow_editor.editor.workflow.mutator import (
    DeletePolicy,
    add_to_branch,
    add_top_level,
    delete_node,
    move_adjacent,
    move_top_level,
    set_trigger,
    update_config,
)
from flow_editor.server.models import (
    AddActionRequest,
    AddBranchActionRequest,
    ApiActionSpec,
    ApiAddedAction,
    ApiCatalog,
    ApiConnection,
    ApiLayout,
    ApiPlacement,
    ApiTriggerSpec,
    CreateAutomationRequest,
    MoveActionRequest,
    SetTriggerRequest,
    StatusRequest,
    UpdateAutomationRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _store(request: Request) -> AutomationStore:
    store = getattr(request.app.state, "store", None)
    if not isinstance(store, AutomationStore):
        raise HTTPException(status_code=500, detail="Automation store not configured")
    return store


def _load(store: AutomationStore, automation_id: str) -> AutomationRecord:
    try:
        return store.get(automation_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


def _apply(
    store: AutomationStore,
    automation_id: str,
    operation: Callable[[WorkflowDocument], WorkflowDocument],
) -> AutomationRecord:
    record = _load(store, automation_id)
    try:
        updated = operation(record.document())
    except StructuralError as e:
        logger.info(
            "Rejected structural change",
            extra={"automation_id": automation_id, "reason": str(e)},
        )
        raise HTTPException(status_code=409, detail=str(e)) from e
    return store.save(record.with_document(updated))


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/catalog", response_model=ApiCatalog)
def get_catalog() -> ApiCatalog:
    return ApiCatalog(
        triggers=[
            ApiTriggerSpec(
                kind=spec.kind.value,
                label=spec.label,
                category=spec.category,
                description=spec.description,
                defaultConfig=catalog.default_trigger_config(spec.kind.value),
                variables=catalog.trigger_variables(spec.kind.value),
            )
            for spec in catalog.TRIGGERS.values()
        ],
        actions=[
            ApiActionSpec(
                kind=spec.kind.value,
                label=spec.label,
                description=spec.description,
                defaultConfig=catalog.default_action_config(spec.kind.value),
                branchKeys=list(spec.branch_keys) if spec.branch_keys else None,
            )
            for spec in catalog.ACTIONS.values()
        ],
        conditionOperators=list(catalog.CONDITION_OPERATORS),
    )


@router.get("/automations", response_model=list[AutomationRecord])
def list_automations(request: Request) -> list[AutomationRecord]:
    return _store(request).list()


@router.post("/automations", response_model=AutomationRecord, status_code=201)
def create_automation(req: CreateAutomationRequest, request: Request) -> AutomationRecord:
    return _store(request).create(name=req.name.strip(), description=req.description)


@router.get("/automations/{automation_id}", response_model=AutomationRecord)
def get_automation(automation_id: str, request: Request) -> AutomationRecord:
    return _load(_store(request), automation_id)


@router.put("/automations/{automation_id}", response_model=AutomationRecord)
def update_automation(
    automation_id: str, req: UpdateAutomationRequest, request: Request
) -> AutomationRecord:
    store = _store(request)
    record = _load(store, automation_id)
    document = WorkflowDocument.from_json(
        {
            "trigger": req.trigger.model_dump(),
            "actions": [a.model_dump() for a in req.actions],
        }
    )
    errors = check_integrity(document)
    if errors:
        raise HTTPException(status_code=422, detail=errors)
    if document.trigger != record.document().trigger and not can_replace_trigger(record.status):
        raise HTTPException(status_code=409, detail="Pause the automation to change its trigger")

    updated = record.with_document(document).model_copy(
        update={
            "name": req.name.strip(),
            "description": req.description,
            "settings": req.settings,
        }
    )
    return store.save(updated)


@router.delete("/automations/{automation_id}", status_code=204)
def delete_automation(automation_id: str, request: Request) -> Response:
    try:
        _store(request).delete(automation_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return Response(status_code=204)


@router.post("/automations/{automation_id}/status", response_model=AutomationRecord)
def change_status(automation_id: str, req: StatusRequest, request: Request) -> AutomationRecord:
    store = _store(request)
    record = _load(store, automation_id)
    try:
        status = transition(current=record.status, to=req.status, document=record.document())
    except IllegalTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    logger.info(
        "Automation status changed",
        extra={"automation_id": automation_id, "from": record.status.value, "to": status.value},
    )
    return store.save(record.model_copy(update={"status": status}))


@router.get("/automations/{automation_id}/layout", response_model=ApiLayout)
def get_layout(automation_id: str, request: Request) -> ApiLayout:
    document = _load(_store(request), automation_id).document()
    result = layout_document(document, DEFAULT_CONSTANTS)
    nodes = {node.id: node for node in document.actions}

    placements = []
    for p in result.placements:
        node = nodes.get(p.id) if p.id != TRIGGER_NODE_ID else None
        placements.append(
            ApiPlacement(
                id=p.id,
                x=p.x,
                y=p.y,
                kind=p.kind,
                summary=describe_node(node) if node is not None else "",
            )
        )
    return ApiLayout(
        placements=placements,
        connections=[
            ApiConnection(source=c.source, target=c.target, branch=c.branch)
            for c in connections(document, result)
        ],
        endY=result.end_y,
        topLevel=top_level_sequence(document.actions),
    )


@router.post("/automations/{automation_id}/actions", response_model=ApiAddedAction, status_code=201)
def add_action(automation_id: str, req: AddActionRequest, request: Request) -> ApiAddedAction:
    added: list[str] = []

    def _op(doc: WorkflowDocument) -> WorkflowDocument:
        result = add_top_level(doc, req.kind, req.afterId)
        added.append(result.node_id)
        return result.document

    record = _apply(_store(request), automation_id, _op)
    return ApiAddedAction(nodeId=added[0], automation=record.model_dump(mode="json"))


@router.post(
    "/automations/{automation_id}/actions/{node_id}/branches/{branch_key}",
    response_model=ApiAddedAction,
    status_code=201,
)
def add_branch_action(
    automation_id: str,
    node_id: str,
    branch_key: str,
    req: AddBranchActionRequest,
    request: Request,
) -> ApiAddedAction:
    added: list[str] = []

    def _op(doc: WorkflowDocument) -> WorkflowDocument:
        result = add_to_branch(doc, node_id, branch_key, req.kind)
        added.append(result.node_id)
        return result.document

    record = _apply(_store(request), automation_id, _op)
    return ApiAddedAction(nodeId=added[0], automation=record.model_dump(mode="json"))


@router.patch("/automations/{automation_id}/actions/{node_id}", response_model=AutomationRecord)
def patch_action(
    automation_id: str, node_id: str, updates: dict[str, object], request: Request
) -> AutomationRecord:
    return _apply(_store(request), automation_id, lambda doc: update_config(doc, node_id, updates))


@router.delete("/automations/{automation_id}/actions/{node_id}", response_model=AutomationRecord)
def remove_action(
    automation_id: str,
    node_id: str,
    request: Request,
    policy: DeletePolicy = Query(default=DeletePolicy.PROMOTE),
) -> AutomationRecord:
    return _apply(_store(request), automation_id, lambda doc: delete_node(doc, node_id, policy))


@router.post("/automations/{automation_id}/actions/{node_id}/move", response_model=AutomationRecord)
def move_action(
    automation_id: str, node_id: str, req: MoveActionRequest, request: Request
) -> AutomationRecord:
    if (req.toId is None) == (req.direction is None):
        raise HTTPException(status_code=422, detail="Provide exactly one of toId or direction")

    def _op(doc: WorkflowDocument) -> WorkflowDocument:
        if req.toId is not None:
            return move_top_level(doc, node_id, req.toId)
        return move_adjacent(doc, node_id, req.direction or "")

    return _apply(_store(request), automation_id, _op)


@router.put("/automations/{automation_id}/trigger", response_model=AutomationRecord)
def replace_trigger(
    automation_id: str, req: SetTriggerRequest, request: Request
) -> AutomationRecord:
    store = _store(request)
    record = _load(store, automation_id)
    if not can_replace_trigger(record.status):
        raise HTTPException(status_code=409, detail="Pause the automation to change its trigger")
    return _apply(store, automation_id, lambda doc: set_trigger(doc, req.kind, req.config))
