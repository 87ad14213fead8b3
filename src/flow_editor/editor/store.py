"""JSON-file backed persistence for automations.

The store keeps every automation in a single JSON list. Writes replace the
whole record, so two editors saving the same automation simply overwrite each
other (last write wins, no merge).
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from flow_editor.editor.workflow.document import WorkflowDocument
from flow_editor.editor.workflow.lifecycle import AutomationStatus

logger = logging.getLogger(__name__)


def _utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


class AutomationSettings(BaseModel):
    allowReentry: bool = False
    reentryDelay: int | None = Field(default=24, ge=0)
    timezone: str = "America/Mexico_City"


class AutomationRecord(BaseModel):
    """Persisted automation: metadata plus the workflow document in wire shape."""

    id: str
    name: str
    description: str = ""
    status: AutomationStatus = AutomationStatus.DRAFT
    trigger: dict[str, object] = Field(default_factory=lambda: {"kind": "", "config": {}})
    actions: list[dict[str, object]] = Field(default_factory=list)
    settings: AutomationSettings = Field(default_factory=AutomationSettings)
    created_at: str
    updated_at: str

    def document(self) -> WorkflowDocument:
        return WorkflowDocument.from_json({"trigger": self.trigger, "actions": self.actions})

    def with_document(self, document: WorkflowDocument) -> AutomationRecord:
        payload = document.to_json()
        return self.model_copy(update={"trigger": payload["trigger"], "actions": payload["actions"]})


@dataclass(frozen=True, slots=True)
class NotFound(Exception):
    automation_id: str

    def __str__(self) -> str:
        return f"Automation not found: {self.automation_id}"


@dataclass
class AutomationStore:
    path: Path

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def _load_unlocked(self) -> list[AutomationRecord]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(
                "Automation state file is not valid JSON; treating as empty",
                extra={"path": str(self.path)},
            )
            return []
        if not isinstance(raw, list):
            logger.warning(
                "Automation state file is not a list; treating as empty",
                extra={"path": str(self.path)},
            )
            return []
        return [AutomationRecord.model_validate(item) for item in raw if isinstance(item, dict)]

    def _save_unlocked(self, records: list[AutomationRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(mode="json") for r in records]
        self.path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def list(self) -> list[AutomationRecord]:
        with self._lock:
            return self._load_unlocked()

    def get(self, automation_id: str) -> AutomationRecord:
        with self._lock:
            for record in self._load_unlocked():
                if record.id == automation_id:
                    return record
        raise NotFound(automation_id)

    def create(
        self,
        *,
        name: str,
        description: str = "",
        document: WorkflowDocument | None = None,
        settings: AutomationSettings | None = None,
    ) -> AutomationRecord:
        now = _utc_iso_now()
        payload = (document or WorkflowDocument()).to_json()
        record = AutomationRecord(
            id=uuid.uuid4().hex,
            name=name,
            description=description,
            trigger=payload["trigger"],
            actions=payload["actions"],
            settings=settings or AutomationSettings(),
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            records = self._load_unlocked()
            records.append(record)
            self._save_unlocked(records)
        logger.info("Created automation", extra={"automation_id": record.id, "name": name})
        return record

    def save(self, record: AutomationRecord) -> AutomationRecord:
        """Replace a stored record (whole-record write)."""

        with self._lock:
            records = self._load_unlocked()
            for idx, existing in enumerate(records):
                if existing.id != record.id:
                    continue
                merged = record.model_copy(
                    update={"created_at": existing.created_at, "updated_at": _utc_iso_now()}
                )
                records[idx] = merged
                self._save_unlocked(records)
                return merged
        raise NotFound(record.id)

    def delete(self, automation_id: str) -> None:
        with self._lock:
            records = self._load_unlocked()
            kept = [r for r in records if r.id != automation_id]
            if len(kept) == len(records):
                raise NotFound(automation_id)
            self._save_unlocked(kept)
        logger.info("Deleted automation", extra={"automation_id": automation_id})
