"""
Local store for submissions that could not reach the marketplace API.

Entries are kept in a JSON file until they are replayed successfully or
refused by the server. They are replaced by the authoritative record once
synced; nothing is merged field by field.
"""
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter

logger = logging.getLogger(__name__)

SubmissionKind = Literal["create_requirement", "submit_quote"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PendingSubmission(BaseModel):
    local_id: UUID = Field(default_factory=uuid.uuid4)
    kind: SubmissionKind
    requirement_id: Optional[UUID] = None
    payload: Dict[str, Any]
    created_at: datetime = Field(default_factory=_utcnow)
    last_error: Optional[str] = None
    pending: bool = True


_entries = TypeAdapter(List[PendingSubmission])


class PendingStore:
    def __init__(self, path):
        self.path = Path(path)

    def _load(self) -> List[PendingSubmission]:
        if not self.path.exists():
            return []
        raw = self.path.read_bytes()
        if not raw.strip():
            return []
        return _entries.validate_json(raw)

    def _save(self, entries: List[PendingSubmission]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_bytes(_entries.dump_json(entries, indent=2))
        os.replace(tmp, self.path)

    def add(self, entry: PendingSubmission) -> PendingSubmission:
        entries = self._load()
        entries.append(entry)
        self._save(entries)
        logger.info("Saved %s locally as pending (%s)", entry.kind, entry.local_id)
        return entry

    def remove(self, local_id: UUID) -> bool:
        entries = self._load()
        remaining = [entry for entry in entries if entry.local_id != local_id]
        if len(remaining) == len(entries):
            return False
        self._save(remaining)
        return True

    def list(self, kind: Optional[str] = None, requirement_id: Optional[UUID] = None) -> List[PendingSubmission]:
        entries = self._load()
        if kind is not None:
            entries = [entry for entry in entries if entry.kind == kind]
        if requirement_id is not None:
            entries = [entry for entry in entries if entry.requirement_id == requirement_id]
        return sorted(entries, key=lambda entry: entry.created_at)

    def __len__(self) -> int:
        return len(self._load())
