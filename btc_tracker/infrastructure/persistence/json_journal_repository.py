"""
Infrastructure adapter: JSON file → IJournalRepository.

The whole journal lives in one document shaped {"users": {username: [entry, ...]}}.
Writes go to a temporary file that is renamed over the original. A missing or
unreadable document is treated as an empty journal.
"""

import json
import logging
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Any, Union

from btc_tracker.domain.entities.journal import Intensity, JournalEntry, JournalKind
from btc_tracker.domain.ports.journal_port import IJournalRepository

logger = logging.getLogger(__name__)

_CAMEL_FIELDS = {"created_at": "createdAt"}


def _to_record(entry: JournalEntry) -> dict[str, Any]:
    record = {_CAMEL_FIELDS.get(k, k): v for k, v in asdict(entry).items()}
    record["kind"] = entry.kind.value
    record["intensity"] = entry.intensity.value
    return record


def _from_record(record: dict[str, Any]) -> JournalEntry:
    return JournalEntry(
        id=str(record.get("id", "")),
        created_at=str(record.get("createdAt", "")),
        title=str(record.get("title", "")),
        notes=str(record.get("notes", "")),
        date=str(record.get("date", "")),
        kind=JournalKind.parse(record.get("kind")),
        chain=str(record.get("chain", "")),
        protocol=str(record.get("protocol", "")),
        amount=str(record.get("amount", "")),
        token=str(record.get("token", "")),
        intensity=Intensity.parse(record.get("intensity")),
    )


def _user_records(db: dict[str, Any], username: str) -> list[Any]:
    records = db["users"].get(username)
    return records if isinstance(records, list) else []


class JsonFileJournalRepository(IJournalRepository):
    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def list_entries(self, username: str) -> list[JournalEntry]:
        with self._lock:
            records = _user_records(self._read(), username)
        return [_from_record(r) for r in records if isinstance(r, dict)]

    def add(self, username: str, entry: JournalEntry) -> JournalEntry:
        with self._lock:
            db = self._read()
            db["users"][username] = [_to_record(entry)] + _user_records(db, username)
            self._write(db)
        return entry

    def delete(self, username: str, entry_id: str) -> bool:
        with self._lock:
            db = self._read()
            records = _user_records(db, username)
            remaining = [r for r in records if not (isinstance(r, dict) and r.get("id") == entry_id)]
            if len(remaining) == len(records):
                return False
            db["users"][username] = remaining
            self._write(db)
        return True

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {"users": {}}
        try:
            with open(self._path, encoding="utf-8") as f:
                db = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("journal file %s unreadable, starting empty: %s", self._path, exc)
            return {"users": {}}
        if not isinstance(db, dict) or not isinstance(db.get("users"), dict):
            return {"users": {}}
        return db

    def _write(self, db: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self._path.with_suffix(".tmp")
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(db, f, indent=2)
        temp_file.replace(self._path)
