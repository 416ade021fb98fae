"""
Use-cases: list, add and delete entries of the signed-in user's journal.

Business decisions owned here:
  - Title and notes are required; every other field is optional free text.
  - Unknown kinds become "other" and unknown intensities become "medium".
  - Token symbols are stored upper-case.
  - Listing is newest first by creation time.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from btc_tracker.domain.entities.journal import Intensity, JournalEntry, JournalKind
from btc_tracker.domain.ports.journal_port import IJournalRepository
from btc_tracker.domain.services.clock import now_ms

logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _iso_utc(ms: int) -> str:
    moment = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ms % 1000:03d}Z"


def _created_sort_key(entry: JournalEntry) -> float:
    try:
        return datetime.fromisoformat(entry.created_at.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return float("-inf")


class ListJournalEntriesUseCase:
    def __init__(self, repository: IJournalRepository) -> None:
        self._repository = repository

    def execute(self, username: str) -> list[JournalEntry]:
        entries = self._repository.list_entries(username)
        return sorted(entries, key=_created_sort_key, reverse=True)


class AddJournalEntryUseCase:
    def __init__(
        self,
        repository: IJournalRepository,
        clock: Callable[[], int] = now_ms,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:5])

    def execute(self, username: str, fields: Mapping[str, Any]) -> JournalEntry:
        """Store a new entry built from the submitted *fields*.

        Raises:
            ValueError: if the title or notes are blank.
        """
        title = _text(fields.get("title"))
        notes = _text(fields.get("notes"))
        if not title or not notes:
            raise ValueError("Title and notes are required")

        created = self._clock()
        entry = JournalEntry(
            id=f"{created}-{self._id_factory()}",
            created_at=_iso_utc(created),
            title=title,
            notes=notes,
            date=_text(fields.get("date")),
            kind=JournalKind.parse(fields.get("kind")),
            chain=_text(fields.get("chain")),
            protocol=_text(fields.get("protocol")),
            amount=_text(fields.get("amount")),
            token=_text(fields.get("token")).upper(),
            intensity=Intensity.parse(fields.get("intensity")),
        )
        self._repository.add(username, entry)
        logger.info("journal entry %s added for %s", entry.id, username)
        return entry


class DeleteJournalEntryUseCase:
    def __init__(self, repository: IJournalRepository) -> None:
        self._repository = repository

    def execute(self, username: str, entry_id: Optional[str]) -> bool:
        """Delete one entry. Returns False when the user has no entry with that id.

        Raises:
            ValueError: if *entry_id* is blank.
        """
        entry_id = _text(entry_id)
        if not entry_id:
            raise ValueError("Entry id is required")
        return self._repository.delete(username, entry_id)
