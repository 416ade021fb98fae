"""
Port (interface) for per-user journal storage.
Infrastructure adapters (e.g. JsonFileJournalRepository) must implement this interface.
"""

from abc import ABC, abstractmethod

from btc_tracker.domain.entities.journal import JournalEntry


class IJournalRepository(ABC):
    @abstractmethod
    def list_entries(self, username: str) -> list[JournalEntry]:
        """Return every entry stored for *username*, in storage order."""
        ...

    @abstractmethod
    def add(self, username: str, entry: JournalEntry) -> JournalEntry:
        ...

    @abstractmethod
    def delete(self, username: str, entry_id: str) -> bool:
        """Remove the entry with *entry_id*. Returns False when nothing matched."""
        ...
