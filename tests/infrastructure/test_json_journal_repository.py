import json

from btc_tracker.domain.entities.journal import Intensity, JournalEntry, JournalKind
from btc_tracker.infrastructure.persistence.json_journal_repository import (
    JsonFileJournalRepository,
)


def entry(entry_id: str, title: str = "Bridged to Base") -> JournalEntry:
    return JournalEntry(
        id=entry_id,
        created_at="2023-11-14T22:13:20.000Z",
        title=title,
        notes="Moved stables for LP",
        kind=JournalKind.BRIDGE,
        token="USDC",
        intensity=Intensity.HIGH,
    )


def test_missing_file_is_an_empty_journal(tmp_path):
    repo = JsonFileJournalRepository(tmp_path / "journal.json")
    assert repo.list_entries("chris") == []
    assert not repo.path.exists()


def test_add_prepends_and_persists_per_user(tmp_path):
    path = tmp_path / "data" / "journal.json"
    repo = JsonFileJournalRepository(path)

    repo.add("chris", entry("1"))
    repo.add("chris", entry("2", title="Staked ETH"))
    repo.add("ana", entry("3"))

    reopened = JsonFileJournalRepository(path)
    assert [e.id for e in reopened.list_entries("chris")] == ["2", "1"]
    assert reopened.list_entries("chris")[1] == entry("1")
    assert [e.id for e in reopened.list_entries("ana")] == ["3"]

    stored = json.loads(path.read_text(encoding="utf-8"))
    assert stored["users"]["chris"][1]["createdAt"] == "2023-11-14T22:13:20.000Z"
    assert stored["users"]["chris"][1]["kind"] == "bridge"
    assert not path.with_suffix(".tmp").exists()


def test_delete_only_touches_the_owner(tmp_path):
    repo = JsonFileJournalRepository(tmp_path / "journal.json")
    repo.add("chris", entry("1"))
    repo.add("ana", entry("1"))

    assert repo.delete("chris", "1") is True
    assert repo.delete("chris", "1") is False
    assert repo.list_entries("chris") == []
    assert len(repo.list_entries("ana")) == 1


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "journal.json"
    path.write_text("{not json", encoding="utf-8")
    repo = JsonFileJournalRepository(path)

    assert repo.list_entries("chris") == []
    repo.add("chris", entry("1"))
    assert [e.id for e in repo.list_entries("chris")] == ["1"]


def test_unknown_enum_values_fall_back(tmp_path):
    path = tmp_path / "journal.json"
    record = {"id": "9", "createdAt": "", "title": "t", "notes": "n", "kind": "airdrop", "intensity": "max"}
    path.write_text(json.dumps({"users": {"chris": [record]}}), encoding="utf-8")

    loaded = JsonFileJournalRepository(path).list_entries("chris")[0]

    assert loaded.kind is JournalKind.OTHER
    assert loaded.intensity is Intensity.MEDIUM
