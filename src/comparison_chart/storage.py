"""
History Storage

JSON-backed history of saved comparison chart sessions, one entry per
session id. This is the persistence gateway the server wires into each
session.

Single-user: concurrent writers would race on the history file.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import HistoryEntry, SessionSnapshot, SNAPSHOT_SCHEMA_VERSION

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_FILE = Path("chart_history") / "history.json"


class HistoryStorage:
    """
    Saved chart sessions in a single JSON file.

    File format:
        {"schema_version": 1, "entries": [<HistoryEntry.to_dict()>, ...]}
    """

    def __init__(self, history_file: Optional[str] = None):
        """
        Initialize storage.

        Args:
            history_file: Path to the history JSON file (default:
                chart_history/history.json)
        """
        self._history_file = Path(history_file) if history_file else DEFAULT_HISTORY_FILE
        self._history_file.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._history_file

    def _load(self) -> List[HistoryEntry]:
        if not self._history_file.exists():
            return []
        with open(self._history_file, 'r') as f:
            data = json.load(f)
        return [HistoryEntry.from_dict(e) for e in data.get('entries', [])]

    def _write(self, entries: List[HistoryEntry]) -> None:
        data = {
            'schema_version': SNAPSHOT_SCHEMA_VERSION,
            'entries': [e.to_dict() for e in entries],
        }
        with open(self._history_file, 'w') as f:
            json.dump(data, f, indent=2)

    def save(self, session_id: str, payload: Dict[str, Any]) -> None:
        """Persistence gateway entry point: upsert a serialized snapshot."""
        snapshot = SessionSnapshot.from_dict(payload)
        if snapshot.session_id != session_id:
            snapshot.session_id = session_id
        self.save_entry(HistoryEntry.create(snapshot))

    def save_entry(self, entry: HistoryEntry) -> None:
        """Insert or replace the entry for its session id."""
        entries = [e for e in self._load() if e.session_id != entry.session_id]
        entries.append(entry)
        self._write(entries)

    def list_entries(self) -> List[HistoryEntry]:
        """All entries, most recently saved first."""
        return sorted(self._load(), key=lambda e: _sort_key(e.saved_at), reverse=True)

    def get(self, session_id: str) -> Optional[HistoryEntry]:
        for entry in self._load():
            if entry.session_id == session_id:
                return entry
        return None

    def delete(self, session_id: str) -> bool:
        """Delete one entry. Returns True if it existed."""
        entries = self._load()
        remaining = [e for e in entries if e.session_id != session_id]
        if len(remaining) == len(entries):
            return False
        self._write(remaining)
        logger.info(f"Deleted history entry {session_id}")
        return True

    def delete_all(self) -> int:
        """Delete every entry. Returns the number removed."""
        count = len(self._load())
        self._write([])
        logger.info(f"Cleared {count} history entries")
        return count


def _sort_key(saved_at: datetime) -> datetime:
    if saved_at.tzinfo is None:
        return saved_at.replace(tzinfo=timezone.utc)
    return saved_at
