"""Append-only pushup ledger and its storage backends."""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List

logger = logging.getLogger(__name__)


class EntryError(ValueError):
    """Raised when a payload is not a valid pushup entry."""


class LedgerError(RuntimeError):
    """Raised when the backing storage cannot be written."""


@dataclass(frozen=True)
class PushupEntry:
    date: str
    count: int
    time: str

    @classmethod
    def from_dict(cls, payload: Any) -> "PushupEntry":
        if not isinstance(payload, dict):
            raise EntryError("Entry must be a JSON object")
        date_value = payload.get("date")
        count = payload.get("count")
        time_value = payload.get("time", "")
        if not isinstance(date_value, str):
            raise EntryError("Missing date")
        try:
            parsed = datetime.strptime(date_value, "%Y-%m-%d").date()
        except ValueError as exc:
            raise EntryError(f"Invalid date '{date_value}', expected YYYY-MM-DD") from exc
        # aggregates match on isoformat(), so "2024-1-1" would never be counted
        if parsed.isoformat() != date_value:
            raise EntryError(f"Invalid date '{date_value}', expected YYYY-MM-DD")
        # bool is an int subclass; reject it explicitly
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise EntryError("Count must be a positive integer")
        if not isinstance(time_value, str):
            raise EntryError("Time must be a string")
        return cls(date=date_value, count=count, time=time_value)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class LedgerStore(ABC):
    """Storage capability: read the whole ledger or append one entry."""

    @abstractmethod
    def read_all(self) -> List[PushupEntry]:
        ...

    @abstractmethod
    def append(self, entry: PushupEntry) -> List[PushupEntry]:
        ...


class MemoryLedger(LedgerStore):
    def __init__(self, entries: Iterable[PushupEntry] = ()) -> None:
        self._entries: List[PushupEntry] = list(entries)
        self._lock = threading.Lock()

    def read_all(self) -> List[PushupEntry]:
        return list(self._entries)

    def append(self, entry: PushupEntry) -> List[PushupEntry]:
        with self._lock:
            self._entries = [*self._entries, entry]
            return list(self._entries)


class JsonFileLedger(LedgerStore):
    """Ledger persisted as a single JSON array, rewritten on every append.

    Stored records are carried through appends exactly as found on disk, so
    a record this version cannot parse (or one with extra keys) is never
    dropped or rewritten; it is only left out of the returned entries.

    Appends from this process are serialised through one lock and each write
    goes to a temporary file that replaces the ledger in a single rename, so a
    reader never sees a half-written array.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def read_all(self) -> List[PushupEntry]:
        with self._lock:
            if not self.path.exists():
                self._write([])
                return []
            return _parse_records(self._load_records())

    def append(self, entry: PushupEntry) -> List[PushupEntry]:
        with self._lock:
            records = self._load_records() if self.path.exists() else []
            records.append(entry.to_dict())
            self._write(records)
            return _parse_records(records)

    def _load_records(self) -> List[Any]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable ledger at %s, starting empty: %s", self.path, exc)
            return []
        if not isinstance(raw, list):
            logger.warning("Ledger at %s is not a JSON array, starting empty", self.path)
            return []
        return raw

    def _write(self, records: List[Any]) -> None:
        payload = json.dumps(records)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".pushups-", suffix=".json", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise LedgerError(f"Failed to write ledger at {self.path}: {exc}") from exc


def _parse_records(records: List[Any]) -> List[PushupEntry]:
    entries: List[PushupEntry] = []
    for item in records:
        try:
            entries.append(PushupEntry.from_dict(item))
        except EntryError as exc:
            logger.warning("Ignoring malformed ledger record %r: %s", item, exc)
    return entries
