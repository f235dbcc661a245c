"""In-memory tracker state that mirrors the ledger held by a store or server."""
from __future__ import annotations

import json
import logging
import socket
from datetime import datetime
from typing import Callable, List, Optional, Protocol
from urllib import error as urllib_error, request as urllib_request

from . import aggregates
from .ledger import EntryError, LedgerError, LedgerStore, PushupEntry

logger = logging.getLogger(__name__)

LOADING = "loading"
READY = "ready"


class ClientError(RuntimeError):
    """Raised when the ledger could not be fetched or updated."""


class LedgerClient(Protocol):
    def fetch(self) -> List[PushupEntry]: ...

    def submit(self, entry: PushupEntry) -> List[PushupEntry]: ...


class LocalLedgerClient:
    def __init__(self, store: LedgerStore) -> None:
        self.store = store

    def fetch(self) -> List[PushupEntry]:
        try:
            return self.store.read_all()
        except LedgerError as exc:
            raise ClientError(str(exc)) from exc

    def submit(self, entry: PushupEntry) -> List[PushupEntry]:
        try:
            return self.store.append(entry)
        except LedgerError as exc:
            raise ClientError(str(exc)) from exc


class HttpLedgerClient:
    """Client for a running pushlog server's ``/api/pushups`` endpoint."""

    def __init__(self, base_url: str, timeout: float = 5.0) -> None:
        self.url = base_url.rstrip("/") + "/api/pushups"
        self.timeout = timeout

    def fetch(self) -> List[PushupEntry]:
        return self._send(urllib_request.Request(self.url))

    def submit(self, entry: PushupEntry) -> List[PushupEntry]:
        request_obj = urllib_request.Request(
            self.url,
            data=json.dumps(entry.to_dict()).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        return self._send(request_obj)

    def _send(self, request_obj: urllib_request.Request) -> List[PushupEntry]:
        try:
            with urllib_request.urlopen(request_obj, timeout=self.timeout) as response:
                payload = json.loads(response.read().decode("utf-8"))
        except urllib_error.HTTPError as exc:
            raise ClientError(f"Server returned {exc.code}: {exc.read().decode(errors='replace')}") from exc
        except (urllib_error.URLError, ConnectionError) as exc:
            raise ClientError(f"Unable to contact pushlog server at {self.url}") from exc
        except (TimeoutError, socket.timeout) as exc:
            raise ClientError(f"Timed out waiting for pushlog server at {self.url}") from exc
        except json.JSONDecodeError as exc:
            raise ClientError("Server returned invalid JSON") from exc
        if not isinstance(payload, list):
            raise ClientError("Server returned an unexpected payload")
        try:
            return [PushupEntry.from_dict(item) for item in payload]
        except EntryError as exc:
            raise ClientError(f"Server returned a malformed entry: {exc}") from exc


class TrackerView:
    """Holds the ledger in memory and recomputes every aggregate on access.

    The view starts in ``loading`` and moves to ``ready`` after the first
    ``load()``, whether or not the fetch succeeded. Failed submissions are
    logged and leave both the ledger and the input untouched.
    """

    def __init__(self, client: LedgerClient, clock: Callable[[], datetime] = datetime.now) -> None:
        self.client = client
        self.clock = clock
        self.status = LOADING
        self.entries: List[PushupEntry] = []
        self.pending_count = 0

    def load(self) -> None:
        try:
            self.entries = self.client.fetch()
        except ClientError as exc:
            logger.error("Failed to fetch pushups: %s", exc)
        finally:
            self.status = READY

    def set_input(self, raw) -> None:
        try:
            self.pending_count = int(raw)
        except (TypeError, ValueError):
            self.pending_count = 0

    def submit(self, now: Optional[datetime] = None) -> bool:
        if self.pending_count <= 0:
            return False
        moment = now or self.clock()
        entry = PushupEntry(
            date=moment.date().isoformat(),
            count=self.pending_count,
            time=moment.strftime("%H:%M"),
        )
        try:
            updated = self.client.submit(entry)
        except ClientError as exc:
            logger.error("Failed to save pushup: %s", exc)
            return False
        self.entries = updated
        self.pending_count = 0
        return True

    @property
    def today_total(self) -> int:
        return aggregates.today_total(self.entries, self.clock().date())

    @property
    def progress(self) -> float:
        return aggregates.progress_ratio(self.today_total)

    @property
    def last_30_days(self) -> List[aggregates.DayTotal]:
        return aggregates.last_30_days(self.entries, self.clock().date())

    @property
    def history(self) -> List[PushupEntry]:
        return aggregates.history(self.entries)
