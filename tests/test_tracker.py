import io
import json
import logging
from datetime import datetime
from urllib import error as urllib_error

import pytest

from pushlog import tracker
from pushlog.ledger import MemoryLedger, PushupEntry
from pushlog.tracker import LOADING, READY, ClientError, HttpLedgerClient, LocalLedgerClient, TrackerView

NOW = datetime(2024, 1, 1, 9, 5)


class FailingClient:
    def fetch(self):
        raise ClientError("boom")

    def submit(self, entry):
        raise ClientError("boom")


@pytest.fixture
def view(sample_entries):
    return TrackerView(LocalLedgerClient(MemoryLedger(sample_entries)), clock=lambda: NOW)


def test_view_starts_loading_then_ready(view, sample_entries):
    assert view.status == LOADING

    view.load()

    assert view.status == READY
    assert view.entries == sample_entries


def test_failed_load_still_becomes_ready(caplog):
    view = TrackerView(FailingClient(), clock=lambda: NOW)

    with caplog.at_level(logging.ERROR, logger="pushlog.tracker"):
        view.load()

    assert view.status == READY
    assert view.entries == []
    assert "Failed to fetch pushups" in caplog.text


def test_aggregates_follow_the_clock(view):
    view.load()

    assert view.today_total == 50
    assert view.progress == 0.5
    assert len(view.last_30_days) == 30
    assert view.last_30_days[-1].total == 50
    assert view.history[0].date == "2024-01-02"


def test_submit_appends_and_clears_input(view):
    view.load()
    view.set_input("25")

    assert view.submit() is True

    assert view.pending_count == 0
    assert view.entries[-1] == PushupEntry(date="2024-01-01", count=25, time="09:05")
    assert view.today_total == 75


def test_submit_ignores_non_positive_input(view):
    view.load()
    view.set_input("abc")

    assert view.pending_count == 0
    assert view.submit() is False
    assert len(view.entries) == 3


def test_failed_submit_keeps_state(caplog):
    view = TrackerView(FailingClient(), clock=lambda: NOW)
    view.load()
    view.set_input(40)

    with caplog.at_level(logging.ERROR, logger="pushlog.tracker"):
        assert view.submit() is False

    assert view.status == READY
    assert view.pending_count == 40
    assert view.entries == []
    assert "Failed to save pushup" in caplog.text


def test_progress_caps_at_goal():
    store = MemoryLedger([PushupEntry(date="2024-01-01", count=150, time="07:00")])
    view = TrackerView(LocalLedgerClient(store), clock=lambda: NOW)
    view.load()

    assert view.today_total == 150
    assert view.progress == 1.0


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def read(self):
        return json.dumps(self.payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_http_client_posts_entry(monkeypatch):
    sent = {}

    def fake_urlopen(request_obj, timeout):
        sent["url"] = request_obj.full_url
        sent["body"] = json.loads(request_obj.data.decode("utf-8"))
        return FakeResponse([sent["body"]])

    monkeypatch.setattr(tracker.urllib_request, "urlopen", fake_urlopen)
    client = HttpLedgerClient("http://127.0.0.1:8124/")
    entry = PushupEntry(date="2024-01-01", count=10, time="08:00")

    assert client.submit(entry) == [entry]
    assert sent["url"] == "http://127.0.0.1:8124/api/pushups"
    assert sent["body"] == {"date": "2024-01-01", "count": 10, "time": "08:00"}


def test_http_client_wraps_transport_errors(monkeypatch):
    def fake_urlopen(request_obj, timeout):
        raise urllib_error.URLError("connection refused")

    monkeypatch.setattr(tracker.urllib_request, "urlopen", fake_urlopen)

    with pytest.raises(ClientError):
        HttpLedgerClient("http://127.0.0.1:1").fetch()


def _raise(exc):
    def fake_urlopen(request_obj, timeout):
        raise exc

    return fake_urlopen


def test_http_client_wraps_server_errors(monkeypatch):
    error = urllib_error.HTTPError(
        "http://127.0.0.1:8124/api/pushups", 500, "Internal Server Error", {}, io.BytesIO(b'{"error": "Failed to save pushup"}')
    )
    monkeypatch.setattr(tracker.urllib_request, "urlopen", _raise(error))

    with pytest.raises(ClientError, match="500"):
        HttpLedgerClient("http://127.0.0.1:8124").submit(PushupEntry(date="2024-01-01", count=1, time="08:00"))


def test_http_client_wraps_timeouts(monkeypatch):
    monkeypatch.setattr(tracker.urllib_request, "urlopen", _raise(TimeoutError("timed out")))

    with pytest.raises(ClientError, match="Timed out"):
        HttpLedgerClient("http://127.0.0.1:8124").fetch()


@pytest.mark.parametrize(
    "payload",
    [
        {"error": "Failed to read pushups data"},
        [{"date": "2024-01-01", "count": -1, "time": "08:00"}],
    ],
)
def test_http_client_rejects_unexpected_payloads(monkeypatch, payload):
    monkeypatch.setattr(tracker.urllib_request, "urlopen", lambda request_obj, timeout: FakeResponse(payload))

    with pytest.raises(ClientError):
        HttpLedgerClient("http://127.0.0.1:8124").fetch()


def test_timeout_during_submit_keeps_state(monkeypatch):
    monkeypatch.setattr(tracker.urllib_request, "urlopen", _raise(TimeoutError("timed out")))
    view = TrackerView(HttpLedgerClient("http://127.0.0.1:8124"), clock=lambda: NOW)
    view.load()
    view.set_input(12)

    assert view.submit() is False
    assert view.pending_count == 12
    assert view.status == READY
