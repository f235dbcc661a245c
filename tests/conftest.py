import pytest

from pushlog import server
from pushlog.ledger import MemoryLedger, PushupEntry


@pytest.fixture
def pushlog_home(tmp_path, monkeypatch):
    monkeypatch.setenv("PUSHLOG_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def memory_store():
    return MemoryLedger()


@pytest.fixture
def client(memory_store):
    server.configure_store(memory_store)
    server.app.config["TESTING"] = True
    with server.app.test_client() as test_client:
        yield test_client
    server.app.config.pop("LEDGER_STORE", None)


@pytest.fixture
def sample_entries():
    return [
        PushupEntry(date="2024-01-01", count=20, time="08:00"),
        PushupEntry(date="2024-01-01", count=30, time="12:30"),
        PushupEntry(date="2024-01-02", count=10, time="09:15"),
    ]
