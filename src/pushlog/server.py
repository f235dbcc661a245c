"""Flask application serving the pushlog dashboard + JSON APIs."""
from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path
from typing import List, Optional

from flask import Flask, jsonify, render_template, request

from . import aggregates, state
from .ledger import EntryError, JsonFileLedger, LedgerError, LedgerStore, PushupEntry

BASE_DIR = Path(__file__).resolve().parent
TEMPLATE_FOLDER = BASE_DIR / "templates"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8124

app = Flask(
    __name__,
    template_folder=str(TEMPLATE_FOLDER),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def configure_store(store: LedgerStore) -> None:
    """Swap the ledger backing every route (tests use a MemoryLedger)."""
    app.config["LEDGER_STORE"] = store


def _store() -> LedgerStore:
    store = app.config.get("LEDGER_STORE")
    if store is None:
        store = JsonFileLedger(state.ledger_path())
        app.config["LEDGER_STORE"] = store
    return store


def _serialize(entries: List[PushupEntry]) -> list:
    return [entry.to_dict() for entry in entries]


def _error(message: str, status: int):
    return jsonify({"error": message}), status


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/")
def home():
    try:
        entries = _store().read_all()
    except LedgerError as exc:
        app.logger.error("Failed to read pushups data: %s", exc)
        entries = []
    today = date.today()
    total = aggregates.today_total(entries, today)
    series = aggregates.last_30_days(entries, today)
    return render_template(
        "index.html",
        today_total=total,
        daily_goal=aggregates.DAILY_GOAL,
        progress_percent=round(aggregates.progress_ratio(total) * 100, 1),
        series=series,
        series_max=max(day.total for day in series) or 1,
        history=aggregates.history(entries),
    )


@app.get("/api/pushups")
def api_list_pushups():
    try:
        entries = _store().read_all()
    except LedgerError as exc:
        app.logger.error("Failed to read pushups data: %s", exc)
        return _error("Failed to read pushups data", 500)
    return jsonify(_serialize(entries))


@app.post("/api/pushups")
def api_record_pushup():
    payload = request.get_json(silent=True)
    try:
        entry = PushupEntry.from_dict(payload)
    except EntryError as exc:
        return _error(str(exc), 400)
    try:
        entries = _store().append(entry)
    except LedgerError as exc:
        app.logger.error("Failed to save pushup: %s", exc)
        return _error("Failed to save pushup", 500)
    app.logger.info("Recorded %s pushups on %s at %s", entry.count, entry.date, entry.time)
    return jsonify(_serialize(entries))


@app.get("/api/summary")
def api_summary():
    try:
        entries = _store().read_all()
    except LedgerError as exc:
        app.logger.error("Failed to read pushups data: %s", exc)
        return _error("Failed to read pushups data", 500)
    return jsonify(aggregates.summary(entries))


@app.get("/__health")
def healthcheck() -> dict:
    return {"status": "ok"}


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="pushlog Flask server")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port to bind")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Host to bind")
    parser.add_argument("--data-file", type=Path, default=None, help="Ledger JSON file (defaults to $PUSHLOG_HOME/pushups.json)")
    args = parser.parse_args(argv)

    if args.data_file:
        configure_store(JsonFileLedger(args.data_file))
    app.run(host=args.host, port=args.port)


if __name__ == "__main__":  # pragma: no cover
    main()
