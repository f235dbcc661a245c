"""Single-user pushup tracker: JSON ledger, Flask dashboard and CLI."""

__version__ = "0.1.0"
