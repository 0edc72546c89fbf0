# src/tasklist/tasks/errors.py

from __future__ import annotations


class TaskValidationError(ValueError):
    """Rejected at the form boundary (empty title, bad progress, unknown priority)."""


class PersistenceError(RuntimeError):
    """Snapshot write failed; the store kept its previous collection."""
