"""
Exception taxonomy for the sync pipeline.

Extraction problems are deliberately absent: ambiguous or missing remote fields
resolve to a fallback value (see ``stays_sync.normalizers.extraction``) and never
raise.
"""

from __future__ import annotations


class RemoteApiError(Exception):
    """
    Raised when the Stays.net API returns a non-2xx response or the transport fails.

    Attributes:
        status_code: HTTP status code, or None when no response was received
        message: Human readable summary
        raw_body: Response body as text, when one was received
    """

    def __init__(self, status_code: int | None, message: str, raw_body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.raw_body = raw_body

    def __str__(self) -> str:
        if self.status_code is None:
            return f"Stays API request failed: {self.message}"
        return f"Stays API error {self.status_code}: {self.message}"


class WriteError(Exception):
    """Raised when a batch upsert against the mirror fails. Each batch is all-or-nothing."""

    def __init__(self, table: str, batch_index: int, message: str):
        super().__init__(f"Write to {table} failed at batch {batch_index}: {message}")
        self.table = table
        self.batch_index = batch_index


class SyncTimeoutError(Exception):
    """Raised when a sync run exceeds its wall-clock budget."""

    def __init__(self, phase: str, budget_seconds: float):
        super().__init__(f"Sync exceeded {budget_seconds:.0f}s budget during {phase}")
        self.phase = phase
        self.budget_seconds = budget_seconds


class SyncConflictError(Exception):
    """Raised when a sync is requested while another run of the same type is running."""

    def __init__(self, sync_type: str):
        super().__init__(f"A {sync_type} sync is already running")
        self.sync_type = sync_type
