"""Per-request and per-firing context utilities."""
from __future__ import annotations

from contextvars import ContextVar

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
schedule_id_ctx_var: ContextVar[str | None] = ContextVar("schedule_id", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def get_schedule_id() -> str | None:
    """Return the id of the schedule currently firing on this thread, if any."""
    return schedule_id_ctx_var.get()
