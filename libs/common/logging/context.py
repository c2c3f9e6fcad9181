"""Request-scoped trace IDs for log correlation.

A trace ID follows one storefront request (for example ``POST /orders``)
through validation, the database transaction and the delivery-note email so
that every log line it produces can be grouped together.
"""

import contextvars
import uuid
from types import TracebackType

_trace_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("trace_id", default=None)

TRACE_ID_HEADER = "X-Trace-ID"


def generate_trace_id() -> str:
    """Return a fresh UUID4 trace ID."""
    return str(uuid.uuid4())


def get_trace_id() -> str | None:
    return _trace_id_var.get()


def set_trace_id(trace_id: str) -> None:
    """Bind ``trace_id`` to the current context.

    Raises:
        ValueError: If trace_id is empty
    """
    if not trace_id:
        raise ValueError("Trace ID cannot be empty")
    _trace_id_var.set(trace_id)


def clear_trace_id() -> None:
    _trace_id_var.set(None)


def get_or_create_trace_id() -> str:
    """Return the bound trace ID, binding a new one first if none is set.

    Background work started outside a request (startup checks, manual
    resends from a shell) uses this so its logs still carry an ID.
    """
    trace_id = get_trace_id()
    if trace_id is None:
        trace_id = generate_trace_id()
        set_trace_id(trace_id)
    return trace_id


class LogContext:
    """Scope a trace ID to a ``with`` block and restore the previous one on exit.

    Example:
        >>> with LogContext("resend-order-17") as trace_id:
        ...     get_trace_id() == trace_id
        True
    """

    def __init__(self, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or generate_trace_id()
        self.previous_trace_id: str | None = None

    def __enter__(self) -> str:
        self.previous_trace_id = get_trace_id()
        set_trace_id(self.trace_id)
        return self.trace_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self.previous_trace_id is not None:
            set_trace_id(self.previous_trace_id)
        else:
            clear_trace_id()
