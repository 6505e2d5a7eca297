"""Log Context Management.

Binds the current tick ID and user ID to log entries via contextvars.
Worker threads do not inherit context, so each per-user job enters its
own LogContext.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any


_tick_id_var: ContextVar[str] = ContextVar("tick_id", default="")
_user_id_var: ContextVar[str] = ContextVar("user_id", default="")
_extra_context_var: ContextVar[dict] = ContextVar("extra_context", default={})


def generate_tick_id() -> str:
    """Generate a short unique tick ID."""
    return uuid.uuid4().hex[:12]


def get_tick_id() -> str:
    return _tick_id_var.get()


def get_user_id() -> str:
    return _user_id_var.get()


def get_context_dict() -> dict[str, Any]:
    """Get all context variables as a dictionary for log binding."""
    ctx = {}
    tick_id = _tick_id_var.get()
    if tick_id:
        ctx["tick_id"] = tick_id
    user_id = _user_id_var.get()
    if user_id:
        ctx["user_id"] = user_id
    extra = _extra_context_var.get()
    if extra:
        ctx.update(extra)
    return ctx


@dataclass
class LogContext:
    """Context manager binding tick/user identifiers to log entries.

    Example:
        with LogContext(tick_id=tick_id, user_id=user.user_id):
            logger.info("dispatching")  # includes tick_id, user_id

    Values unset on this context are inherited from the enclosing one, and
    the previous values are restored on exit.
    """

    tick_id: str = ""
    user_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    _tokens: list = field(default_factory=list, repr=False)

    def __enter__(self) -> "LogContext":
        self._tokens = [
            _tick_id_var.set(self.tick_id or _tick_id_var.get()),
            _user_id_var.set(self.user_id or _user_id_var.get()),
            _extra_context_var.set({**_extra_context_var.get(), **self.extra}),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        tick_token, user_token, extra_token = self._tokens
        _extra_context_var.reset(extra_token)
        _user_id_var.reset(user_token)
        _tick_id_var.reset(tick_token)
        self._tokens = []

    def bind(self, **kwargs: Any) -> None:
        """Add extra key-value pairs to the active context."""
        _extra_context_var.set({**_extra_context_var.get(), **kwargs})
        self.extra.update(kwargs)
