"""Callbacks registered to run when a timer expires."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)


class DelayFunc:
    """A function and its arguments, to be called later."""

    def __init__(self, func: Callable[..., Any], args: Iterable[Any] = ()) -> None:
        self.func = func
        self.args = tuple(args)

    def __str__(self) -> str:
        name = getattr(self.func, "__name__", type(self.func).__name__)
        shown = " ".join(str(arg) for arg in self.args)
        return f"{{DelayFun:{name}, args:[{shown}]}}"

    def call(self) -> None:
        """Call the function; an exception it raises is logged, not propagated."""
        try:
            self.func(*self.args)
        except Exception as exc:  # noqa: BLE001 - a failing callback must not stop the caller
            logger.error("%s Call err: %s", self, exc)