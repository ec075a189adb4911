from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from rich.console import Console

PREFIX = "got unhandled exception:"


class UnhandledFaults:
    """Event-loop exception handler that prints and keeps going.

    It never decides whether a scenario passed.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)
        self.messages: List[str] = []

    @property
    def count(self) -> int:
        return len(self.messages)

    def __call__(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        exc = context.get("exception")
        detail = repr(exc) if exc is not None else str(context.get("message", "unknown error"))
        self.messages.append(detail)
        self.console.print(f"{PREFIX} {detail}", markup=False, highlight=False, style="red")


def install_unhandled_handler(loop: asyncio.AbstractEventLoop, console: Optional[Console] = None) -> UnhandledFaults:
    handler = UnhandledFaults(console)
    loop.set_exception_handler(handler)
    return handler
