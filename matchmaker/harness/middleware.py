from __future__ import annotations

import functools
from typing import Awaitable, Callable

Scenario = Callable[..., Awaitable[None]]
Middleware = Callable[[Scenario], Scenario]


def identity(fn: Scenario) -> Scenario:
    return fn


def backward_compatibility_middleware(fn: Scenario) -> Scenario:
    """Run legacy ``fn(s, t, instances)`` scenarios under the ``fn(s, t)`` signature."""

    @functools.wraps(fn)
    async def wrapper(s, t):
        return await fn(s, t, s.instances)

    return wrapper


def compose(*middlewares: Middleware) -> Middleware:
    def combined(fn: Scenario) -> Scenario:
        for mw in reversed(middlewares):
            fn = mw(fn)
        return fn

    return combined
