"""Suspending wait-until primitive.

Conditions may be plain callables or coroutine functions; anything truthy they
return ends the wait and is handed back to the caller.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar, Union

from copay_autofill.exceptions import ElementWaitTimeout

log = logging.getLogger(__name__)

T = TypeVar("T")

Condition = Callable[[], Union[T, Awaitable[T]]]


async def wait_until(
    condition: Condition[T],
    *,
    interval: float,
    timeout: float,
    what: str = "condition",
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Poll *condition* every *interval* seconds until it returns something truthy.

    Raises:
        ElementWaitTimeout: If *timeout* seconds pass without a truthy value.
    """
    start = clock()
    while True:
        value = condition()
        if inspect.isawaitable(value):
            value = await value
        if value:
            return value  # type: ignore[return-value]
        waited = clock() - start
        if waited >= timeout:
            raise ElementWaitTimeout(
                f"Timed out after {timeout:.1f}s waiting for {what}", waited=waited
            )
        log.debug("Waiting for %s (%.1fs elapsed)", what, waited)
        await sleep(interval)
