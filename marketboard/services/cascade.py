# marketboard/services/cascade.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, List, TypeVar

from marketboard.services.errors import CascadeExhausted

logger = logging.getLogger("marketboard.cascade")

T = TypeVar("T")


@dataclass(frozen=True)
class Stage(Generic[T]):
    name: str
    fetch: Callable[[], Awaitable[T]]


@dataclass(frozen=True)
class CascadeResult(Generic[T]):
    value: T
    source: str
    attempts: int


async def run_cascade(
    label: str,
    primary: Stage[T],
    secondary: Stage[T],
    *,
    retries: int = 1,
    retry_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> CascadeResult[T]:
    """
    Primary with `retries` extra attempts (fixed delay), then the secondary once.

    Raises CascadeExhausted carrying every stage error if nothing succeeded.
    """
    errors: List[BaseException] = []
    attempts = 0
    total = max(0, retries) + 1

    for attempt in range(1, total + 1):
        attempts += 1
        try:
            return CascadeResult(await primary.fetch(), primary.name, attempts)
        except Exception as e:
            errors.append(e)
            logger.warning(
                "⚠️ %s primary failed | provider=%s | attempt=%d/%d | err=%s",
                label, primary.name, attempt, total, e,
            )
            if attempt < total:
                await sleep(retry_delay)

    attempts += 1
    try:
        value = await secondary.fetch()
    except Exception as e:
        errors.append(e)
        logger.warning("❌ %s secondary failed | provider=%s | err=%s", label, secondary.name, e)
        raise CascadeExhausted(label, errors) from e

    logger.info("↪️ %s served by fallback | provider=%s", label, secondary.name)
    return CascadeResult(value, secondary.name, attempts)
