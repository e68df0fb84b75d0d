"""Cooperative delays between upserts."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .options import ImportOptions

log = getLogger(__name__)

type Sleeper = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class Throttle:
    """Suspend the pass according to the configured delays.

    Delays are expressed in milliseconds. ``sleep`` receives seconds, like
    ``asyncio.sleep``, and is the only suspension point, so cancelling the
    surrounding task interrupts a pending delay.
    """

    sleep: Sleeper = asyncio.sleep

    async def pause(self, milliseconds: float) -> None:
        if milliseconds <= 0:
            return
        log.debug("Throttling import for %sms", milliseconds)
        await self.sleep(milliseconds / 1000)

    async def before_record(self, processed: int, options: ImportOptions) -> None:
        """Apply the batch delay, then the per-item delay, before one upsert."""

        batch_size = options.number_of_items_before_delay
        if batch_size is not None and batch_size > 0 and processed % batch_size == 0:
            await self.pause(options.delay_after_item_batch)
        await self.pause(options.delay_between_items)
