"""Sequential send loop shared by notifications, reminders and broadcasts"""
import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Sequence, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass
class BatchReport(Generic[T]):
    succeeded: List[T] = field(default_factory=list)
    failed: List[T] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)


class SendQueue:
    """Sends items one at a time with a fixed pause between them.

    One item's failure (a False result or an exception) is recorded and the
    loop moves on to the next item.
    """

    def __init__(
        self,
        delay: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.delay = delay
        self._sleep = sleep

    async def run(self, items: Sequence[T], send: Callable[[T], Awaitable[bool]]) -> BatchReport[T]:
        report: BatchReport[T] = BatchReport()

        for index, item in enumerate(items):
            if index and self.delay > 0:
                await self._sleep(self.delay)

            try:
                ok = await send(item)
            except Exception as e:
                logger.error("batch_item_failed", index=index, error=str(e))
                ok = False

            if ok:
                report.succeeded.append(item)
            else:
                report.failed.append(item)

        logger.info("batch_finished", attempted=report.attempted, succeeded=len(report.succeeded))
        return report
