"""Deferred, per-conversation insight analysis."""

import asyncio
import random
from typing import Awaitable, Callable, Protocol

from ..config import InsightSettings
from ..logging_config import get_logger, log_context
from ..models import InsightCandidate, Message
from .rules import analyze

logger = get_logger(__name__)


InsightSink = Callable[[Message, list[InsightCandidate]], Awaitable[None]]
Analyzer = Callable[[str, float, random.Random | None], list[InsightCandidate]]


class IInsightPipeline(Protocol):
    """Schedules analysis of appended messages for one conversation."""

    def schedule(self, message: Message) -> None:
        """Queue a message for analysis after the delay window. Never blocks."""
        ...

    def close(self) -> None:
        """Cancel pending analysis; nothing is delivered afterwards."""
        ...

    async def wait_idle(self) -> None:
        """Wait until every queued message has been analysed."""
        ...

    async def aclose(self) -> None:
        """Close, then wait for the cancelled worker to finish."""
        ...


def conversation_rng(seed: int | None, conversation_id: str) -> random.Random:
    """Per-conversation generator; reproducible when a seed is configured."""
    if seed is None:
        return random.Random()
    return random.Random(f"{seed}:{conversation_id}")


class InsightPipeline:
    """
    FIFO analysis queue with a single worker task.

    Each scheduled message waits out ``settings.delay_seconds`` measured from
    its own scheduling time, then is analysed and its candidates handed to the
    sink. One worker per conversation keeps delivery in append order.
    """

    def __init__(
        self,
        conversation_id: str,
        sink: InsightSink,
        settings: InsightSettings | None = None,
        rng: random.Random | None = None,
        analyzer: Analyzer = analyze,
    ):
        self._conversation_id = conversation_id
        self._sink = sink
        self._settings = settings or InsightSettings()
        self._rng = rng or conversation_rng(self._settings.random_seed, conversation_id)
        self._analyzer = analyzer
        self._queue: asyncio.Queue[tuple[float, Message]] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def schedule(self, message: Message) -> None:
        """Queue a message for analysis after the delay window."""
        if self._closed:
            logger.debug(
                "Pipeline closed, skipping analysis of %s",
                message.id,
                extra=log_context(self._conversation_id),
            )
            return

        loop = asyncio.get_running_loop()
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._run())

        due = loop.time() + self._settings.delay_seconds
        self._queue.put_nowait((due, message))

    def close(self) -> None:
        """Cancel the worker and drop queued messages."""
        if self._closed:
            return
        self._closed = True

        if self._worker:
            self._worker.cancel()

        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1

        logger.info(
            "Insight pipeline closed",
            extra=log_context(self._conversation_id, dropped=dropped),
        )

    async def wait_idle(self) -> None:
        """Wait until every queued message has been analysed."""
        await self._queue.join()

    async def aclose(self) -> None:
        """Close and wait for the worker task to unwind."""
        self.close()
        if self._worker is not None:
            await asyncio.gather(self._worker, return_exceptions=True)

    async def _run(self) -> None:
        """Worker loop: one message at a time, in scheduling order."""
        loop = asyncio.get_running_loop()
        while not self._closed:
            due, message = await self._queue.get()
            try:
                delay = due - loop.time()
                if delay > 0:
                    await asyncio.sleep(delay)

                if self._closed:
                    continue

                candidates = self._analyze(message)
                if candidates:
                    await self._sink(message, candidates)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"Insight delivery failed for {message.id}: {e}",
                    exc_info=True,
                    extra=log_context(self._conversation_id),
                )
            finally:
                self._queue.task_done()

    def _analyze(self, message: Message) -> list[InsightCandidate]:
        """Run the analyzer; failures are logged and produce no insights."""
        try:
            return self._analyzer(
                message.text,
                self._settings.general_probability,
                self._rng,
            )
        except Exception as e:
            logger.error(
                f"Insight analysis failed for {message.id}: {e}",
                exc_info=True,
                extra=log_context(self._conversation_id),
            )
            return []
