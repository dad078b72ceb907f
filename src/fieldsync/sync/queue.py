"""Serialize synchronization runs per document."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Set

__all__ = ["DocumentQueue"]

LOGGER = logging.getLogger(__name__)

Worker = Callable[[str], Awaitable[Any]]


class DocumentQueue:
    """Run ``worker`` for a document with at most one run in flight.

    A trigger that arrives while the document is being processed marks a
    single pending re-run, executed right after the current one completes.
    Triggers arriving during the debounce delay are absorbed by the run that
    is about to start.
    """

    def __init__(self, worker: Worker, *, debounce: float = 0.0) -> None:
        self._worker = worker
        self._debounce = max(0.0, float(debounce))
        self._tasks: Dict[str, asyncio.Task[None]] = {}
        self._pending: Set[str] = set()
        self.results: Dict[str, Any] = {}
        self.failures: Dict[str, BaseException] = {}
        self.runs: Dict[str, int] = {}

    def in_flight(self, document: str) -> bool:
        task = self._tasks.get(document)
        return task is not None and not task.done()

    def trigger(self, document: str) -> asyncio.Task[None]:
        """Schedule a run for ``document``; must be called from a running loop."""

        task = self._tasks.get(document)
        if task is not None and not task.done():
            self._pending.add(document)
            LOGGER.debug("queue.coalesced", extra={"document": document})
            return task
        task = asyncio.get_running_loop().create_task(self._run(document))
        self._tasks[document] = task
        return task

    async def _run(self, document: str) -> None:
        try:
            while True:
                if self._debounce:
                    await asyncio.sleep(self._debounce)
                self._pending.discard(document)
                self.runs[document] = self.runs.get(document, 0) + 1
                try:
                    result = await self._worker(document)
                except Exception as exc:
                    LOGGER.exception("queue.run_failed", extra={"document": document})
                    self.failures[document] = exc
                else:
                    self.results[document] = result
                    self.failures.pop(document, None)
                if document not in self._pending:
                    break
        finally:
            if self._tasks.get(document) is asyncio.current_task():
                del self._tasks[document]

    async def drain(self) -> None:
        """Wait until no run is in flight or pending."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)
