import asyncio

from fieldsync.sync.queue import DocumentQueue


def test_triggers_during_a_run_are_coalesced() -> None:
    calls = []

    async def scenario() -> DocumentQueue:
        release = asyncio.Event()

        async def worker(document: str) -> str:
            calls.append(document)
            if len(calls) == 1:
                await release.wait()
            return document

        queue = DocumentQueue(worker)
        queue.trigger("a.md")
        await asyncio.sleep(0)
        assert queue.in_flight("a.md")
        queue.trigger("a.md")
        queue.trigger("a.md")
        queue.trigger("a.md")
        release.set()
        await queue.drain()
        return queue

    queue = asyncio.run(scenario())

    assert calls == ["a.md", "a.md"]
    assert queue.runs == {"a.md": 2}
    assert not queue.in_flight("a.md")


def test_runs_for_one_document_never_overlap() -> None:
    active = {"count": 0, "max": 0}

    async def scenario() -> None:
        async def worker(document: str) -> None:
            active["count"] += 1
            active["max"] = max(active["max"], active["count"])
            await asyncio.sleep(0.01)
            active["count"] -= 1

        queue = DocumentQueue(worker)
        for _ in range(5):
            queue.trigger("doc.md")
            await asyncio.sleep(0.002)
        await queue.drain()

    asyncio.run(scenario())
    assert active["max"] == 1


def test_different_documents_run_independently() -> None:
    async def scenario() -> DocumentQueue:
        async def worker(document: str) -> str:
            await asyncio.sleep(0)
            return document.upper()

        queue = DocumentQueue(worker)
        for document in ("a", "b", "c"):
            queue.trigger(document)
        await queue.drain()
        return queue

    queue = asyncio.run(scenario())
    assert queue.results == {"a": "A", "b": "B", "c": "C"}


def test_failures_are_recorded_and_pending_rerun_still_happens() -> None:
    attempts = []

    async def scenario() -> DocumentQueue:
        release = asyncio.Event()

        async def worker(document: str) -> str:
            attempts.append(document)
            if len(attempts) == 1:
                await release.wait()
                raise OSError("disk full")
            return "ok"

        queue = DocumentQueue(worker)
        queue.trigger("doc.md")
        await asyncio.sleep(0)
        queue.trigger("doc.md")
        release.set()
        await queue.drain()
        return queue

    queue = asyncio.run(scenario())

    assert len(attempts) == 2
    assert queue.results["doc.md"] == "ok"
    assert "doc.md" not in queue.failures


def test_failure_is_kept_when_no_rerun_follows() -> None:
    async def scenario() -> DocumentQueue:
        async def worker(document: str) -> None:
            raise ValueError("bad header")

        queue = DocumentQueue(worker)
        queue.trigger("doc.md")
        await queue.drain()
        return queue

    queue = asyncio.run(scenario())
    assert isinstance(queue.failures["doc.md"], ValueError)


def test_debounce_absorbs_rapid_triggers() -> None:
    calls = []

    async def scenario() -> None:
        async def worker(document: str) -> None:
            calls.append(document)

        queue = DocumentQueue(worker, debounce=0.05)
        for _ in range(4):
            queue.trigger("doc.md")
        await queue.drain()

    asyncio.run(scenario())
    assert calls == ["doc.md"]
