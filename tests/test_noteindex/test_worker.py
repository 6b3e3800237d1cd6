"""Tests for noteindex.worker.IndexWorker."""

import asyncio

import pytest

from noteindex.engine import NoteIndex, RebuildStats
from noteindex.errors import NoteIndexError, UnknownOperationError
from noteindex.snapshot import IndexSnapshot
from noteindex.worker import IndexWorker


@pytest.fixture()
def notes(documents):
    documents.put("Alpha", "- about [[Beta]]\n", 10)
    documents.put("Gamma", "- also [[Beta]]\n", 20)
    return documents


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestWorkerLifecycle:
    def test_post_requires_running_worker(self, index: NoteIndex):
        async def scenario():
            worker = IndexWorker(index)
            with pytest.raises(NoteIndexError):
                worker.post("search", "x")

        asyncio.run(scenario())

    def test_context_manager_starts_and_stops(self, index: NoteIndex):
        async def scenario():
            worker = IndexWorker(index)
            async with worker:
                assert worker.running
            return worker.running

        assert asyncio.run(scenario()) is False

    def test_stop_is_safe_before_start_and_twice(self, index: NoteIndex):
        async def scenario():
            worker = IndexWorker(index)
            await worker.stop()
            await worker.start()
            await worker.stop()
            await worker.stop()
            return worker.running

        assert asyncio.run(scenario()) is False

    def test_stop_drains_queue(self, index: NoteIndex, notes):
        async def scenario():
            worker = IndexWorker(index, documents=notes)
            await worker.start()
            rebuild = worker.post("rebuild", None)
            search = worker.post("search", "")
            await worker.stop()
            return rebuild.future.result(), search.future.result()

        stats, hits = asyncio.run(scenario())
        assert isinstance(stats, RebuildStats)
        assert {e.page_id for e in hits} == {"Alpha", "Beta", "Gamma"}


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestWorkerRequests:
    def test_request_ids_increase(self, index: NoteIndex):
        async def scenario():
            async with IndexWorker(index) as worker:
                reqs = [worker.post("search", "a") for _ in range(3)]
                await asyncio.gather(*(r.future for r in reqs))
                return [r.request_id for r in reqs]

        assert asyncio.run(scenario()) == [1, 2, 3]

    def test_requests_processed_in_order(self, index: NoteIndex, notes):
        async def scenario():
            async with IndexWorker(index) as worker:
                # the search is queued behind the rebuild and sees its result
                rebuild = worker.post("rebuild", notes)
                backlinks = worker.post("get-backlinks", "Beta")
                await rebuild.future
                return await backlinks.future

        assert asyncio.run(scenario()) == ["Alpha", "Gamma"]

    def test_update_and_remove(self, index: NoteIndex, notes):
        async def scenario():
            async with IndexWorker(index) as worker:
                await worker.request("rebuild", notes)
                notes.put("Alpha", "- nothing\n", 11)
                assert await worker.request("update-file", "Alpha") == "Alpha"
                await worker.request("remove-file", "Gamma")
                return await worker.request("get-backlinks", "Beta")

        assert asyncio.run(scenario()) == []
        assert not index.store.has_phantom("Beta")

    def test_rename_affected(self, index: NoteIndex, notes):
        async def scenario():
            async with IndexWorker(index, documents=notes) as worker:
                await worker.request("rebuild")
                return await worker.request("get-rename-affected", "Beta")

        assert asyncio.run(scenario()) == ["Alpha", "Gamma"]

    def test_export_and_import(self, index: NoteIndex, notes):
        async def scenario():
            async with IndexWorker(index, documents=notes) as worker:
                await worker.request("rebuild")
                snap = await worker.request("export-index")
                await worker.request("import-index", IndexSnapshot())
                empty = await worker.request("search", "")
                await worker.request("import-index", snap)
                restored = await worker.request("search", "")
                return snap, empty, restored

        snap, empty, restored = asyncio.run(scenario())
        assert isinstance(snap, IndexSnapshot)
        assert empty == []
        assert len(restored) == len(snap.search_index)

    def test_save_index(self, index: NoteIndex, notes):
        async def scenario():
            async with IndexWorker(index, documents=notes) as worker:
                await worker.request("rebuild")
                return await worker.request("save-index")

        path = asyncio.run(scenario())
        assert path == notes.root / ".noteindex" / "index.json"
        assert path.is_file()


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestWorkerFailures:
    def test_unknown_operation(self, index: NoteIndex):
        async def scenario():
            async with IndexWorker(index) as worker:
                with pytest.raises(UnknownOperationError) as exc_info:
                    await worker.request("reticulate", None)
                return exc_info.value.operation

        assert asyncio.run(scenario()) == "reticulate"

    def test_update_without_documents(self, index: NoteIndex):
        async def scenario():
            async with IndexWorker(index) as worker:
                with pytest.raises(NoteIndexError):
                    await worker.request("update-file", "Alpha")

        asyncio.run(scenario())

    def test_failure_does_not_stop_worker(self, index: NoteIndex, notes):
        async def scenario():
            async with IndexWorker(index) as worker:
                bad = worker.post("nope")
                good = worker.post("rebuild", notes)
                with pytest.raises(UnknownOperationError):
                    await bad.future
                stats = await good.future
                return worker.running, stats

        running, stats = asyncio.run(scenario())
        assert running
        assert stats.scanned == 2
