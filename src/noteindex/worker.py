"""IndexWorker: hosts one NoteIndex behind an asyncio request queue.

Requests are processed strictly one after another by a single task, so a
search posted during a rebuild is answered after the rebuild finishes and
never sees a partially indexed page.

    async with IndexWorker(NoteIndex(), documents=store) as worker:
        stats = await worker.request("rebuild", store)
        hits = await worker.request("search", "meeting")
        worker.post("remove-file", "Scratch")      # fire-and-forget
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from noteindex.documents.base import DocumentStore
from noteindex.engine import NoteIndex
from noteindex.errors import NoteIndexError, UnknownOperationError

log = logging.getLogger(__name__)

_STOP = object()


@dataclass
class Request:
    request_id: int
    operation: str
    payload: Any
    future: asyncio.Future = field(repr=False)


class IndexWorker:
    def __init__(self, index: NoteIndex, *, documents: DocumentStore | None = None) -> None:
        self.index = index
        self.documents = documents
        self._ids = itertools.count(1)
        self._queue: asyncio.Queue | None = None
        self._task: asyncio.Task | None = None
        self._handlers: dict[str, Callable[[Any], Any]] = {
            "rebuild": self._rebuild,
            "update-file": self._update_file,
            "remove-file": self.index.remove_file,
            "search": self.index.search,
            "get-backlinks": self.index.get_backlinks,
            "get-rename-affected": self.index.get_rename_affected,
            "export-index": lambda _payload: self.index.export(),
            "import-index": self.index.import_snapshot,
            "save-index": self._save,
        }

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._run(self._queue), name="noteindex-worker")

    async def stop(self) -> None:
        """Finish the queued requests, then stop the worker task."""
        task, queue = self._task, self._queue
        if task is None or queue is None or task.done():
            return
        await queue.put(_STOP)
        await task
        self._task = None

    async def __aenter__(self) -> "IndexWorker":
        await self.start()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def post(self, operation: str, payload: Any = None) -> Request:
        """Queue a request and return it without waiting for the response."""
        if not self.running or self._queue is None:
            raise NoteIndexError("Index worker is not running")
        loop = asyncio.get_running_loop()
        req = Request(next(self._ids), operation, payload, loop.create_future())
        self._queue.put_nowait(req)
        log.debug("Queued request #%d %s", req.request_id, operation)
        return req

    async def request(self, operation: str, payload: Any = None) -> Any:
        return await self.post(operation, payload).future

    async def _run(self, queue: asyncio.Queue) -> None:
        while True:
            req = await queue.get()
            try:
                if req is _STOP:
                    return
                await self._dispatch(req)
            finally:
                queue.task_done()

    async def _dispatch(self, req: Request) -> None:
        try:
            handler = self._handlers.get(req.operation)
            if handler is None:
                raise UnknownOperationError(req.operation)
            result = handler(req.payload)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            log.warning("Request #%d %s failed: %s", req.request_id, req.operation, exc)
            if not req.future.done():
                req.future.set_exception(exc)
        else:
            if not req.future.done():
                req.future.set_result(result)

    # ------------------------------------------------------------------
    # Handlers needing the document store
    # ------------------------------------------------------------------

    def _require_documents(self) -> DocumentStore:
        if self.documents is None:
            raise NoteIndexError("No document store: post a 'rebuild' first")
        return self.documents

    async def _rebuild(self, documents: DocumentStore | None):
        if documents is not None:
            self.documents = documents
        return await self.index.rebuild(self._require_documents())

    async def _update_file(self, page_id: str):
        return await self.index.update_file(self._require_documents(), page_id)

    def _save(self, _payload: Any):
        return self.index.save(self._require_documents().root)
