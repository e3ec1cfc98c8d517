"""Client-side upload queue.

Files are added to an :class:`UploadQueue` as :class:`UploadTask` entries and
sent to ``POST /api/upload`` by an :class:`Uploader`. Each task moves through

    pending -> uploading -> completed
    pending -> uploading -> error

and a file that fails local validation enters the queue directly in
``error``. Local validation mirrors the server's; the server stays the
authority.

The queue is the only mutable state. Every change goes through one of its
actions (``add``, ``set_progress``, ``set_status``, ``remove``), which swap
in a new immutable task snapshot and notify subscribers.
"""
from __future__ import annotations

import asyncio
import logging
import mimetypes
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

import httpx

from vgm_admin.client.preview import create_preview, release_preview
from vgm_admin.config import settings
from vgm_admin.utils.validation import MESSAGES, check_image

logger = logging.getLogger(__name__)

# Not registered by default on older interpreters
mimetypes.add_type("image/webp", ".webp")

UPLOAD_PATH = "/api/upload"
UPLOAD_FAILED = "Upload failed"
CHUNK_SIZE = 64 * 1024
DEFAULT_TIMEOUT = httpx.Timeout(120.0, connect=10.0)


class UploadStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"


_TRANSITIONS = {
    UploadStatus.PENDING: {UploadStatus.UPLOADING},
    UploadStatus.UPLOADING: {UploadStatus.COMPLETED, UploadStatus.ERROR},
    UploadStatus.COMPLETED: set(),
    UploadStatus.ERROR: set(),
}


class InvalidTransition(ValueError):
    """Raised when a task is moved to a status it cannot reach."""


@dataclass(frozen=True)
class UploadTask:
    """Snapshot of one queued file."""

    id: str
    source: Path
    name: str
    content_type: Optional[str]
    size: int
    preview: Optional[Path] = None
    progress: int = 0
    status: UploadStatus = UploadStatus.PENDING
    result_url: Optional[str] = None
    error_message: Optional[str] = None


Listener = Callable[[str, UploadTask], None]


class UploadQueue:
    """Ordered store of upload tasks with explicit transition actions.

    Listeners are called as ``listener(action, task)`` after every change,
    where *action* is the name of the action and *task* the new snapshot
    (or the removed one for ``remove``). Actions addressed to a task that is
    no longer in the queue are ignored and return ``None``.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, UploadTask] = {}
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[UploadTask]:
        return iter(list(self._tasks.values()))

    @property
    def tasks(self) -> List[UploadTask]:
        return list(self._tasks.values())

    def get(self, task_id: str) -> Optional[UploadTask]:
        return self._tasks.get(task_id)

    def pending(self) -> List[UploadTask]:
        return [t for t in self._tasks.values() if t.status is UploadStatus.PENDING]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, action: str, task: UploadTask) -> None:
        for listener in list(self._listeners):
            listener(action, task)

    def _store(self, action: str, task: UploadTask) -> UploadTask:
        self._tasks[task.id] = task
        self._emit(action, task)
        return task

    # Actions

    def add(self, task: UploadTask) -> UploadTask:
        if task.id in self._tasks:
            raise ValueError(f"Task {task.id} is already queued")
        return self._store("add", task)

    def set_progress(self, task_id: str, progress: int) -> Optional[UploadTask]:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        progress = max(0, min(100, int(progress)))
        if progress == task.progress:
            return task
        return self._store("set_progress", replace(task, progress=progress))

    def set_status(
        self,
        task_id: str,
        status: UploadStatus,
        *,
        result_url: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Optional[UploadTask]:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        if status not in _TRANSITIONS[task.status]:
            raise InvalidTransition(f"{task.status.value} -> {status.value}")

        changes = {"status": status}
        if status is UploadStatus.UPLOADING:
            changes["progress"] = 0
        elif status is UploadStatus.COMPLETED:
            changes["progress"] = 100
            changes["result_url"] = result_url
        else:
            changes["error_message"] = error_message or UPLOAD_FAILED
        return self._store("set_status", replace(task, **changes))

    def remove(self, task_id: str) -> Optional[UploadTask]:
        task = self._tasks.pop(task_id, None)
        if task is not None:
            self._emit("remove", task)
        return task


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return UPLOAD_FAILED
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return UPLOAD_FAILED


class Uploader:
    """Sends queued files to the upload endpoint.

    Uploads are independent requests; :meth:`upload_all` starts every
    pending task at once with no ordering between them. Removing a task
    that is uploading cancels its request.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        queue: Optional[UploadQueue] = None,
        *,
        upload_path: str = UPLOAD_PATH,
        chunk_size: int = CHUNK_SIZE,
        make_previews: bool = True,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.api_base_url, timeout=DEFAULT_TIMEOUT
        )
        self.queue = queue if queue is not None else UploadQueue()
        self._upload_path = upload_path
        self._chunk_size = chunk_size
        self._make_previews = make_previews
        self._inflight: Dict[str, asyncio.Task] = {}

    async def __aenter__(self) -> "Uploader":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def add_files(self, paths: Iterable[Union[str, Path]]) -> List[UploadTask]:
        """Queue files; each becomes its own task.

        Raises:
            OSError: If a path cannot be read
        """
        added = []
        for raw in paths:
            path = Path(raw)
            size = path.stat().st_size
            content_type, _ = mimetypes.guess_type(path.name)
            reason = check_image(content_type, size)
            task = UploadTask(
                id=uuid.uuid4().hex,
                source=path,
                name=path.name,
                content_type=content_type,
                size=size,
                preview=create_preview(path) if self._make_previews else None,
                status=UploadStatus.ERROR if reason else UploadStatus.PENDING,
                error_message=MESSAGES[reason] if reason else None,
            )
            added.append(self.queue.add(task))
        return added

    async def upload(self, task_id: str) -> Optional[UploadTask]:
        """Upload one pending task.

        Tasks in any other status are returned unchanged. Returns ``None``
        if the task was removed while uploading.
        """
        task = self.queue.get(task_id)
        if task is None or task.status is not UploadStatus.PENDING:
            return task

        self.queue.set_status(task_id, UploadStatus.UPLOADING)
        job = asyncio.ensure_future(self._run(task))
        self._inflight[task_id] = job
        try:
            await asyncio.wait({job})
        except asyncio.CancelledError:
            job.cancel()
            raise
        finally:
            self._inflight.pop(task_id, None)

        if job.cancelled():
            return None
        return job.result()

    async def upload_all(self) -> List[UploadTask]:
        """Start every pending task; returns final snapshots, skipping removed tasks."""
        ids = [task.id for task in self.queue.pending()]
        results = await asyncio.gather(*(self.upload(task_id) for task_id in ids))
        return [task for task in results if task is not None]

    def remove(self, task_id: str) -> Optional[UploadTask]:
        """Drop a task, release its preview and cancel its request if in flight."""
        job = self._inflight.get(task_id)
        if job is not None and not job.done():
            job.cancel()
        task = self.queue.remove(task_id)
        if task is not None:
            release_preview(task.preview)
        return task

    def close(self) -> None:
        """Remove every task, releasing all previews."""
        for task in self.queue.tasks:
            self.remove(task.id)

    async def aclose(self) -> None:
        self.close()
        if self._owns_client:
            await self._client.aclose()

    async def _run(self, task: UploadTask) -> Optional[UploadTask]:
        try:
            data = await asyncio.to_thread(task.source.read_bytes)
            response = await self._send(task, data)
        except (httpx.TransportError, OSError) as exc:
            logger.warning("Upload of %s failed: %s", task.name, exc)
            return self.queue.set_status(
                task.id, UploadStatus.ERROR, error_message=UPLOAD_FAILED
            )

        if response.status_code == 200:
            try:
                file_url = response.json()["fileUrl"]
            except (ValueError, KeyError, TypeError):
                return self.queue.set_status(
                    task.id, UploadStatus.ERROR, error_message=UPLOAD_FAILED
                )
            logger.info("Uploaded %s -> %s", task.name, file_url)
            return self.queue.set_status(
                task.id, UploadStatus.COMPLETED, result_url=file_url
            )

        message = _error_message(response)
        logger.warning("Upload of %s rejected (%s): %s", task.name, response.status_code, message)
        return self.queue.set_status(task.id, UploadStatus.ERROR, error_message=message)

    async def _send(self, task: UploadTask, data: bytes) -> httpx.Response:
        # Encode the multipart body once, then stream it in chunks so progress
        # can be reported per chunk as the transport consumes it.
        encoded = self._client.build_request(
            "POST",
            self._upload_path,
            files={"file": (task.name, data, task.content_type or "application/octet-stream")},
        )
        body = encoded.read()
        total = len(body)

        async def stream():
            sent = 0
            for start in range(0, total, self._chunk_size):
                chunk = body[start:start + self._chunk_size]
                yield chunk
                sent += len(chunk)
                self.queue.set_progress(task.id, round(sent * 100 / total))

        request = self._client.build_request(
            "POST",
            self._upload_path,
            headers={
                "Content-Type": encoded.headers["Content-Type"],
                "Content-Length": str(total),
            },
            content=stream(),
        )
        return await self._client.send(request)
