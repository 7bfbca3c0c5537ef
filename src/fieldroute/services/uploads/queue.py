"""Attachment upload queue and the pin-location flow.

Both are owned by the session that creates them; nothing here is module-level
state. The actual transfer is delegated to an `upload_file(data, metadata)`
callable that returns the stored file URL.
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from ...models.domain import Point
from ..routing.coordinator import CancellationToken

UploadFn = Callable[[bytes, dict], str]

logger = logging.getLogger(__name__)


class UploadState(str, Enum):
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(slots=True)
class UploadTask:
    data: bytes
    metadata: dict
    task_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: UploadState = UploadState.IDLE
    url: Optional[str] = None
    error: Optional[str] = None


class UploadQueue:
    def __init__(self, upload_file: UploadFn) -> None:
        self._upload_file = upload_file
        self._pending: deque[UploadTask] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    def enqueue(self, data: bytes, metadata: dict | None = None) -> UploadTask:
        if not data:
            raise ValueError("Cannot enqueue an empty attachment.")
        task = UploadTask(data=data, metadata=dict(metadata or {}))
        self._pending.append(task)
        return task

    def drain(self, token: CancellationToken | None = None) -> list[UploadTask]:
        """Upload pending tasks in FIFO order.

        A failing upload is marked FAILED and the queue moves on. Cancelling the
        token stops the drain; tasks not yet started stay queued.
        """
        processed: list[UploadTask] = []
        failed = 0
        while self._pending:
            if token is not None and token.cancelled:
                logger.info("Upload drain cancelled with %d tasks pending", len(self._pending))
                break
            task = self._pending.popleft()
            task.state = UploadState.UPLOADING
            try:
                task.url = self._upload_file(task.data, task.metadata)
                task.state = UploadState.DONE
            except Exception as exc:
                task.state = UploadState.FAILED
                task.error = str(exc)
                failed += 1
                logger.warning("Upload %s failed: %s", task.task_id, exc)
            processed.append(task)
        if failed:
            logger.warning("Partial failure: %d/%d uploads failed", failed, len(processed))
        return processed


class PinFlowState(str, Enum):
    IDLE = "IDLE"
    REQUESTING_PERMISSION = "REQUESTING_PERMISSION"
    FETCHING_LOCATION = "FETCHING_LOCATION"
    UPLOADING = "UPLOADING"
    DONE = "DONE"
    FAILED = "FAILED"


_TRANSITIONS: dict[PinFlowState, set[PinFlowState]] = {
    PinFlowState.IDLE: {PinFlowState.REQUESTING_PERMISSION},
    PinFlowState.REQUESTING_PERMISSION: {PinFlowState.FETCHING_LOCATION, PinFlowState.FAILED},
    PinFlowState.FETCHING_LOCATION: {PinFlowState.UPLOADING, PinFlowState.FAILED},
    PinFlowState.UPLOADING: {PinFlowState.DONE, PinFlowState.FAILED},
    PinFlowState.DONE: set(),
    PinFlowState.FAILED: set(),
}


class PinLocationFlow:
    """Permission, current position, then attachment upload, as one sequential flow."""

    def __init__(
        self,
        request_permission: Callable[[], bool],
        get_current_location: Callable[[], Point],
        queue: UploadQueue,
    ) -> None:
        self._request_permission = request_permission
        self._get_current_location = get_current_location
        self.queue = queue
        self.state = PinFlowState.IDLE
        self.location: Optional[Point] = None
        self.error: Optional[str] = None
        self.uploads: list[UploadTask] = []

    def _advance(self, target: PinFlowState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid pin flow transition {self.state.value} -> {target.value}")
        self.state = target

    def _fail(self, message: str) -> PinFlowState:
        self.error = message
        self._advance(PinFlowState.FAILED)
        logger.warning("Pin location flow failed: %s", message)
        return self.state

    def run(
        self,
        attachments: list[tuple[bytes, dict[str, Any]]],
        token: CancellationToken | None = None,
    ) -> PinFlowState:
        self._advance(PinFlowState.REQUESTING_PERMISSION)
        if not self._request_permission():
            return self._fail("Location permission is required to pin your current location.")

        self._advance(PinFlowState.FETCHING_LOCATION)
        try:
            self.location = self._get_current_location()
        except Exception as exc:
            return self._fail(f"Failed to get your current location: {exc}")
        if token is not None and token.cancelled:
            return self._fail("Cancelled before upload.")

        self._advance(PinFlowState.UPLOADING)
        for data, metadata in attachments:
            self.queue.enqueue(
                data,
                {**metadata, "latitude": self.location.latitude, "longitude": self.location.longitude},
            )
        self.uploads = self.queue.drain(token)
        failures = [task for task in self.uploads if task.state is UploadState.FAILED]
        if failures or len(self.queue):
            return self._fail(f"{len(failures)} uploads failed, {len(self.queue)} not started")
        self._advance(PinFlowState.DONE)
        return self.state
