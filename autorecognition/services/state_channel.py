"""
Single-writer channel holding the current recognition snapshot
"""
import asyncio
import threading
from datetime import datetime
from typing import List, Optional

from autorecognition.core.logging import get_logger
from autorecognition.models.state import IdleState, RecognitionSnapshot

logger = get_logger(__name__)

_UNSET = object()


class StateChannel:
    """
    Holds the current snapshot and fans it out to subscribers

    Every change goes through ``publish``, which swaps the whole frozen
    snapshot under a lock, so readers never observe a partial update.
    Progress never decreases within one attempt.
    """

    def __init__(self, max_queue_size: int = 0):
        self._lock = threading.Lock()
        self._snapshot = RecognitionSnapshot(state=IdleState())
        self._subscribers: List[asyncio.Queue] = []
        self._max_queue_size = max_queue_size

    @property
    def snapshot(self) -> RecognitionSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def state(self):
        return self.snapshot.state

    def publish(
        self,
        state=_UNSET,
        attempt_id=_UNSET,
        progress: Optional[float] = None,
        phase: Optional[str] = None,
        retry_count: Optional[int] = None,
        is_retrying: Optional[bool] = None
    ) -> RecognitionSnapshot:
        """
        Replace the snapshot with the given fields changed

        A new attempt id resets progress, phase and retry status.
        """
        with self._lock:
            current = self._snapshot
            update = {"updated_at": datetime.now()}

            if attempt_id is not _UNSET and attempt_id != current.attempt_id:
                update.update(
                    attempt_id=attempt_id, progress=0.0, phase="", retry_count=0, is_retrying=False
                )
                baseline = 0.0
            else:
                baseline = current.progress

            if state is not _UNSET:
                update["state"] = state
            if progress is not None:
                update["progress"] = max(baseline, min(progress, 1.0))
            if phase is not None:
                update["phase"] = phase
            if retry_count is not None:
                update["retry_count"] = retry_count
            if is_retrying is not None:
                update["is_retrying"] = is_retrying

            snapshot = current.model_copy(update=update)
            self._snapshot = snapshot
            subscribers = list(self._subscribers)

        for queue in subscribers:
            try:
                queue.put_nowait(snapshot)
            except asyncio.QueueFull:
                logger.warning("Dropping snapshot for slow subscriber")

        return snapshot

    def subscribe(self) -> asyncio.Queue:
        """Queue receiving every subsequent snapshot, starting with the current one"""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        with self._lock:
            self._subscribers.append(queue)
            queue.put_nowait(self._snapshot)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        with self._lock:
            if queue in self._subscribers:
                self._subscribers.remove(queue)
