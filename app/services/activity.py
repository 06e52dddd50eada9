"""
Activity Recorder

Appends feed activities ("book_published", "review_created", ...).

Two ways to record:

1. record_in_session(db, ...): adds the activity to the caller's session.
   Used by follow/unfollow so the edge and its activity commit or roll back
   together. Errors propagate to the caller.

2. ActivityRecorder.record(...): best effort, at most once. Used after a
   business write has already committed (review created, book published).
   Failures are logged and counted, never raised, so a lost activity can't
   fail or roll back the operation that triggered it.

   When the recorder is started (the application lifespan does this), record()
   only enqueues the event on a bounded queue and returns; a worker thread
   drains the queue and writes each event in its own session. A full queue
   drops the event with a warning. When the recorder isn't started, record()
   writes inline with the same error policy.

Usage:
    from app.models import ActivityType

    recorder.record(
        ActivityType.REVIEW_CREATED,
        user_id=reader.id,
        target_id=book.id,
        metadata={"rating": 5},
    )
"""

import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.activity import Activity, ActivityType

logger = logging.getLogger(__name__)


# =============================================================================
# Events
# =============================================================================


@dataclass
class ActivityEvent:
    """
    An activity waiting to be written.

    Attributes:
        activity_type: The event type
        user_id: The actor
        target_id: What was acted upon
        metadata: Free-form event data
        created_at: When the event happened (not when it was written)
    """

    activity_type: ActivityType
    user_id: int
    target_id: int
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_model(self) -> Activity:
        return Activity(
            user_id=self.user_id,
            activity_type=ActivityType(self.activity_type).value,
            target_id=self.target_id,
            details=dict(self.metadata),
            created_at=self.created_at,
        )


def record_in_session(
    db: Session,
    activity_type: ActivityType,
    user_id: int,
    target_id: int,
    metadata: dict[str, Any] | None = None,
) -> Activity:
    """
    Add an activity to an open unit of work.

    The activity is flushed but not committed; it becomes durable only when
    the caller commits. Errors propagate so the caller can roll back.
    """
    activity = ActivityEvent(activity_type, user_id, target_id, metadata or {}).to_model()
    db.add(activity)
    db.flush()
    return activity


# =============================================================================
# Best-effort Recorder
# =============================================================================

_STOP = object()


class ActivityRecorder:
    """
    Best-effort activity writer with an optional background worker.

    Args:
        session_factory: Callable returning a new Session (e.g. SessionLocal)
        queue_size: Maximum number of pending events while the worker runs
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        queue_size: int = 1000,
    ) -> None:
        self._session_factory = session_factory
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._worker: threading.Thread | None = None
        self._stats_lock = threading.Lock()
        self.recorded = 0
        self.failed = 0
        self.dropped = 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------
    def start(self) -> None:
        """Start the dispatch worker. Calling start twice is a no-op."""
        if self.is_running:
            return
        self._worker = threading.Thread(
            target=self._drain,
            name="activity-dispatch",
            daemon=True,
        )
        self._worker.start()
        logger.info("Activity dispatch worker started")

    def stop(self, timeout: float | None = 5.0) -> None:
        """Write everything still queued, then stop the worker."""
        if not self.is_running:
            return
        self._queue.put(_STOP)
        self._worker.join(timeout)
        if self._worker.is_alive():
            logger.warning("Activity dispatch worker still draining after stop timeout")
            return
        self._worker = None
        logger.info(f"Activity dispatch worker stopped ({self.stats()})")

    def join(self) -> None:
        """Block until every queued event has been processed."""
        self._queue.join()

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------
    def record(
        self,
        activity_type: ActivityType,
        user_id: int,
        target_id: int,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Record an activity without ever raising.

        Enqueues when the worker runs, writes inline otherwise.
        """
        event = ActivityEvent(activity_type, user_id, target_id, metadata or {})

        if not self.is_running:
            self._write(event)
            return

        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._count("dropped")
            logger.warning(
                f"Activity queue full, dropped {event.activity_type} "
                f"for user {event.user_id}"
            )

    def stats(self) -> dict[str, Any]:
        with self._stats_lock:
            return {
                "running": self.is_running,
                "pending": self._queue.qsize(),
                "recorded": self.recorded,
                "failed": self.failed,
                "dropped": self.dropped,
            }

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    def _drain(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    return
                self._write(event)
            finally:
                self._queue.task_done()

    def _write(self, event: ActivityEvent) -> bool:
        try:
            with self._session_factory() as session:
                session.add(event.to_model())
                session.commit()
        except (SQLAlchemyError, ValueError) as e:
            self._count("failed")
            logger.error(
                f"Error recording {event.activity_type} activity "
                f"for user {event.user_id}: {e}"
            )
            return False
        self._count("recorded")
        logger.debug(f"Recorded {event.activity_type} activity for user {event.user_id}")
        return True

    def _count(self, counter: str) -> None:
        with self._stats_lock:
            setattr(self, counter, getattr(self, counter) + 1)
