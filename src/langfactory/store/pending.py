"""
Pending batch: coalesced persistence with an explicit flush.

Editor actions arrive in bursts (one keystroke, one catalog save). A
``PendingBatch`` queues them and hands the whole queue to a flush function
either on demand (:meth:`flush`), after a quiet period (``delay``), or on
:meth:`close`. Nothing queued is lost on shutdown: ``close`` always flushes.

Examples:
    >>> saved = []
    >>> with PendingBatch(saved.extend) as batch:
    ...     batch.add("a")
    ...     batch.add("b")
    >>> saved
    ['a', 'b']
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

from langfactory.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class PendingBatch(Generic[T]):
    """Queue of items flushed together.

    Args:
        flush_fn: Receives every queued item, in arrival order.
        delay: Quiet period in seconds. Each :meth:`add` re-arms a timer,
            and so does a failed timed flush; ``None`` disables timed flushing.
        name: Label for log events.
    """

    def __init__(
        self,
        flush_fn: Callable[[list[T]], None],
        *,
        delay: float | None = None,
        name: str = "pending",
    ) -> None:
        self._flush_fn = flush_fn
        self._delay = delay
        self._name = name
        self._items: list[T] = []
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._closed = False

    def add(self, item: T) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError(f"{self._name} batch is closed")
            self._items.append(item)
            if self._delay is not None:
                self._rearm()

    def pending(self) -> list[T]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def flush(self) -> int:
        """Hand queued items to ``flush_fn``; returns how many were flushed.

        If ``flush_fn`` raises, the items go back to the front of the queue
        and the exception propagates.
        """
        with self._flush_lock:
            with self._lock:
                items, self._items = self._items, []
                self._cancel_timer()
            if not items:
                return 0
            try:
                self._flush_fn(items)
            except Exception:
                with self._lock:
                    self._items[:0] = items
                raise
            logger.debug("pending_batch_flushed", batch=self._name, items=len(items))
            return len(items)

    def close(self) -> int:
        """Stop timed flushing and flush whatever is queued."""
        with self._lock:
            self._closed = True
            self._cancel_timer()
        return self.flush()

    @contextmanager
    def hold(self) -> Iterator[PendingBatch[T]]:
        """Keep flushes out while a caller reads pending items and adds a new one.

        Must not call :meth:`flush` or :meth:`close` inside the block.
        """
        with self._flush_lock:
            yield self

    def __enter__(self) -> PendingBatch[T]:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # -- timer -------------------------------------------------------------

    def _rearm(self) -> None:
        self._cancel_timer()
        self._timer = threading.Timer(self._delay, self._flush_from_timer)
        self._timer.daemon = True
        self._timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _flush_from_timer(self) -> None:
        try:
            self.flush()
        except Exception:
            logger.exception("pending_batch_flush_failed", batch=self._name, items=len(self))
            # flush() re-queued the items; retry after another quiet period
            with self._lock:
                if not self._closed and self._items and self._timer is None:
                    self._rearm()
