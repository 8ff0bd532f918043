"""Visitor counter polling with a staleness guard."""

from __future__ import annotations

import itertools
import threading
from typing import Callable, Generic, Optional, TypeVar

from portfolio_core.config.settings import settings
from portfolio_core.domain.exceptions import BusinessError
from portfolio_core.infrastructure.logging.logger import logger
from portfolio_core.services.data_access import DataAccessFacade

T = TypeVar("T")


class SequencedValue(Generic[T]):
    """Holds the value of the most recently *issued* request that has completed.

    Every request takes a ticket before it starts; a response is applied only if
    its ticket is newer than the last applied one, so a slow early response can
    never overwrite a fresher value.
    """

    def __init__(self, initial: Optional[T] = None):
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self._applied_seq = 0
        self._value = initial

    def ticket(self) -> int:
        with self._lock:
            return next(self._counter)

    def offer(self, seq: int, value: T) -> bool:
        with self._lock:
            if seq <= self._applied_seq:
                return False
            self._applied_seq = seq
            self._value = value
            return True

    @property
    def value(self) -> Optional[T]:
        with self._lock:
            return self._value


class VisitorCountPoller:
    """Counts the current visit once, then refreshes the counter periodically."""

    def __init__(
        self,
        facade: DataAccessFacade,
        interval: Optional[float] = None,
        on_update: Optional[Callable[[int], None]] = None,
    ):
        self._facade = facade
        self._interval = interval if interval is not None else settings.visitor_poll_interval
        self._on_update = on_update
        self._state: SequencedValue[int] = SequencedValue()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def current(self) -> Optional[int]:
        return self._state.value

    def record_visit(self) -> Optional[int]:
        seq = self._state.ticket()
        return self._apply(seq, self._facade.increment_visitor_count())

    def poll_once(self) -> Optional[int]:
        seq = self._state.ticket()
        return self._apply(seq, self._facade.fetch_visitor_count())

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="visitor-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.poll_once()
            except BusinessError as e:
                # e.g. STORE_WRITE_ERROR; keep polling
                logger.error("poller.tick_failed", extra={"extra": {"code": e.code, "error": e.message}})
            except Exception as e:
                # the thread must outlive any single bad tick
                logger.exception("poller.tick_crashed", extra={"extra": {"error": repr(e)}})

    def _apply(self, seq: int, count: int) -> Optional[int]:
        if self._state.offer(seq, count):
            if self._on_update:
                self._on_update(count)
        else:
            logger.info("poller.stale_response", extra={"extra": {"seq": seq, "count": count}})
        return self._state.value
