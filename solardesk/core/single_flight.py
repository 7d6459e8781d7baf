"""
In-flight guard for mutating actions.

Each mutation (add payment, delete payment, stage transition, project edits)
is keyed by ``(project_id, action)``. While one request holds a key, a second
request for the same key is rejected with HTTP 409 instead of queueing, so a
double-clicked button cannot issue duplicate writes.
"""
import threading
from contextlib import contextmanager
from typing import Hashable, Set, Tuple

from fastapi import HTTPException, status

from solardesk.core.logging import get_logger

logger = get_logger("core.single_flight")

GuardKey = Tuple[Hashable, str]


class SingleFlightGuard:
    def __init__(self):
        self._in_flight: Set[GuardKey] = set()
        self._lock = threading.Lock()

    def try_acquire(self, project_id: Hashable, action: str) -> bool:
        key = (project_id, action)
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True

    def release(self, project_id: Hashable, action: str) -> None:
        with self._lock:
            self._in_flight.discard((project_id, action))

    def is_in_flight(self, project_id: Hashable, action: str) -> bool:
        with self._lock:
            return (project_id, action) in self._in_flight

    @contextmanager
    def hold(self, project_id: Hashable, action: str):
        if not self.try_acquire(project_id, action):
            logger.warning(f"Rejected duplicate '{action}' request for project {project_id}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"A {action} update for project {project_id} is already in progress",
            )
        try:
            yield
        finally:
            self.release(project_id, action)


mutation_guard = SingleFlightGuard()
