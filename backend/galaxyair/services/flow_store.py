import threading
from contextlib import contextmanager
from typing import Iterator

from galaxyair.booking.flow import BookingFlow


class FlowStore:
    """In-process holder of each signed-in user's current booking flow.

    Flows are transient: nothing here is persisted and a restart of the
    process drops every in-progress booking.

    Handlers run in a threadpool, so a request that reads a flow, applies a
    transition and saves the result must hold ``lock(user_id)`` throughout.
    """

    def __init__(self) -> None:
        self._flows: dict[int, BookingFlow] = {}
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def lock(self, user_id: int) -> Iterator[None]:
        with self._locks_guard:
            user_lock = self._locks.setdefault(user_id, threading.Lock())
        with user_lock:
            yield

    def get(self, user_id: int) -> BookingFlow:
        return self._flows.get(user_id) or BookingFlow.start()

    def save(self, user_id: int, flow: BookingFlow) -> BookingFlow:
        self._flows[user_id] = flow
        return flow

    def reset(self, user_id: int) -> BookingFlow:
        self._flows.pop(user_id, None)
        return BookingFlow.start()

    def clear(self) -> None:
        self._flows.clear()


flow_store = FlowStore()


def get_flow_store() -> FlowStore:
    return flow_store
