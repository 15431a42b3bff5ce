import threading
from typing import Dict, Optional

from .booking_flow import BookingFlow


class BookingFlowRegistry:
    """Keeps the open booking flow of each signed-in user in memory.

    Abandoning a flow simply drops it; nothing is persisted until confirm.
    """

    def __init__(self) -> None:
        self._flows: Dict[str, BookingFlow] = {}
        self._lock = threading.Lock()

    def open(self, user_id: str, flow: BookingFlow) -> BookingFlow:
        with self._lock:
            self._flows[user_id] = flow
        return flow

    def get(self, user_id: str) -> Optional[BookingFlow]:
        with self._lock:
            return self._flows.get(user_id)

    def close(self, user_id: str) -> bool:
        with self._lock:
            flow = self._flows.pop(user_id, None)
        if flow is None:
            return False
        flow.close()
        return True

    def clear(self) -> None:
        with self._lock:
            self._flows.clear()
