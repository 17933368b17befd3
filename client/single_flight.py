import threading
from contextlib import contextmanager

from client.errors import OperationInFlightError


class SingleFlight:
    """In-flight flag that lets at most one operation of a kind run at a time."""

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @contextmanager
    def claim(self):
        with self._lock:
            if self._busy:
                raise OperationInFlightError(f"{self.name} already in progress")
            self._busy = True
        try:
            yield
        finally:
            with self._lock:
                self._busy = False
