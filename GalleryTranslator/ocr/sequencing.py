import threading


class RequestSequencer:
    """
    Monotonic request tags so the integrating layer can drop responses that arrive
    after a newer selection or scan was started.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def next(self) -> int:
        with self._lock:
            self._current += 1
            return self._current

    def is_current(self, sequence: int) -> bool:
        return sequence == self._current
