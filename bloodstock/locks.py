# bloodstock/locks.py
import threading
import time
from contextlib import contextmanager

from django.conf import settings

from .compat import SCARCITY_ORDER, normalize_type
from .exceptions import LockTimeout


class TypeLocks:
    """
    One mutex per blood type. A set of types is always acquired in the same
    global order, so two callers holding overlapping sets cannot deadlock.
    """

    def __init__(self, codes=SCARCITY_ORDER):
        self._order = {code: i for i, code in enumerate(codes)}
        self._locks = {code: threading.Lock() for code in codes}
        self._local = threading.local()

    def ordered(self, codes):
        return sorted({normalize_type(c) for c in codes}, key=self._order.__getitem__)

    def is_held(self, code) -> bool:
        """True when the calling thread holds the lock of `code`."""
        return code in getattr(self._local, "codes", ())

    @contextmanager
    def hold(self, codes, timeout=None):
        if timeout is None:
            timeout = getattr(settings, "BLOODSTOCK_LOCK_TIMEOUT", 30)
        deadline = time.monotonic() + timeout
        acquired = []
        held = getattr(self._local, "codes", None)
        if held is None:
            held = self._local.codes = set()
        try:
            for code in self.ordered(codes):
                remaining = max(0.0, deadline - time.monotonic())
                lock = self._locks[code]
                if not lock.acquire(timeout=remaining):
                    raise LockTimeout(f"Timed out waiting for {code} stock lock.")
                acquired.append((code, lock))
                held.add(code)
            yield
        finally:
            for code, lock in reversed(acquired):
                held.discard(code)
                lock.release()


type_locks = TypeLocks()
