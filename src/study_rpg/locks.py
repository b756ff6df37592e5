"""Process-wide locks serializing read-modify-write cycles on store collections."""
import threading
from contextlib import ExitStack, contextmanager

_registry_lock = threading.Lock()
_locks: dict[str, threading.Lock] = {}


def _lock_for(name: str) -> threading.Lock:
    with _registry_lock:
        lock = _locks.get(name)
        if lock is None:
            lock = _locks[name] = threading.Lock()
        return lock


@contextmanager
def collection_lock(*collections: str):
    """Hold the locks for the given collections, acquired in sorted order."""
    with ExitStack() as stack:
        for name in sorted(set(collections)):
            stack.enter_context(_lock_for(name))
        yield
