"""
Per-identity locking for ledger mutations.

The registry hands out one mutex per identity. Each entry is reference
counted: a caller takes a reference before it blocks on the mutex and drops
it after releasing, both under the registry guard. An entry is only removed
when its count reaches zero inside that same guard, so a mutex that still
has a holder or a waiter can never be replaced by a second one.
"""

from contextlib import contextmanager
from threading import Lock
from typing import Iterator

from .logging import get_logger

log = get_logger(__name__)


class _Entry:
    __slots__ = ("lock", "refs")

    def __init__(self) -> None:
        self.lock = Lock()
        self.refs = 0


class LockHandle:
    """Proof of holding an identity's lock; pass it back to ``release`` once."""

    __slots__ = ("identity", "_entry", "_released")

    def __init__(self, identity: int, entry: _Entry) -> None:
        self.identity = identity
        self._entry = entry
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def __repr__(self) -> str:
        state = "released" if self._released else "held"
        return f"LockHandle(identity={self.identity}, {state})"


class LockRegistry:
    def __init__(self, reclaim: bool = True) -> None:
        self.reclaim = reclaim
        self._entries: dict[int, _Entry] = {}
        self._guard = Lock()

    def acquire(self, identity: int) -> LockHandle:
        """Block until the identity's lock is held. Not reentrant."""
        with self._guard:
            entry = self._entries.get(identity)
            if entry is None:
                entry = self._entries[identity] = _Entry()
            entry.refs += 1

        try:
            entry.lock.acquire()
        except BaseException:
            self._unref(identity, entry)
            raise
        return LockHandle(identity, entry)

    def release(self, handle: LockHandle) -> None:
        with self._guard:
            if handle._released:
                raise RuntimeError(f"Lock for identity {handle.identity} already released")
            handle._released = True

        handle._entry.lock.release()
        self._unref(handle.identity, handle._entry)

    @contextmanager
    def hold(self, identity: int) -> Iterator[LockHandle]:
        handle = self.acquire(identity)
        try:
            yield handle
        finally:
            self.release(handle)

    def refcount(self, identity: int) -> int:
        """Holders plus waiters currently registered for the identity."""
        with self._guard:
            entry = self._entries.get(identity)
            return entry.refs if entry else 0

    def _unref(self, identity: int, entry: _Entry) -> None:
        with self._guard:
            entry.refs -= 1
            reclaimed = self.reclaim and entry.refs == 0 and self._entries.get(identity) is entry
            if reclaimed:
                del self._entries[identity]
        if reclaimed:
            log.debug("lock_reclaimed", identity=identity)

    def __contains__(self, identity: object) -> bool:
        with self._guard:
            return identity in self._entries

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
