"""Guards against two sync runs overlapping, with a pluggable backend (Redis-like)."""

from __future__ import annotations

import threading
import uuid
from typing import Any, Protocol


class RunLock(Protocol):
    def acquire(self) -> bool: ...  # noqa: D401
    def release(self) -> None: ...  # noqa: D401


class InMemoryRunLock:
    """Process-local lock for tests/local runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        if self._lock.locked():
            self._lock.release()


class _RedisLikeClient(Protocol):
    def set(self, name: str, value: str, *, ex: int | None = None, nx: bool | None = None) -> bool | None: ...
    def eval(self, script: str, numkeys: int, *keys_and_args: Any) -> Any: ...


# Deletes KEYS[1] only while it still holds ARGV[1], in one atomic step.
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class RedisRunLock:
    """Redis-backed lock shared by every worker.

    - acquire: ``SET key owner NX EX <ttl>`` succeeds only when nobody holds it
    - release: atomically deletes the key only if this instance still owns it

    The TTL frees the lock if a worker dies mid-run.
    """

    def __init__(self, client: _RedisLikeClient, *, key: str = "sync:run-lock", ttl_seconds: int = 900) -> None:
        self._client = client
        self._key = key
        self._ttl = ttl_seconds
        self._owner = uuid.uuid4().hex

    def acquire(self) -> bool:
        return bool(self._client.set(self._key, self._owner, ex=self._ttl, nx=True))

    def release(self) -> None:
        self._client.eval(RELEASE_SCRIPT, 1, self._key, self._owner)
