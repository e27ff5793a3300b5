"""A thread-safe string-keyed map split into independently locked shards."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping, NamedTuple, Protocol

from ztools.hashing import default_hash

SHARD_COUNT = 32


class Hasher(Protocol):
    def sum(self, key: str) -> int: ...


class Entry(NamedTuple):
    """A key and its value, as produced by iteration."""

    key: str
    value: Any


@dataclass(eq=False)
class _Shard:
    items: dict[str, Any] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)


class ShardLockMap:
    """A map whose keys are spread over several shards to avoid one global lock."""

    def __init__(self, hasher: Hasher | None = None, shard_count: int | None = None) -> None:
        count = SHARD_COUNT if shard_count is None else shard_count
        if count < 1:
            raise ValueError("shard_count must be at least 1")
        self._hasher = hasher if hasher is not None else default_hash()
        self._shards = [_Shard() for _ in range(count)]

    def get_shard(self, key: str) -> _Shard:
        """Return the shard that holds ``key``."""
        return self._shards[self._hasher.sum(key) % len(self._shards)]

    def count(self) -> int:
        """Return the number of stored elements."""
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.items)
        return total

    def __len__(self) -> int:
        return self.count()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value under ``key``, or ``default`` if absent."""
        shard = self.get_shard(key)
        with shard.lock:
            return shard.items.get(key, default)

    def set(self, key: str, value: Any) -> None:
        shard = self.get_shard(key)
        with shard.lock:
            shard.items[key] = value

    def set_nx(self, key: str, value: Any) -> bool:
        """Store ``value`` only if ``key`` is absent; return whether it was stored."""
        shard = self.get_shard(key)
        with shard.lock:
            if key in shard.items:
                return False
            shard.items[key] = value
            return True

    def mset(self, data: Mapping[str, Any]) -> None:
        for key, value in data.items():
            self.set(key, value)

    def has(self, key: str) -> bool:
        shard = self.get_shard(key)
        with shard.lock:
            return key in shard.items

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def remove(self, key: str) -> None:
        """Remove ``key`` if present."""
        shard = self.get_shard(key)
        with shard.lock:
            shard.items.pop(key, None)

    def remove_cb(self, key: str, callback: Callable[[str, Any, bool], bool]) -> bool:
        """Call ``callback(key, value, exists)`` under the shard lock.

        The element is removed when the callback returns true and it exists.
        The callback's result is returned either way.
        """
        shard = self.get_shard(key)
        with shard.lock:
            exists = key in shard.items
            value = shard.items.get(key)
            remove = bool(callback(key, value, exists))
            if remove and exists:
                del shard.items[key]
            return remove

    def pop(self, key: str) -> Any:
        """Remove ``key`` and return its value; raise KeyError if absent."""
        shard = self.get_shard(key)
        with shard.lock:
            return shard.items.pop(key)

    def clear(self) -> None:
        for entry in self.iter_buffered():
            self.remove(entry.key)

    def is_empty(self) -> bool:
        return self.count() == 0

    def iter_buffered(self) -> Iterator[Entry]:
        """Return an iterator over a snapshot taken at call time."""
        snapshot: list[Entry] = []
        for shard in self._shards:
            with shard.lock:
                snapshot.extend(Entry(k, v) for k, v in shard.items.items())
        return iter(snapshot)

    def items(self) -> dict[str, Any]:
        return dict(self.iter_buffered())

    def keys(self) -> list[str]:
        keys: list[str] = []
        for shard in self._shards:
            with shard.lock:
                keys.extend(shard.items)
        return keys

    def iter_cb(self, callback: Callable[[str, Any], None]) -> None:
        """Call ``callback(key, value)`` for every element, one shard lock at a time."""
        for shard in self._shards:
            with shard.lock:
                for key, value in list(shard.items.items()):
                    callback(key, value)

    def to_json(self) -> str:
        """Serialise the contents as a JSON object with sorted keys."""
        return json.dumps(self.items(), sort_keys=True, separators=(",", ":"))

    def load_json(self, data: str | bytes) -> None:
        """Merge the entries of a JSON object into the map."""
        decoded = json.loads(data)
        if not isinstance(decoded, dict):
            raise ValueError("JSON document is not an object")
        self.mset(decoded)