"""32-bit FNV-1 hashing used to pick shards of a ShardLockMap."""

from __future__ import annotations

PRIME = 16777619
OFFSET_BASIS = 2166136261
_MASK32 = 0xFFFFFFFF


class Fnv32Hash:
    """The 32-bit FNV-1 hash: multiply by the prime, then xor each byte."""

    def sum(self, key: str | bytes) -> int:
        """Return the 32-bit FNV-1 hash of ``key`` (strings are UTF-8 encoded)."""
        data = key.encode("utf-8") if isinstance(key, str) else bytes(key)
        value = OFFSET_BASIS
        for byte in data:
            value = (value * PRIME) & _MASK32
            value ^= byte
        return value


def default_hash() -> Fnv32Hash:
    """Return the hasher used when none is given."""
    return Fnv32Hash()