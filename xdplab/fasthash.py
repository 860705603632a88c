"""The fasthash 64-bit and 32-bit hash functions."""

from __future__ import annotations

import struct

_MASK64 = 0xFFFFFFFFFFFFFFFF
_MASK32 = 0xFFFFFFFF
_M = 0x880355F21E6D1965
_MIX_MULT = 0x2127599BF4325C37


def fasthash_mix(h: int) -> int:
    """Compression function used by the Merkle-Damgard construction."""
    h &= _MASK64
    h ^= h >> 23
    h = (h * _MIX_MULT) & _MASK64
    h ^= h >> 47
    return h


def fasthash64(data: bytes, seed: int = 0) -> int:
    """Return the 64-bit fasthash of ``data`` with the given seed."""
    buf = memoryview(data).cast("B").tobytes()
    length = len(buf)
    body_len = length - length % 8
    h = (seed ^ (length * _M)) & _MASK64

    for (word,) in struct.iter_unpack("<Q", buf[:body_len]):
        h ^= fasthash_mix(word)
        h = (h * _M) & _MASK64

    tail = buf[body_len:]
    if tail:
        h ^= fasthash_mix(int.from_bytes(tail, "little"))
        h = (h * _M) & _MASK64

    return fasthash_mix(h)


def fasthash32(data: bytes, seed: int = 0) -> int:
    """Return the 32-bit fasthash, folding the 64-bit hash to a Fermat residue."""
    h = fasthash64(data, seed & _MASK32)
    return (h - (h >> 32)) & _MASK32