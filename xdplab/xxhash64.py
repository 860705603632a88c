"""The 64-bit xxHash function."""

from __future__ import annotations

import struct

_MASK64 = 0xFFFFFFFFFFFFFFFF
PRIME1 = 11400714785074694791
PRIME2 = 14029467366897019727
PRIME3 = 1609587929392839161
PRIME4 = 9650029242287828579
PRIME5 = 2870177450012600261


def _rotl(x: int, r: int) -> int:
    return ((x << r) | (x >> (64 - r))) & _MASK64


def _round(acc: int, word: int) -> int:
    return (_rotl((acc + word * PRIME2) & _MASK64, 31) * PRIME1) & _MASK64


def _merge(h: int, v: int) -> int:
    return ((h ^ _round(0, v)) * PRIME1 + PRIME4) & _MASK64


def _avalanche(h: int) -> int:
    h = ((h ^ (h >> 33)) * PRIME2) & _MASK64
    h = ((h ^ (h >> 29)) * PRIME3) & _MASK64
    return h ^ (h >> 32)


def xxhash64(data: bytes, seed: int = 0) -> int:
    """Return the 64-bit xxHash of ``data`` with the given seed."""
    buf = memoryview(data).cast("B").tobytes()
    length = len(buf)
    seed &= _MASK64
    body_len = length & ~0x1F

    if length >= 32:
        v1 = (seed + PRIME1 + PRIME2) & _MASK64
        v2 = (seed + PRIME2) & _MASK64
        v3 = seed
        v4 = (seed - PRIME1) & _MASK64
        for w1, w2, w3, w4 in struct.iter_unpack("<4Q", buf[:body_len]):
            v1 = _round(v1, w1)
            v2 = _round(v2, w2)
            v3 = _round(v3, w3)
            v4 = _round(v4, w4)
        h = (_rotl(v1, 1) + _rotl(v2, 7) + _rotl(v3, 12) + _rotl(v4, 18)) & _MASK64
        for v in (v1, v2, v3, v4):
            h = _merge(h, v)
    else:
        h = (seed + PRIME5) & _MASK64
    h = (h + length) & _MASK64

    tail = buf[body_len:]
    eights_len = len(tail) - len(tail) % 8
    for (word,) in struct.iter_unpack("<Q", tail[:eights_len]):
        h = (_rotl(h ^ _round(0, word), 27) * PRIME1 + PRIME4) & _MASK64
    rest = tail[eights_len:]
    if len(rest) >= 4:
        (word,) = struct.unpack("<I", rest[:4])
        h = (_rotl(h ^ ((word * PRIME1) & _MASK64), 23) * PRIME2 + PRIME3) & _MASK64
        rest = rest[4:]
    for byte in rest:
        h = (_rotl(h ^ ((byte * PRIME5) & _MASK64), 11) * PRIME1) & _MASK64

    return _avalanche(h)