"""Bob Jenkins' lookup3 ``hashlittle`` hash for byte strings."""

from __future__ import annotations

import struct

_MASK32 = 0xFFFFFFFF


def _rot(x: int, k: int) -> int:
    return ((x << k) | (x >> (32 - k))) & _MASK32


def _mix(a: int, b: int, c: int) -> tuple[int, int, int]:
    a = (a - c) & _MASK32; a ^= _rot(c, 4); c = (c + b) & _MASK32
    b = (b - a) & _MASK32; b ^= _rot(a, 6); a = (a + c) & _MASK32
    c = (c - b) & _MASK32; c ^= _rot(b, 8); b = (b + a) & _MASK32
    a = (a - c) & _MASK32; a ^= _rot(c, 16); c = (c + b) & _MASK32
    b = (b - a) & _MASK32; b ^= _rot(a, 19); a = (a + c) & _MASK32
    c = (c - b) & _MASK32; c ^= _rot(b, 4); b = (b + a) & _MASK32
    return a, b, c


def _final(a: int, b: int, c: int) -> int:
    c ^= b; c = (c - _rot(b, 14)) & _MASK32
    a ^= c; a = (a - _rot(c, 11)) & _MASK32
    b ^= a; b = (b - _rot(a, 25)) & _MASK32
    c ^= b; c = (c - _rot(b, 16)) & _MASK32
    a ^= c; a = (a - _rot(c, 4)) & _MASK32
    b ^= a; b = (b - _rot(a, 14)) & _MASK32
    c ^= b; c = (c - _rot(b, 24)) & _MASK32
    return c


def hashlittle(key: bytes, initval: int = 0) -> int:
    """Return the 32-bit lookup3 hash of ``key`` (little-endian word reads)."""
    buf = memoryview(key).cast("B").tobytes()
    length = len(buf)
    a = b = c = (0xDEADBEEF + length + initval) & _MASK32
    if length == 0:
        return c

    # Every block but the last goes through mix(); the last (1..12 bytes) through final().
    blocks = (length - 1) // 12
    for w0, w1, w2 in struct.iter_unpack("<3I", buf[: blocks * 12]):
        a = (a + w0) & _MASK32
        b = (b + w1) & _MASK32
        c = (c + w2) & _MASK32
        a, b, c = _mix(a, b, c)

    w0, w1, w2 = struct.unpack("<3I", buf[blocks * 12 :].ljust(12, b"\x00"))
    a = (a + w0) & _MASK32
    b = (b + w1) & _MASK32
    c = (c + w2) & _MASK32
    return _final(a, b, c)