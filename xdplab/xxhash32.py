"""The 32-bit xxHash function in its short-input and any-length variants."""

from __future__ import annotations

import struct

_MASK32 = 0xFFFFFFFF
PRIME1 = 2654435761
PRIME2 = 2246822519
PRIME3 = 3266489917
PRIME4 = 668265263
PRIME5 = 374761393
MAX_BUFFER_SIZE = 16


def _rotl(x: int, bits: int) -> int:
    return ((x << bits) | (x >> (32 - bits))) & _MASK32


def _round(state: int, word: int) -> int:
    return (_rotl((state + word * PRIME2) & _MASK32, 13) * PRIME1) & _MASK32


def _finish(result: int, tail: bytes) -> int:
    words_len = len(tail) - len(tail) % 4
    for (word,) in struct.iter_unpack("<I", tail[:words_len]):
        result = (_rotl((result + word * PRIME3) & _MASK32, 17) * PRIME4) & _MASK32
    for byte in tail[words_len:]:
        result = (_rotl((result + byte * PRIME5) & _MASK32, 11) * PRIME1) & _MASK32

    result ^= result >> 15
    result = (result * PRIME2) & _MASK32
    result ^= result >> 13
    result = (result * PRIME3) & _MASK32
    result ^= result >> 16
    return result


def _as_bytes(data: bytes) -> bytes:
    return memoryview(data).cast("B").tobytes()


def xxhash32_short(data: bytes, seed: int = 0) -> int:
    """Hash an input that is known to be shorter than 16 bytes."""
    buf = _as_bytes(data)
    result = (len(buf) + seed + PRIME5) & _MASK32
    return _finish(result, buf)


def xxhash32_anylength(data: bytes, seed: int = 0) -> int:
    """Hash an input of any length; an empty input hashes to 0."""
    buf = _as_bytes(data)
    length = len(buf)
    if length == 0:
        return 0
    seed &= _MASK32

    s0 = (seed + PRIME1 + PRIME2) & _MASK32
    s1 = (seed + PRIME2) & _MASK32
    s2 = seed
    s3 = (seed - PRIME1) & _MASK32

    body_len = length - length % MAX_BUFFER_SIZE
    for w0, w1, w2, w3 in struct.iter_unpack("<4I", buf[:body_len]):
        s0 = _round(s0, w0)
        s1 = _round(s1, w1)
        s2 = _round(s2, w2)
        s3 = _round(s3, w3)

    result = length & _MASK32
    if length >= MAX_BUFFER_SIZE:
        result += _rotl(s0, 1) + _rotl(s1, 7) + _rotl(s2, 12) + _rotl(s3, 18)
    else:
        result += s2 + PRIME5
    return _finish(result & _MASK32, buf[body_len:])


def xxhash32(data: bytes, seed: int = 0) -> int:
    """Return the 32-bit xxHash of ``data``, choosing the variant by length."""
    buf = _as_bytes(data)
    if 1 <= len(buf) < MAX_BUFFER_SIZE:
        return xxhash32_short(buf, seed)
    return xxhash32_anylength(buf, seed)