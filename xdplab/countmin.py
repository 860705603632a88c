"""A count-min sketch over packet 5-tuples and the XDP program that feeds it."""

from __future__ import annotations

from xdplab.fasthash import fasthash64
from xdplab.packet import XdpAction, parse_five_tuple

CS_ROWS = 4
CS_COLUMNS = 1048576
SEED_HASHFN = 77

_HASH_SLICES = 4
_SLICE_BITS = 16
_SLICE_MASK = 0xFFFF
_COUNTER_MASK = 0xFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


class CountMinSketch:
    """Count-min sketch with 8-bit wrapping counters.

    One 64-bit fasthash per element is cut into four 16-bit slices, one per
    row, each masked down to a column index.
    """

    def __init__(
        self, rows: int = CS_ROWS, columns: int = CS_COLUMNS, seed: int = SEED_HASHFN
    ) -> None:
        if not 1 <= rows <= _HASH_SLICES:
            raise ValueError(f"rows must be between 1 and {_HASH_SLICES}, got {rows}")
        if columns <= 0 or columns & (columns - 1):
            raise ValueError(f"columns must be a power of two, got {columns}")
        self.rows = rows
        self.columns = columns
        self.seed = seed
        self._table = [bytearray(columns) for _ in range(rows)]

    def _indexes(self, element: bytes) -> list[int]:
        h = fasthash64(element, self.seed)
        mask = self.columns - 1
        return [((h >> (_SLICE_BITS * row)) & _SLICE_MASK) & mask for row in range(self.rows)]

    def add(self, element: bytes) -> None:
        """Count one occurrence of ``element``."""
        for row, index in zip(self._table, self._indexes(element)):
            row[index] = (row[index] + 1) & _COUNTER_MASK

    def query(self, element: bytes) -> int:
        """Return the estimated count of ``element``."""
        return min(row[index] for row, index in zip(self._table, self._indexes(element)))


class CmsProgram:
    """Packet handler that sketches TCP/UDP flows and drops every frame."""

    def __init__(
        self, rows: int = CS_ROWS, columns: int = CS_COLUMNS, seed: int = SEED_HASHFN
    ) -> None:
        self.sketch = CountMinSketch(rows, columns, seed)
        self.drop_count = 0

    def process(self, frame: bytes) -> XdpAction:
        """Record the frame's flow if it has one; the verdict is always DROP."""
        key = parse_five_tuple(frame)
        if key is not None:
            self.sketch.add(key.pack())
            self.drop_count = (self.drop_count + 1) & _MASK64
        return XdpAction.DROP