"""
Resource table model for the Banker's Arbiter.

A fixed-size P×R grid of integers used for the Max, Allocation and Need
matrices. Backed by a numpy array; the shape never changes after creation.
"""

import numpy as np
from typing import List, Sequence, Tuple

from models.errors import DimensionMismatch, IndexOutOfRange, InvalidState


def as_int_array(values, error_cls=InvalidState, what: str = "Table") -> np.ndarray:
    """
    Convert values to an int array without rounding.

    Raises:
        error_cls: If any value is not an integer (floats and bools included)
    """
    array = np.array(values, dtype=object)
    for value in array.flat:
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise error_cls(f"{what} holds non-integer value {value!r}")
    return array.astype(int)


class ResourceTable:
    """
    Dense [P][R] integer table with validated shape.

    Attributes:
        num_rows: Number of rows (processes)
        num_cols: Number of columns (resource types)
    """

    def __init__(self, data: np.ndarray):
        """
        Wrap an existing 2-D integer array.

        Prefer create() or from_rows(); the array is taken as-is.
        """
        if data.ndim != 2:
            raise DimensionMismatch(f"ResourceTable needs a 2-D array, got {data.ndim}-D")
        self._data = data

    @classmethod
    def create(cls, rows: int, cols: int) -> "ResourceTable":
        """Create an all-zero table of the given shape."""
        if rows < 0 or cols < 0:
            raise DimensionMismatch(f"Invalid table shape ({rows}, {cols})")
        return cls(np.zeros((rows, cols), dtype=int))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> "ResourceTable":
        """
        Build a table from a sequence of equal-length rows.

        Args:
            rows: Row values, e.g. [[7, 5, 3], [3, 2, 2]]

        Returns:
            New ResourceTable holding a copy of the values

        Raises:
            DimensionMismatch: If rows is empty or the rows are ragged
            InvalidState: If a value is not an integer
        """
        if isinstance(rows, ResourceTable):
            return rows.copy()

        try:
            rows = [list(row) for row in rows]
        except TypeError:
            raise DimensionMismatch(f"Table rows must be sequences of integers, got {rows!r}")
        if not rows:
            raise DimensionMismatch("Cannot build a table from zero rows")

        width = len(rows[0])
        for i, row in enumerate(rows):
            if len(row) != width:
                raise DimensionMismatch(
                    f"Row {i} has {len(row)} values, expected {width} (same as row 0)"
                )

        return cls(as_int_array(rows).reshape(len(rows), width))

    @property
    def num_rows(self) -> int:
        return self._data.shape[0]

    @property
    def num_cols(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.num_rows, self.num_cols

    @property
    def data(self) -> np.ndarray:
        """Live underlying array (not a copy). Owners must hand out copy()."""
        return self._data

    def _check_index(self, row: int, col: int) -> None:
        # Negative indices are rejected, never wrapped
        if not 0 <= row < self.num_rows:
            raise IndexOutOfRange(f"Row {row} out of range [0, {self.num_rows})")
        if not 0 <= col < self.num_cols:
            raise IndexOutOfRange(f"Column {col} out of range [0, {self.num_cols})")

    def get(self, row: int, col: int) -> int:
        """Read a single element."""
        self._check_index(row, col)
        return int(self._data[row, col])

    def set(self, row: int, col: int, value: int) -> None:
        """Write a single element."""
        self._check_index(row, col)
        self._data[row, col] = value

    def __getitem__(self, index: Tuple[int, int]) -> int:
        row, col = index
        return self.get(row, col)

    def __setitem__(self, index: Tuple[int, int], value: int) -> None:
        row, col = index
        self.set(row, col, value)

    def row(self, row: int) -> List[int]:
        """Get a copy of one row as a list."""
        if not 0 <= row < self.num_rows:
            raise IndexOutOfRange(f"Row {row} out of range [0, {self.num_rows})")
        return self._data[row].tolist()

    def rows(self) -> List[List[int]]:
        """Get a copy of all rows as nested lists."""
        return self._data.tolist()

    def to_array(self) -> np.ndarray:
        """Get a copy of the underlying array."""
        return self._data.copy()

    def copy(self) -> "ResourceTable":
        return ResourceTable(self._data.copy())

    def __eq__(self, other) -> bool:
        if not isinstance(other, ResourceTable):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    def __repr__(self) -> str:
        return f"ResourceTable(shape={self.shape}, rows={self.rows()})"
