"""
Resource Table Tests

Tests ResourceTable construction, shape validation and element access.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from models.errors import DimensionMismatch, IndexOutOfRange, InvalidState
from models.resource_table import ResourceTable


def test_create_all_zero():
    """create() builds a zero table of the requested shape."""
    table = ResourceTable.create(3, 2)
    assert table.shape == (3, 2)
    assert table.num_rows == 3
    assert table.num_cols == 2
    assert table.rows() == [[0, 0], [0, 0], [0, 0]]


def test_create_negative_shape():
    with pytest.raises(DimensionMismatch):
        ResourceTable.create(-1, 3)


def test_from_rows():
    """from_rows() copies the values and keeps the row order."""
    source = [[7, 5, 3], [3, 2, 2]]
    table = ResourceTable.from_rows(source)
    assert table.shape == (2, 3)
    assert table.get(0, 0) == 7
    assert table[1, 2] == 2

    # Later changes to the source do not reach the table
    source[0][0] = 99
    assert table[0, 0] == 7


def test_from_rows_empty():
    with pytest.raises(DimensionMismatch):
        ResourceTable.from_rows([])


def test_from_rows_ragged():
    """All rows must have the length of the first row."""
    with pytest.raises(DimensionMismatch) as exc_info:
        ResourceTable.from_rows([[1, 2, 3], [4, 5]])
    assert "Row 1" in str(exc_info.value)


@pytest.mark.parametrize("rows", [
    [[1.5, 2]],
    [[1, 2], [3, 4.0]],
    [["7", 5]],
    [[False, 1]],
])
def test_from_rows_rejects_non_integers(rows):
    """Values are never truncated to fit an integer table."""
    with pytest.raises(InvalidState) as exc_info:
        ResourceTable.from_rows(rows)
    assert "non-integer" in str(exc_info.value)


def test_from_rows_rejects_scalar_rows():
    with pytest.raises(DimensionMismatch):
        ResourceTable.from_rows([1, 2, 3])


def test_dimension_mismatch_is_value_error():
    with pytest.raises(ValueError):
        ResourceTable.from_rows([[1], [2, 3]])


def test_set_and_get():
    table = ResourceTable.create(2, 2)
    table.set(1, 0, 4)
    table[0, 1] = 6
    assert table.rows() == [[0, 6], [4, 0]]


@pytest.mark.parametrize("row, col", [(2, 0), (0, 3), (-1, 0), (0, -1)])
def test_out_of_range_access(row, col):
    """Out-of-range and negative indices fail instead of wrapping."""
    table = ResourceTable.from_rows([[1, 2, 3], [4, 5, 6]])
    with pytest.raises(IndexOutOfRange):
        table.get(row, col)
    with pytest.raises(IndexOutOfRange):
        table.set(row, col, 0)


def test_row_is_a_copy():
    table = ResourceTable.from_rows([[1, 2], [3, 4]])
    row = table.row(1)
    row[0] = 100
    assert table.row(1) == [3, 4]

    with pytest.raises(IndexOutOfRange):
        table.row(2)


def test_copy_and_equality():
    table = ResourceTable.from_rows([[1, 2], [3, 4]])
    clone = table.copy()
    assert clone == table

    clone[0, 0] = 9
    assert clone != table
    assert table[0, 0] == 1

    assert ResourceTable.from_rows([[1, 2]]) != ResourceTable.from_rows([[1], [2]])


def test_from_rows_accepts_table():
    table = ResourceTable.from_rows([[1, 2]])
    clone = ResourceTable.from_rows(table)
    assert clone == table
    assert clone is not table
