"""Tests for grid cell addressing."""

from __future__ import annotations

import pytest

from quotegrid.grid.address import (
    COLUMNS,
    ROWS,
    clamp,
    column_letter,
    is_valid_address,
    parse_address,
    to_address,
)


class TestAddressCodec:
    def test_grid_shape(self) -> None:
        assert ROWS == 100
        assert COLUMNS == 26

    def test_corners(self) -> None:
        assert parse_address("A1") == (0, 0)
        assert parse_address("Z100") == (99, 25)
        assert to_address(0, 0) == "A1"
        assert to_address(99, 25) == "Z100"

    def test_column_letters(self) -> None:
        assert column_letter(0) == "A"
        assert column_letter(3) == "D"
        assert column_letter(25) == "Z"

    def test_bijection_over_whole_grid(self) -> None:
        seen = set()
        for r in range(ROWS):
            for c in range(COLUMNS):
                addr = to_address(r, c)
                assert parse_address(addr) == (r, c)
                seen.add(addr)
        assert len(seen) == ROWS * COLUMNS

    @pytest.mark.parametrize(
        "addr",
        ["a1", "AA1", "A", "1A", "", "A0", "A101", "A01", "A1 ", " A1", "A1\n", "Ä1", "A-1", "A1.5"],
    )
    def test_malformed_is_none(self, addr: str) -> None:
        assert parse_address(addr) is None
        assert not is_valid_address(addr)

    def test_non_string_is_none(self) -> None:
        assert parse_address(None) is None  # type: ignore[arg-type]
        assert parse_address(11) is None  # type: ignore[arg-type]


class TestClamp:
    def test_inside_unchanged(self) -> None:
        assert clamp(5, 5) == (5, 5)

    def test_clamps_each_edge(self) -> None:
        assert clamp(-1, 0) == (0, 0)
        assert clamp(0, -1) == (0, 0)
        assert clamp(100, 0) == (99, 0)
        assert clamp(0, 26) == (0, 25)
