"""Unit tests for split geometry."""

from __future__ import annotations

import pytest

from stow.core.errors import InvalidDimensions
from stow.services.listing_service import remainder_dimensions


def test_length_only_split() -> None:
    assert remainder_dimensions(20, 10, 12, 10) == (8, 10)


def test_width_only_split() -> None:
    assert remainder_dimensions(20, 10, 20, 4) == (20, 6)


def test_both_axes_keep_original_length() -> None:
    length, width = remainder_dimensions(10, 10, 3, 3)
    assert length == 10
    assert width == 9.1
    assert length * width == pytest.approx(100 - 9)


def test_remainder_is_rounded_to_hundredths() -> None:
    assert remainder_dimensions(3, 3, 1, 1) == (3, 2.67)


@pytest.mark.parametrize(
    ("new_length", "new_width"),
    [(11, 5), (5, 11), (10, 10), (0, 5), (5, -2)],
)
def test_invalid_splits(new_length: float, new_width: float) -> None:
    with pytest.raises(InvalidDimensions):
        remainder_dimensions(10, 10, new_length, new_width)
