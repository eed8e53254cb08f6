"""Tests for the logical-to-physical qudit layout."""

from __future__ import annotations

import pytest

from quditflow.engine import QuditLayout
from quditflow.errors import AlreadyMeasuredError, InvalidIndexError


def test_identity_layout() -> None:
    layout = QuditLayout(4)
    assert layout.as_list() == [0, 1, 2, 3]
    assert layout.live() == [0, 1, 2, 3]
    assert layout.measured() == []


def test_retire_shifts_later_qudits() -> None:
    layout = QuditLayout(4)
    layout.retire(1)
    assert layout.as_list() == [0, None, 1, 2]
    layout.retire(3)
    assert layout.as_list() == [0, None, 1, None]
    layout.retire(0)
    assert layout.as_list() == [None, None, 0, None]
    assert layout.measured() == [0, 1, 3]
    assert layout.live() == [2]
    assert layout.live_positions() == [0]


def test_live_positions_are_dense() -> None:
    layout = QuditLayout(5)
    layout.retire(2)
    layout.retire(0)
    assert layout.live_positions() == list(range(3))


def test_resolve() -> None:
    layout = QuditLayout(3)
    layout.retire(0)
    assert layout.resolve([2, 1]) == [1, 0]
    with pytest.raises(AlreadyMeasuredError, match="At step 5"):
        layout.resolve([1, 0], step=5)


def test_retire_twice_raises() -> None:
    layout = QuditLayout(2)
    layout.retire(1)
    with pytest.raises(AlreadyMeasuredError):
        layout.retire(1)


def test_out_of_range() -> None:
    layout = QuditLayout(2)
    with pytest.raises(InvalidIndexError):
        layout.position(2)
    with pytest.raises(InvalidIndexError):
        layout.resolve([-1])


def test_reset() -> None:
    layout = QuditLayout(3)
    layout.retire(1)
    layout.reset()
    assert layout.as_list() == [0, 1, 2]
    assert not layout.is_measured(1)
