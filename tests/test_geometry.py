"""Tests for grid snapping and hit-testing."""

from __future__ import annotations

import math

import pytest

from diagram_engine import (
    contains_point,
    diagram_bounds,
    find_shape_at,
    round_half_away_from_zero,
    snap_point,
)
from tests.conftest import make_settings, make_shape


@pytest.mark.parametrize("value, expected", [
    (0.0, 0.0),
    (1.25, 1.0),
    (1.5, 2.0),
    (2.5, 3.0),
    (0.5, 1.0),
    (-0.5, -1.0),
    (-1.5, -2.0),
    (-1.49, -1.0),
    (0.49999999999999994, 0.0),
])
def test_round_half_away_from_zero(value, expected):
    assert round_half_away_from_zero(value) == expected


def test_round_half_away_from_zero_passes_non_finite_through():
    assert round_half_away_from_zero(math.inf) == math.inf
    assert math.isnan(round_half_away_from_zero(math.nan))


@pytest.mark.parametrize("point, expected", [
    ((25.0, 33.0), (20.0, 40.0)),
    ((0.0, 0.0), (0.0, 0.0)),
    ((10.0, 30.0), (20.0, 40.0)),    # exact ties round away from zero
    ((50.0, 9.99), (60.0, 0.0)),
    ((-10.0, -30.0), (-20.0, -40.0)),
    ((-25.0, -29.0), (-20.0, -20.0)),
])
def test_snap_point_default_grid(point, expected):
    assert snap_point(*point, make_settings()) == expected


def test_snap_point_custom_grid():
    settings = make_settings(grid_size=8)
    assert snap_point(13.0, 3.9, settings) == (16.0, 0.0)


def test_snap_point_disabled_returns_input():
    settings = make_settings(snap_to_grid=False)
    assert snap_point(25.3, -7.1, settings) == (25.3, -7.1)


def test_snap_point_ignores_grid_visibility():
    settings = make_settings(grid_enabled=False)
    assert snap_point(25.0, 33.0, settings) == (20.0, 40.0)


def test_contains_point_includes_all_edges():
    shape = make_shape("s", x=10, y=20, width=30, height=40)
    assert contains_point(shape, 10, 20)
    assert contains_point(shape, 40, 60)
    assert contains_point(shape, 10, 60)
    assert contains_point(shape, 40, 20)
    assert not contains_point(shape, 9.999, 30)
    assert not contains_point(shape, 25, 60.001)


def test_contains_point_zero_size_shape():
    shape = make_shape("dot", x=5, y=5, width=0, height=0)
    assert contains_point(shape, 5, 5)
    assert not contains_point(shape, 5, 5.1)


def test_find_shape_at_returns_topmost():
    a = make_shape("A", x=0, y=0, width=100, height=100)
    b = make_shape("B", x=50, y=50, width=100, height=100)

    assert find_shape_at([a, b], 60, 60) == "B"
    assert find_shape_at([b, a], 60, 60) == "A"
    assert find_shape_at([a, b], 20, 20) == "A"
    assert find_shape_at([a, b], 140, 140) == "B"


def test_find_shape_at_no_match():
    shapes = [make_shape("A", x=0, y=0, width=10, height=10)]
    assert find_shape_at(shapes, 11, 11) is None
    assert find_shape_at([], 0, 0) is None


def test_find_shape_at_ignores_rotation():
    rotated = make_shape("R", x=0, y=0, width=100, height=10, rotation=90)
    assert find_shape_at([rotated], 90, 5) == "R"
    assert find_shape_at([rotated], 5, 90) is None


def test_diagram_bounds():
    shapes = [
        make_shape("a", x=10, y=20, width=30, height=40),
        make_shape("b", x=-5, y=50, width=10, height=100),
    ]
    assert diagram_bounds(shapes) == (-5, 20, 40, 150)


def test_diagram_bounds_empty():
    assert diagram_bounds([]) is None
