"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from diagram_engine import Connector, DiagramSettings, DiagramStore, Shape, ShapeType


class FakeClock:
    """Deterministic clock: each call returns a timestamp one second later."""

    def __init__(self, start: datetime | None = None):
        self._current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.calls = 0

    def now(self) -> str:
        stamp = self._current.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        self._current += timedelta(seconds=1)
        self.calls += 1
        return stamp


class SequentialIdGenerator:
    """Deterministic ids: shape-1, shape-2, ..."""

    def __init__(self, prefix: str = "shape"):
        self._prefix = prefix
        self._counter = 0

    def new_id(self) -> str:
        self._counter += 1
        return f"{self._prefix}-{self._counter}"


def make_shape(shape_id: str, x: float = 0, y: float = 0, width: float = 100,
               height: float = 100, **overrides) -> Shape:
    fields = dict(
        id=shape_id,
        type=ShapeType.RECTANGLE,
        x=x,
        y=y,
        width=width,
        height=height,
        rotation=0.0,
        fill="#4f46e5",
        stroke="#3730a3",
        stroke_width=2.0,
    )
    fields.update(overrides)
    return Shape(**fields)


def make_connector(connector_id: str, from_id: str, to_id: str) -> Connector:
    return Connector(
        id=connector_id,
        from_shape_id=from_id,
        to_shape_id=to_id,
        from_anchor="right",
        to_anchor="left",
        stroke="#64748b",
        stroke_width=2.0,
    )


def make_settings(**overrides) -> DiagramSettings:
    fields = dict(
        background_color="#ffffff",
        grid_enabled=True,
        snap_to_grid=True,
        grid_size=20.0,
    )
    fields.update(overrides)
    return DiagramSettings(**fields)


SETTINGS_JSON = {
    "backgroundColor": "#ffffff",
    "gridEnabled": True,
    "snapToGrid": True,
    "gridSize": 20,
}

SAMPLE_SHAPE_JSON = {
    "id": "s1",
    "type": "rectangle",
    "x": 1,
    "y": 2,
    "width": 3,
    "height": 4,
    "rotation": 0,
    "fill": "#ffffff",
    "stroke": "#000000",
    "strokeWidth": 2,
}

SAMPLE_CONNECTOR_JSON = {
    "id": "c1",
    "fromShapeId": "a",
    "toShapeId": "b",
    "fromAnchor": "right",
    "toAnchor": "left",
    "stroke": "#64748b",
    "strokeWidth": 2,
}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def id_generator() -> SequentialIdGenerator:
    return SequentialIdGenerator()


@pytest.fixture
def store(clock) -> DiagramStore:
    return DiagramStore.create("diagram-1", "Test Diagram", clock=clock)


@pytest.fixture
def id_store(clock, id_generator) -> DiagramStore:
    """Store whose generated ids are shape-1, shape-2, ..."""
    return DiagramStore.create(
        "diagram-1", "Test Diagram", clock=clock, id_generator=id_generator
    )


@pytest.fixture
def populated_store(store) -> DiagramStore:
    """Three shapes a -> b -> c with two connectors."""
    store.add_shape(make_shape("a", x=0, y=0))
    store.add_shape(make_shape("b", x=200, y=0))
    store.add_shape(make_shape("c", x=400, y=0))
    store.add_connector(make_connector("ab", "a", "b"))
    store.add_connector(make_connector("bc", "b", "c"))
    return store
