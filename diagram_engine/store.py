"""
Diagram Store - In-memory state and mutation contract for one diagram.

This module implements:
- Shape and connector add/update/delete with connector cleanup on shape delete
- Sparse patches for shapes and connectors, full replace for settings
- Batch patch, move and duplicate, and growing a connected shape from an anchor
- Z-order changes (insertion order is the stacking order)
- Grid snapping and hit-testing against the current state
- JSON load/serialize of the whole aggregate

Every mutation validates its input before touching state, so a raised error
leaves the diagram and its updated_at exactly as they were.
"""

import logging
from typing import Any, Callable, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .collaborators import Clock, IdGenerator, SystemClock, UuidIdGenerator
from .config import EngineSettings, get_settings as get_engine_settings
from .exceptions import MalformedInputError, NotFoundError
from .factory import create_default_shape
from .geometry import find_shape_at, snap_point
from .models import (
    AnchorPosition, Connector, ConnectorPatch, Diagram, DiagramInfoRequest,
    DiagramSettings, DuplicateShapesRequest, MoveShapesRequest,
    QuickConnectRequest, Shape, ShapePatch,
)
from .validation import ValidationIssue, validate_diagram

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
RawInput = Union[str, bytes, bytearray, Mapping[str, Any]]


def parse_model(model_cls: type[ModelT], value: Union[ModelT, RawInput]) -> ModelT:
    """
    Validate input against a model.

    Accepts a model instance (copied), a mapping, or JSON text.

    Raises:
        MalformedInputError: If the input does not match the schema
    """
    if isinstance(value, model_cls):
        return value.model_copy(deep=True)

    try:
        if isinstance(value, (str, bytes, bytearray)):
            return model_cls.model_validate_json(value)
        return model_cls.model_validate(value)
    except ValidationError as exc:
        logger.warning("Rejected malformed %s (%d errors)", model_cls.__name__, exc.error_count())
        raise MalformedInputError(
            f"Invalid {model_cls.__name__}: {exc}",
            errors=exc.errors(include_url=False),
        ) from exc


class DiagramStore:
    """
    Owns a single diagram and applies validated mutations to it.

    Features:
    - Connector cleanup when a shape is deleted, in the same step
    - Injected clock for createdAt/updatedAt
    - Injected id generator for duplicated and quick-connected shapes
    - Change callbacks for host re-rendering

    The store is not thread-safe; a host sharing one between threads must
    serialize access itself.
    """

    def __init__(
        self,
        diagram: Diagram,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
        engine_settings: Optional[EngineSettings] = None,
    ):
        self._diagram = diagram
        self._clock = clock or SystemClock()
        self._id_generator = id_generator or UuidIdGenerator()
        self._engine_settings = engine_settings or get_engine_settings()
        self._on_change_callbacks: list[Callable[[], None]] = []

    # --- Construction ---

    @classmethod
    def create(
        cls,
        diagram_id: str,
        name: str,
        clock: Optional[Clock] = None,
        settings: Optional[DiagramSettings] = None,
        id_generator: Optional[IdGenerator] = None,
        engine_settings: Optional[EngineSettings] = None,
    ) -> "DiagramStore":
        """Create a store holding a new empty diagram."""
        clock = clock or SystemClock()
        engine_settings = engine_settings or get_engine_settings()
        now = clock.now()
        diagram = Diagram(
            id=diagram_id,
            name=name,
            shapes=[],
            connectors=[],
            settings=settings.model_copy() if settings else engine_settings.default_diagram_settings(),
            created_at=now,
            updated_at=now,
        )
        logger.info("Created diagram %s (%s)", diagram_id, name)
        return cls(diagram, clock=clock, id_generator=id_generator, engine_settings=engine_settings)

    @classmethod
    def load(
        cls,
        data: RawInput,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
        engine_settings: Optional[EngineSettings] = None,
    ) -> "DiagramStore":
        """
        Create a store from a serialized diagram.

        Args:
            data: JSON text or an already-decoded dict

        Raises:
            MalformedInputError: If the data does not match the diagram schema
        """
        diagram = parse_model(Diagram, data)
        logger.info(
            "Loaded diagram %s with %d shapes and %d connectors",
            diagram.id, len(diagram.shapes), len(diagram.connectors)
        )
        return cls(diagram, clock=clock, id_generator=id_generator, engine_settings=engine_settings)

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Get the serialized form as a JSON-compatible dict."""
        return self._diagram.to_json_dict()

    def serialize(self) -> str:
        """Get the serialized form as JSON text."""
        return self._diagram.model_dump_json(by_alias=True, exclude_none=True)

    # --- Properties ---

    @property
    def diagram(self) -> Diagram:
        """Snapshot of the whole diagram."""
        return self._diagram.model_copy(deep=True)

    @property
    def id(self) -> str:
        return self._diagram.id

    @property
    def name(self) -> str:
        return self._diagram.name

    @property
    def created_at(self) -> str:
        return self._diagram.created_at

    @property
    def updated_at(self) -> str:
        return self._diagram.updated_at

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[], None]):
        """Register a callback for diagram changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        """Notify all registered callbacks of a change."""
        for callback in self._on_change_callbacks:
            callback()

    def _touch(self):
        """Record a successful mutation."""
        self._diagram.updated_at = self._clock.now()
        self._notify_change()

    # --- Queries ---

    def get_shapes(self) -> list[Shape]:
        """Get copies of all shapes, bottom to top."""
        return [s.model_copy(deep=True) for s in self._diagram.shapes]

    def get_connectors(self) -> list[Connector]:
        """Get copies of all connectors in insertion order."""
        return [c.model_copy(deep=True) for c in self._diagram.connectors]

    def get_settings(self) -> DiagramSettings:
        """Get a copy of the diagram settings."""
        return self._diagram.settings.model_copy()

    def get_shape(self, shape_id: str) -> Optional[Shape]:
        """Get a copy of the first shape with this ID."""
        shape = self._diagram.get_shape(shape_id)
        return shape.model_copy(deep=True) if shape else None

    def get_connector(self, connector_id: str) -> Optional[Connector]:
        """Get a copy of the first connector with this ID."""
        connector = self._diagram.get_connector(connector_id)
        return connector.model_copy(deep=True) if connector else None

    def get_connectors_for_shape(self, shape_id: str) -> list[Connector]:
        """Get copies of all connectors attached to a shape."""
        return [
            c.model_copy(deep=True)
            for c in self._diagram.connectors
            if c.touches(shape_id)
        ]

    # --- Shape Operations ---

    def add_shape(self, shape: Union[Shape, RawInput]) -> Shape:
        """
        Add a shape on top of all existing shapes.

        Id uniqueness is not checked; ids come from the host's generator.

        Raises:
            MalformedInputError: If the shape does not match the schema
        """
        new_shape = parse_model(Shape, shape)
        self._diagram.shapes.append(new_shape)
        logger.debug("Added %s shape %s", new_shape.type.value, new_shape.id)
        self._touch()
        return new_shape.model_copy(deep=True)

    def update_shape(self, shape_id: str, patch: Union[ShapePatch, RawInput]) -> Shape:
        """
        Overwrite the fields present in the patch, leaving the rest untouched.

        Raises:
            MalformedInputError: If a patch field has the wrong type
            NotFoundError: If no shape has this ID
        """
        shape_patch = parse_model(ShapePatch, patch)
        index = self._find_shape_index(shape_id)

        updated = self._diagram.shapes[index].model_copy(update=shape_patch.changes())
        self._diagram.shapes[index] = updated
        logger.debug("Updated shape %s", shape_id)
        self._touch()
        return updated.model_copy(deep=True)

    def delete_shape(self, shape_id: str):
        """
        Delete a shape and every connector attached to it.

        Raises:
            NotFoundError: If no shape has this ID
        """
        remaining = [s for s in self._diagram.shapes if s.id != shape_id]
        if len(remaining) == len(self._diagram.shapes):
            raise NotFoundError("shape", shape_id)

        kept_connectors = [c for c in self._diagram.connectors if not c.touches(shape_id)]
        removed = len(self._diagram.connectors) - len(kept_connectors)

        self._diagram.shapes = remaining
        self._diagram.connectors = kept_connectors
        logger.debug("Deleted shape %s and %d connectors", shape_id, removed)
        self._touch()

    # --- Batch Shape Operations ---

    def update_shapes(
        self, patches: Mapping[str, Union[ShapePatch, RawInput]]
    ) -> list[Shape]:
        """
        Apply several sparse patches in one step, keyed by shape id.

        Nothing is changed unless every patch is valid and every id exists.
        An empty mapping is a no-op.

        Raises:
            MalformedInputError: If any patch field has the wrong type
            NotFoundError: If any shape id is unknown
        """
        parsed = {shape_id: parse_model(ShapePatch, patch) for shape_id, patch in patches.items()}
        indexes = {shape_id: self._find_shape_index(shape_id) for shape_id in parsed}
        if not parsed:
            return []

        shapes = self._diagram.shapes
        for shape_id, shape_patch in parsed.items():
            index = indexes[shape_id]
            shapes[index] = shapes[index].model_copy(update=shape_patch.changes())

        logger.debug("Updated %d shapes", len(parsed))
        self._touch()
        return [shapes[indexes[shape_id]].model_copy(deep=True) for shape_id in parsed]

    def move_shapes(self, shape_ids: list[str], dx: float, dy: float) -> list[Shape]:
        """
        Shift shapes by (dx, dy). An id listed twice moves once.

        Raises:
            MalformedInputError: If the offset is not a finite number
            NotFoundError: If any shape id is unknown
        """
        request = parse_model(
            MoveShapesRequest, {"shape_ids": list(shape_ids), "dx": dx, "dy": dy}
        )
        indexes = [self._find_shape_index(shape_id) for shape_id in dict.fromkeys(request.shape_ids)]
        if not indexes:
            return []

        shapes = self._diagram.shapes
        moves = [
            parse_model(ShapePatch, {
                "x": shapes[index].x + request.dx,
                "y": shapes[index].y + request.dy,
            })
            for index in indexes
        ]
        for index, move in zip(indexes, moves):
            shapes[index] = shapes[index].model_copy(update=move.changes())

        logger.debug("Moved %d shapes by (%s, %s)", len(indexes), request.dx, request.dy)
        self._touch()
        return [shapes[index].model_copy(deep=True) for index in indexes]

    def duplicate_shapes(
        self, shape_ids: list[str], offset: Optional[float] = None
    ) -> list[Shape]:
        """
        Clone shapes with fresh ids, shifted by offset on both axes.

        Connectors whose both ends are among the cloned shapes are cloned too
        and re-pointed at the copies. Clones keep the originals' relative
        stacking and go on top of everything else.

        Args:
            shape_ids: Shapes to clone
            offset: Shift for the copies (configured duplicate_offset if omitted)

        Returns:
            The new shapes, bottom to top

        Raises:
            MalformedInputError: If the offset is not a finite number
            NotFoundError: If any shape id is unknown
        """
        if offset is None:
            offset = self._engine_settings.duplicate_offset
        request = parse_model(
            DuplicateShapesRequest, {"shape_ids": list(shape_ids), "offset": offset}
        )
        indexes = sorted({self._find_shape_index(shape_id) for shape_id in request.shape_ids})
        if not indexes:
            return []

        id_map: dict[str, str] = {}
        clones: list[Shape] = []
        for index in indexes:
            source = self._diagram.shapes[index]
            new_id = self._id_generator.new_id()
            id_map[source.id] = new_id
            clones.append(parse_model(Shape, {
                **source.model_dump(),
                "id": new_id,
                "x": source.x + request.offset,
                "y": source.y + request.offset,
            }))

        connector_clones = [
            connector.model_copy(update={
                "id": self._id_generator.new_id(),
                "from_shape_id": id_map[connector.from_shape_id],
                "to_shape_id": id_map[connector.to_shape_id],
            })
            for connector in self._diagram.connectors
            if connector.from_shape_id in id_map and connector.to_shape_id in id_map
        ]

        self._diagram.shapes.extend(clones)
        self._diagram.connectors.extend(connector_clones)
        logger.debug(
            "Duplicated %d shapes and %d connectors", len(clones), len(connector_clones)
        )
        self._touch()
        return [clone.model_copy(deep=True) for clone in clones]

    def quick_create_connected_shape(
        self, source_shape_id: str, from_anchor: Union[AnchorPosition, str]
    ) -> Shape:
        """
        Create a default shape beside a source shape and connect the two.

        The new shape has the source's type and is placed the source's extent
        plus quick_connect_spacing away on the anchor's side, snapped to the
        grid. The connector runs from the given anchor to the facing side of
        the new shape.

        Raises:
            MalformedInputError: If the anchor is not top/right/bottom/left
                or the new position is not a finite number
            NotFoundError: If the source shape is unknown
        """
        request = parse_model(
            QuickConnectRequest,
            {"source_shape_id": source_shape_id, "from_anchor": from_anchor},
        )
        source = self._diagram.shapes[self._find_shape_index(request.source_shape_id)]
        anchor = request.from_anchor
        spacing = self._engine_settings.quick_connect_spacing

        x, y = source.x, source.y
        if anchor is AnchorPosition.TOP:
            y = source.y - source.height - spacing
        elif anchor is AnchorPosition.RIGHT:
            x = source.x + source.width + spacing
        elif anchor is AnchorPosition.BOTTOM:
            y = source.y + source.height + spacing
        else:
            x = source.x - source.width - spacing
        x, y = self.snap_to_grid(x, y)
        position = parse_model(ShapePatch, {"x": x, "y": y})

        new_shape = create_default_shape(
            source.type, position.x, position.y,
            id_generator=self._id_generator,
            settings=self._engine_settings,
        )
        connector = Connector(
            id=self._id_generator.new_id(),
            from_shape_id=source.id,
            to_shape_id=new_shape.id,
            from_anchor=anchor.value,
            to_anchor=anchor.opposite().value,
            stroke=self._engine_settings.connector_stroke,
            stroke_width=self._engine_settings.connector_stroke_width,
        )

        self._diagram.shapes.append(new_shape)
        self._diagram.connectors.append(connector)
        logger.debug("Grew shape %s out of %s (%s)", new_shape.id, source.id, anchor.value)
        self._touch()
        return new_shape.model_copy(deep=True)

    # --- Z-Order Operations ---

    def bring_to_front(self, shape_id: str):
        """Move a shape to the top of the stack."""
        index = self._find_shape_index(shape_id)
        shapes = self._diagram.shapes
        shapes.append(shapes.pop(index))
        self._touch()

    def send_to_back(self, shape_id: str):
        """Move a shape to the bottom of the stack."""
        index = self._find_shape_index(shape_id)
        shapes = self._diagram.shapes
        shapes.insert(0, shapes.pop(index))
        self._touch()

    def bring_forward(self, shape_id: str):
        """Swap a shape with the one directly above it."""
        index = self._find_shape_index(shape_id)
        shapes = self._diagram.shapes
        if index < len(shapes) - 1:
            shapes[index], shapes[index + 1] = shapes[index + 1], shapes[index]
        self._touch()

    def send_backward(self, shape_id: str):
        """Swap a shape with the one directly below it."""
        index = self._find_shape_index(shape_id)
        shapes = self._diagram.shapes
        if index > 0:
            shapes[index], shapes[index - 1] = shapes[index - 1], shapes[index]
        self._touch()

    # --- Connector Operations ---

    def add_connector(self, connector: Union[Connector, RawInput]) -> Connector:
        """
        Add a connector.

        The referenced shapes are not required to exist.

        Raises:
            MalformedInputError: If the connector does not match the schema
        """
        new_connector = parse_model(Connector, connector)
        self._diagram.connectors.append(new_connector)
        logger.debug(
            "Added connector %s (%s -> %s)",
            new_connector.id, new_connector.from_shape_id, new_connector.to_shape_id
        )
        self._touch()
        return new_connector.model_copy(deep=True)

    def update_connector(
        self, connector_id: str, patch: Union[ConnectorPatch, RawInput]
    ) -> Connector:
        """
        Overwrite the anchor/style fields present in the patch.

        Raises:
            MalformedInputError: If a patch field has the wrong type
            NotFoundError: If no connector has this ID
        """
        connector_patch = parse_model(ConnectorPatch, patch)
        connectors = self._diagram.connectors
        for index, connector in enumerate(connectors):
            if connector.id == connector_id:
                break
        else:
            raise NotFoundError("connector", connector_id)

        updated = connectors[index].model_copy(update=connector_patch.changes())
        connectors[index] = updated
        logger.debug("Updated connector %s", connector_id)
        self._touch()
        return updated.model_copy(deep=True)

    def delete_connector(self, connector_id: str):
        """
        Delete a connector.

        Raises:
            NotFoundError: If no connector has this ID
        """
        remaining = [c for c in self._diagram.connectors if c.id != connector_id]
        if len(remaining) == len(self._diagram.connectors):
            raise NotFoundError("connector", connector_id)

        self._diagram.connectors = remaining
        logger.debug("Deleted connector %s", connector_id)
        self._touch()

    # --- Diagram Info ---

    def update_settings(self, settings: Union[DiagramSettings, RawInput]) -> DiagramSettings:
        """
        Replace the settings wholesale. Every field must be present.

        Raises:
            MalformedInputError: If the settings do not match the schema
        """
        new_settings = parse_model(DiagramSettings, settings)
        self._diagram.settings = new_settings
        logger.debug("Replaced settings of diagram %s", self._diagram.id)
        self._touch()
        return new_settings.model_copy()

    def rename(self, name: str):
        """
        Change the diagram name.

        Raises:
            MalformedInputError: If name is not a string
        """
        request = parse_model(DiagramInfoRequest, {"name": name})
        self._diagram.name = request.name
        self._touch()

    def validate(self) -> list[ValidationIssue]:
        """Report dangling connectors, duplicate ids and similar issues."""
        return validate_diagram(self._diagram)

    # --- Geometry ---

    def snap_to_grid(self, x: float, y: float) -> tuple[float, float]:
        """Snap a point using the current grid settings."""
        return snap_point(x, y, self._diagram.settings)

    def find_shape_at(self, x: float, y: float) -> Optional[str]:
        """Get the id of the topmost shape containing the point, or None."""
        return find_shape_at(self._diagram.shapes, x, y)

    # --- Helpers ---

    def _find_shape_index(self, shape_id: str) -> int:
        for index, shape in enumerate(self._diagram.shapes):
            if shape.id == shape_id:
                return index
        raise NotFoundError("shape", shape_id)
