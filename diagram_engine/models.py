"""
Core data models for diagrams.

These models define the canonical schema for diagrams:
- Shapes with geometry and styling (insertion order is the z-order)
- Connectors linking two shapes by id
- Settings for background and grid behaviour
- Patch and request models for sparse and batch updates

Field Naming Convention:
- Python attributes are snake_case (`stroke_width`, `from_shape_id`)
- The serialized form uses camelCase (`strokeWidth`, `fromShapeId`) to stay
  compatible with the editor frontend
- Both spellings are accepted on input

Numbers and flags are strict: "1.5" is not a number and true is not a width.
Non-finite floats are rejected so every accepted state serializes to JSON.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat
from pydantic.alias_generators import to_camel


class ShapeType(str, Enum):
    """Kinds of shapes that can be placed on the canvas."""
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    DIAMOND = "diamond"
    TEXT = "text"


class AnchorPosition(str, Enum):
    """Sides of a shape a connector can attach to."""
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"

    def opposite(self) -> "AnchorPosition":
        """The side facing this one on a neighbouring shape."""
        return _OPPOSITE_ANCHORS[self]


_OPPOSITE_ANCHORS = {
    AnchorPosition.TOP: AnchorPosition.BOTTOM,
    AnchorPosition.BOTTOM: AnchorPosition.TOP,
    AnchorPosition.LEFT: AnchorPosition.RIGHT,
    AnchorPosition.RIGHT: AnchorPosition.LEFT,
}


class DiagramModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
    )

    def to_json_dict(self) -> dict:
        """Convert to a JSON-serializable dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Shape(DiagramModel):
    """A positioned, styled element on the canvas."""
    id: str
    type: ShapeType
    x: StrictFloat
    y: StrictFloat
    width: StrictFloat
    height: StrictFloat
    rotation: StrictFloat  # Degrees, not interpreted here
    fill: str
    stroke: str
    stroke_width: StrictFloat
    text: Optional[str] = None  # Only meaningful for text shapes

    def bounds(self) -> tuple[float, float, float, float]:
        """Get the bounding box (x, y, right, bottom), ignoring rotation."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def center(self) -> tuple[float, float]:
        """Get the center point of the shape."""
        return (self.x + self.width / 2, self.y + self.height / 2)


class Connector(DiagramModel):
    """A directed link between two shapes, referenced by id."""
    id: str
    from_shape_id: str
    to_shape_id: str
    from_anchor: str  # Opaque; the editor uses AnchorPosition values
    to_anchor: str
    stroke: str
    stroke_width: StrictFloat

    def touches(self, shape_id: str) -> bool:
        """True if either endpoint references the given shape."""
        return self.from_shape_id == shape_id or self.to_shape_id == shape_id


class DiagramSettings(DiagramModel):
    """
    Diagram-wide display settings.

    Every field is required; defaults for new diagrams come from
    EngineSettings.default_diagram_settings().
    """
    background_color: str
    grid_enabled: StrictBool
    snap_to_grid: StrictBool
    grid_size: StrictFloat = Field(gt=0)


class Diagram(DiagramModel):
    """
    The complete diagram aggregate.
    This is what gets serialized for the host to store or transmit.
    """
    id: str
    name: str
    shapes: list[Shape]
    connectors: list[Connector]
    settings: DiagramSettings
    created_at: str
    updated_at: str

    def get_shape(self, shape_id: str) -> Optional[Shape]:
        """Get the first shape with this ID (O(n))."""
        for shape in self.shapes:
            if shape.id == shape_id:
                return shape
        return None

    def get_connector(self, connector_id: str) -> Optional[Connector]:
        """Get the first connector with this ID (O(n))."""
        for connector in self.connectors:
            if connector.id == connector_id:
                return connector
        return None


# --- Sparse update models ---

class ShapePatch(DiagramModel):
    """
    Partial update for a shape.

    Every slot is optional; None means "leave unchanged". The id and type of
    a shape are fixed at creation and have no slot here.
    """
    x: Optional[StrictFloat] = None
    y: Optional[StrictFloat] = None
    width: Optional[StrictFloat] = None
    height: Optional[StrictFloat] = None
    rotation: Optional[StrictFloat] = None
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: Optional[StrictFloat] = None
    text: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        """Fields to overwrite, keyed by attribute name."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


class ConnectorPatch(DiagramModel):
    """Partial update for a connector's anchors and styling."""
    from_anchor: Optional[str] = None
    to_anchor: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: Optional[StrictFloat] = None

    def changes(self) -> dict[str, Any]:
        """Fields to overwrite, keyed by attribute name."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


# --- Request models ---

class MoveShapesRequest(DiagramModel):
    """Request to shift several shapes by the same offset."""
    shape_ids: list[str]
    dx: StrictFloat
    dy: StrictFloat


class DuplicateShapesRequest(DiagramModel):
    """Request to clone shapes (and the connectors between them)."""
    shape_ids: list[str]
    offset: StrictFloat


class QuickConnectRequest(DiagramModel):
    """Request to grow a new shape out of one side of an existing shape."""
    source_shape_id: str
    from_anchor: AnchorPosition


class DiagramInfoRequest(DiagramModel):
    """Request to update diagram metadata."""
    name: str
