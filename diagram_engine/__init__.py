"""
Diagram Engine - In-memory document model for a 2D diagram editor.

This package holds the diagram state (shapes, connectors, settings), the
mutation contract applied to it, and the geometric queries a canvas needs.
Rendering, persistence and input handling live in the host.
"""

from .models import (
    # Enums
    ShapeType,
    AnchorPosition,
    # Core models
    Shape,
    Connector,
    DiagramSettings,
    Diagram,
    # Patch models
    ShapePatch,
    ConnectorPatch,
    # Request models
    MoveShapesRequest,
    DuplicateShapesRequest,
    QuickConnectRequest,
    DiagramInfoRequest,
)

from .exceptions import DiagramEngineError, MalformedInputError, NotFoundError
from .collaborators import Clock, IdGenerator, SystemClock, UuidIdGenerator
from .config import EngineSettings, get_settings
from .factory import create_default_shape
from .geometry import (
    round_half_away_from_zero, snap_point, contains_point, find_shape_at, diagram_bounds
)
from .store import DiagramStore
from .validation import validate_diagram, validation_summary, ValidationIssue, IssueSeverity
from .logging_config import setup_logging

__all__ = [
    # Enums
    "ShapeType",
    "AnchorPosition",
    # Models
    "Shape",
    "Connector",
    "DiagramSettings",
    "Diagram",
    "ShapePatch",
    "ConnectorPatch",
    "MoveShapesRequest",
    "DuplicateShapesRequest",
    "QuickConnectRequest",
    "DiagramInfoRequest",
    # Errors
    "DiagramEngineError",
    "MalformedInputError",
    "NotFoundError",
    # Collaborators
    "Clock",
    "IdGenerator",
    "SystemClock",
    "UuidIdGenerator",
    # Configuration
    "EngineSettings",
    "get_settings",
    "setup_logging",
    # Store
    "DiagramStore",
    "create_default_shape",
    # Geometry
    "round_half_away_from_zero",
    "snap_point",
    "contains_point",
    "find_shape_at",
    "diagram_bounds",
    # Validation
    "validate_diagram",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
]
