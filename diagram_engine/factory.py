"""
Factory for shapes created from the toolbar.

New shapes get default geometry and styling from the engine settings and an
id from the injected generator.
"""

import logging
from typing import Optional, Union

from .collaborators import IdGenerator, UuidIdGenerator
from .config import EngineSettings, get_settings
from .exceptions import MalformedInputError
from .models import Shape, ShapeType

logger = logging.getLogger(__name__)


def create_default_shape(
    kind: Union[str, ShapeType],
    x: float,
    y: float,
    id_generator: Optional[IdGenerator] = None,
    settings: Optional[EngineSettings] = None,
) -> Shape:
    """
    Build a shape of the given kind at (x, y) with default size and style.

    Args:
        kind: One of "rectangle", "circle", "diamond", "text"
        x: Left edge
        y: Top edge
        id_generator: Id source (random UUIDs if omitted)
        settings: Default geometry/style (process settings if omitted)

    Returns:
        The new Shape. It is not added to any diagram.

    Raises:
        MalformedInputError: If kind is not a known shape type
    """
    try:
        shape_type = ShapeType(kind)
    except ValueError:
        logger.warning("Rejected default shape of unknown type %r", kind)
        raise MalformedInputError(f"Invalid shape type: {kind!r}") from None

    settings = settings or get_settings()
    id_generator = id_generator or UuidIdGenerator()

    return Shape(
        id=id_generator.new_id(),
        type=shape_type,
        x=x,
        y=y,
        width=settings.shape_width,
        height=settings.shape_height,
        rotation=0.0,
        fill=settings.shape_fill,
        stroke=settings.shape_stroke,
        stroke_width=settings.shape_stroke_width,
        text=settings.default_text if shape_type is ShapeType.TEXT else None,
    )
