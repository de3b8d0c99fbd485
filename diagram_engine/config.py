"""Engine configuration from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from .models import DiagramSettings


class EngineSettings(BaseSettings):
    log_level: str = "INFO"

    # Settings given to newly created diagrams
    background_color: str = "#ffffff"
    grid_enabled: bool = True
    snap_to_grid: bool = True
    grid_size: float = Field(default=20.0, gt=0)

    # Default shape geometry and style
    shape_width: float = 100.0
    shape_height: float = 100.0
    shape_fill: str = "#4f46e5"
    shape_stroke: str = "#3730a3"
    shape_stroke_width: float = 2.0
    default_text: str = "Text"

    # Connectors created by quick-connect
    connector_stroke: str = "#64748b"
    connector_stroke_width: float = 2.0

    # Gap between a shape and one grown out of its side
    quick_connect_spacing: float = 150.0
    # Shift applied to duplicated shapes
    duplicate_offset: float = 20.0

    model_config = {
        "env_prefix": "DIAGRAM_ENGINE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def default_diagram_settings(self) -> DiagramSettings:
        return DiagramSettings(
            background_color=self.background_color,
            grid_enabled=self.grid_enabled,
            snap_to_grid=self.snap_to_grid,
            grid_size=self.grid_size,
        )


@lru_cache()
def get_settings() -> EngineSettings:
    return EngineSettings()
