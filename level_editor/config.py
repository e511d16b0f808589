"""
Configuration settings for the level editor and the procedural generator.
"""

import logging
import os

import toml
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)


class GenerationConfig(BaseModel):
    """Tuning knobs for the procedural level generator."""

    # Terrain walker
    start_x: int = 2
    vertical_margin: int = 4
    min_platform_width: int = 3
    max_platform_width: int = 8
    max_vertical_drift: int = 2
    walker_end_margin: int = 5

    # Gap between platforms, derived from density:
    #   min_gap = max(1, gap_min_base - ceil(density / gap_density_divisor))
    #   max_gap = max(min_gap + 1, gap_max_base - density)
    gap_min_base: int = 7
    gap_density_divisor: float = 1.5
    gap_max_base: int = 12

    # Decorations attached to platforms
    terrain_decoration_chance: float = 0.3

    # Background scatter
    top_scatter_divisor: float = 100.0
    bottom_scatter_divisor: float = 150.0
    max_placement_attempts: int = 10
    spacing_base: int = 15
    min_spacing: int = 3
    min_decoration_width: int = 2
    max_decoration_width: int = 4
    flip_chance: float = 0.5

    collision_tile_id: int = 0

    @model_validator(mode="after")
    def _check_ranges(self) -> "GenerationConfig":
        if self.min_platform_width < 1:
            raise ValueError("min_platform_width must be at least 1")
        if self.max_platform_width < self.min_platform_width:
            raise ValueError("max_platform_width must be >= min_platform_width")
        if self.max_decoration_width < self.min_decoration_width:
            raise ValueError("max_decoration_width must be >= min_decoration_width")
        if self.gap_density_divisor <= 0:
            raise ValueError("gap_density_divisor must be positive")
        if self.top_scatter_divisor <= 0 or self.bottom_scatter_divisor <= 0:
            raise ValueError("scatter divisors must be positive")
        return self


class EditorConfig(BaseModel):
    """Configuration settings for the editor core."""

    # Map defaults
    map_width: int = 64
    map_height: int = 16
    tile_size: int = 32

    # History
    history_limit: int = Field(default=50, ge=1)
    recent_brush_limit: int = Field(default=12, ge=1)

    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    model_config = ConfigDict(extra="allow")

    @classmethod
    def load_from_toml(cls, path: str = "level_editor.toml") -> "EditorConfig":
        """Load configuration from a TOML file."""
        if not os.path.exists(path):
            logger.info("Config file %s not found, using defaults", path)
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = toml.load(f)

            config = cls(**data.get("editor", {}))
            config.generation = GenerationConfig(**data.get("generation", {}))
            return config
        except (OSError, toml.TomlDecodeError, TypeError, ValueError) as e:
            logger.error("Error loading config %s: %s", path, e)
            return cls()


# Global config instance
CONFIG = EditorConfig.load_from_toml()
