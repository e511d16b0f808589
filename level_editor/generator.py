"""
Procedural level generation from smart components.

Terrain groups are laid out by a left-to-right walker with density-driven
gaps and vertical drift. Terrain decorations are attached on top of the
platforms, then background decorations are scattered with minimum-spacing
rejection sampling, avoiding anything already placed.
"""

import logging
import math
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .config import CONFIG, GenerationConfig
from .group_manager import partition_by_role
from .models import (
    GENERATED_COLLISION_LAYER_ID,
    Layer,
    Role,
    Tile,
    TileGroup,
    VerticalAlignment,
    parse_key,
)
from .patterns import expand_group, mirror_pattern

logger = logging.getLogger(__name__)

BACKGROUND_LAYER_ID = "layer-bg"
TERRAIN_LAYER_ID = "layer-1"

Cell = Tuple[int, int]


def gap_bounds(density: int, cfg: GenerationConfig) -> Tuple[int, int]:
    """Horizontal gap range between platforms. Denser groups sit closer together."""
    min_gap = max(1, cfg.gap_min_base - math.ceil(density / cfg.gap_density_divisor))
    max_gap = max(min_gap + 1, cfg.gap_max_base - density)
    return min_gap, max_gap


def vertical_bounds(
    group: TileGroup, height: int, cfg: GenerationConfig
) -> Tuple[int, int]:
    """Inclusive Y range the walker may occupy for ``group``."""
    aligns = group.alignments()
    half = height // 2
    if aligns == {VerticalAlignment.TOP}:
        low, high = cfg.vertical_margin, half
    elif aligns == {VerticalAlignment.BOTTOM}:
        low, high = half, height - cfg.vertical_margin
    else:
        low, high = cfg.vertical_margin, height - cfg.vertical_margin

    if high < low:
        low = high = max(0, min(height - 1, (low + high) // 2))
    return low, high


def spacing_for(density: int, cfg: GenerationConfig) -> int:
    return max(cfg.min_spacing, cfg.spacing_base - density)


def _density(group: TileGroup) -> int:
    return min(10, max(1, group.density or 5))


class LevelGenerator:
    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or CONFIG.generation
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def _randint(self, low: int, high: int) -> int:
        """Uniform integer in [low, high]."""
        return int(self.rng.integers(low, high + 1))

    def _chance(self, p: float) -> bool:
        return float(self.rng.random()) < p

    def generate(
        self, width: int, height: int, groups: Iterable[TileGroup]
    ) -> Optional[List[Layer]]:
        """
        Build a level as ``[background, collision, terrain]``.

        Returns None when there is no terrain group to build platforms from.
        """
        by_role = partition_by_role(groups)
        terrain_groups = by_role[Role.TERRAIN]
        if not terrain_groups:
            logger.warning("No terrain groups selected, skipping generation")
            return None

        background = Layer(id=BACKGROUND_LAYER_ID, name="Background")
        collision = Layer(id=GENERATED_COLLISION_LAYER_ID, name="Collision", opacity=0.5)
        terrain = Layer(id=TERRAIN_LAYER_ID, name="Terrain")

        for group in terrain_groups:
            self._terrain_pass(
                group, by_role[Role.TERRAIN_DECORATION], width, height, terrain, collision
            )

        decorations = by_role[Role.DECORATION]
        if decorations:
            top = [g for g in decorations if self._is_top(g)]
            bottom = [g for g in decorations if self._is_bottom(g)]
            for group in top:
                self._scatter(group, True, width, height, background, terrain)
            for group in bottom:
                self._scatter(group, False, width, height, background, terrain)

        logger.debug(
            "Generated %dx%d level: %d terrain, %d collision, %d background cells",
            width,
            height,
            len(terrain.data),
            len(collision.data),
            len(background.data),
        )
        return [background, collision, terrain]

    # --- Terrain walker ---

    def _terrain_pass(
        self,
        group: TileGroup,
        deco_groups: List[TileGroup],
        width: int,
        height: int,
        terrain: Layer,
        collision: Layer,
    ):
        cfg = self.config
        low, high = vertical_bounds(group, height, cfg)
        min_gap, max_gap = gap_bounds(_density(group), cfg)
        current_x = cfg.start_x
        current_y = (low + high) // 2

        while current_x < width - cfg.walker_end_margin:
            plat_width = self._randint(cfg.min_platform_width, cfg.max_platform_width)
            for key, tile in expand_group(plat_width, group).items():
                dx, dy = parse_key(key)
                gx, gy = current_x + dx, current_y + dy
                if not (0 <= gx < width and 0 <= gy < height):
                    continue
                if not terrain.is_occupied(gx, gy):
                    terrain.set(gx, gy, tile)
                collision.set(
                    gx, gy, Tile(cfg.collision_tile_id, False, {"isSolid": True})
                )

            if deco_groups:
                self._decorate_platform(
                    deco_groups, current_x, current_y, plat_width, width, height, terrain
                )

            current_x += plat_width + self._randint(min_gap, max_gap)
            current_y += self._randint(-cfg.max_vertical_drift, cfg.max_vertical_drift)
            current_y = min(max(current_y, low), high)

    def _decorate_platform(
        self,
        deco_groups: List[TileGroup],
        plat_x: int,
        plat_y: int,
        plat_width: int,
        width: int,
        height: int,
        terrain: Layer,
    ):
        cfg = self.config
        dx = 0
        while dx < plat_width:
            group = deco_groups[self._randint(0, len(deco_groups) - 1)]
            chance = (_density(group) / 5) * cfg.terrain_decoration_chance
            if self._chance(chance):
                deco_width = group.natural_width
                if dx + deco_width <= plat_width:
                    placed = self._place_on_top(
                        group, deco_width, plat_x + dx, plat_y, width, height, terrain
                    )
                    if placed:
                        dx += deco_width - 1
            dx += 1

    def _place_on_top(
        self,
        group: TileGroup,
        deco_width: int,
        x: int,
        platform_top: int,
        width: int,
        height: int,
        terrain: Layer,
    ) -> bool:
        pattern = expand_group(deco_width, group)
        if group.can_flip and self._chance(self.config.flip_chance):
            pattern = mirror_pattern(pattern, deco_width)

        start_y = platform_top - (group.height or 1)
        placed = False
        for key, tile in pattern.items():
            ddx, ddy = parse_key(key)
            fx, fy = x + ddx, start_y + ddy
            if 0 <= fx < width and 0 <= fy < height and not terrain.is_occupied(fx, fy):
                terrain.set(fx, fy, tile)
                placed = True
        return placed

    # --- Background scatter ---

    @staticmethod
    def _is_top(group: TileGroup) -> bool:
        aligns = group.alignments()
        return not aligns or VerticalAlignment.TOP in aligns

    @staticmethod
    def _is_bottom(group: TileGroup) -> bool:
        aligns = group.alignments()
        return not aligns or VerticalAlignment.BOTTOM in aligns

    def _candidate(self, top: bool, width: int, height: int) -> Cell:
        cx = int(self.rng.integers(0, max(1, width - 2)))
        if top:
            cy = int(self.rng.integers(0, max(1, int(height * 0.5))))
        else:
            cy = height // 2 + int(self.rng.integers(0, max(1, int(height * 0.5 - 2))))
        return cx, cy

    def _scatter(
        self,
        group: TileGroup,
        top: bool,
        width: int,
        height: int,
        background: Layer,
        terrain: Layer,
    ):
        cfg = self.config
        density = _density(group)
        divisor = cfg.top_scatter_divisor if top else cfg.bottom_scatter_divisor
        count = int(width * height * (density / 5) / divisor)
        min_dist = spacing_for(density, cfg)
        placed = np.empty((0, 2), dtype=float)

        for _ in range(count):
            spot = None
            for _attempt in range(cfg.max_placement_attempts):
                cx, cy = self._candidate(top, width, height)
                if len(placed) == 0 or np.hypot(
                    placed[:, 0] - cx, placed[:, 1] - cy
                ).min() >= min_dist:
                    spot = (cx, cy)
                    break
            if spot is None:
                continue

            if group.can_resize:
                deco_width = self._randint(cfg.min_decoration_width, cfg.max_decoration_width)
            else:
                deco_width = group.natural_width

            pattern = expand_group(deco_width, group)
            if group.can_flip and self._chance(cfg.flip_chance):
                pattern = mirror_pattern(pattern, deco_width)

            if self._commit(pattern, spot, width, height, background, terrain):
                placed = np.vstack([placed, spot])

    @staticmethod
    def _commit(
        pattern: Dict[str, Tile],
        origin: Cell,
        width: int,
        height: int,
        background: Layer,
        terrain: Layer,
    ) -> bool:
        """All-or-nothing write of ``pattern`` at ``origin`` into the background."""
        if not pattern:
            return False
        ox, oy = origin
        cells = []
        for key, tile in pattern.items():
            dx, dy = parse_key(key)
            x, y = ox + dx, oy + dy
            if not (0 <= x < width and 0 <= y < height):
                return False
            if background.is_occupied(x, y) or terrain.is_occupied(x, y):
                return False
            cells.append((x, y, tile))
        for x, y, tile in cells:
            background.set(x, y, tile)
        return True


def generate_level(
    width: int,
    height: int,
    groups: Iterable[TileGroup],
    seed: Optional[int] = None,
    config: Optional[GenerationConfig] = None,
) -> Optional[List[Layer]]:
    return LevelGenerator(config=config, seed=seed).generate(width, height, groups)
