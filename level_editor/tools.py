"""
Painting tools and algorithms for the Level Editor.

Low-level helpers (``paint_tile``, ``stamp_brush``) mutate the active layer
directly. Actions that correspond to one user edit take the UndoManager and
checkpoint exactly once before their first mutation.
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional, Set, Tuple

from .models import (
    CustomBrush,
    SelectionRect,
    Tile,
    TileGroup,
    parse_key,
    tile_key,
)
from .patterns import brush_from_group

if TYPE_CHECKING:
    from .generator import LevelGenerator
    from .map_manager import MapManager
    from .undo_manager import UndoManager

logger = logging.getLogger(__name__)


def paint_tile(
    map_mgr: "MapManager", x: int, y: int, tile_id: Optional[int], flipped: bool = False
):
    """Write one tile on the active layer. ``tile_id=None`` erases the cell."""
    layer = map_mgr.active_layer
    if tile_id is None:
        layer.delete(x, y)
        return
    properties = {"isSolid": True} if layer.is_collision else None
    layer.set(x, y, Tile(tile_id, flipped, properties))


def stamp_brush(
    map_mgr: "MapManager", x: int, y: int, brush: CustomBrush, flipped: bool = False
) -> int:
    """
    Stamp ``brush`` with its top-left at (x, y).

    When flipped the stamp is mirrored horizontally and every tile's own
    flip is XOR-ed with the global flip, so mixed-flip brushes stay intact.
    """
    layer = map_mgr.active_layer
    solid = layer.is_collision
    for key, tile in brush.data.items():
        dx, dy = parse_key(key)
        final_dx = brush.width - 1 - dx if flipped else dx
        properties = dict(tile.properties) if tile.properties else None
        if solid:
            properties = dict(properties or {}, isSolid=True)
        layer.set(x + final_dx, y + dy, Tile(tile.tile_id, tile.flip_x != flipped, properties))
    return len(brush.data)


class BrushStroke:
    """
    One press-drag-release stroke. Checkpoints once, before the first cell it
    actually paints, and paints each in-bounds cell at most once.
    """

    def __init__(
        self,
        map_mgr: "MapManager",
        undo_mgr: "UndoManager",
        brush: Optional[CustomBrush] = None,
        flipped: bool = False,
    ):
        self.map_mgr = map_mgr
        self.undo_mgr = undo_mgr
        self.brush = brush
        self.flipped = flipped
        self.painted: Set[Tuple[int, int]] = set()

    def paint_at(self, x: int, y: int) -> bool:
        if not self.map_mgr.in_bounds(x, y) or (x, y) in self.painted:
            return False
        if not self.painted:
            self.undo_mgr.checkpoint(self.map_mgr)
        self.painted.add((x, y))
        if self.brush is None:
            paint_tile(self.map_mgr, x, y, None)
        else:
            stamp_brush(self.map_mgr, x, y, self.brush, self.flipped)
        return True

    def paint_line(self, x0: int, y0: int, x1: int, y1: int):
        for x, y in line_cells(x0, y0, x1, y1):
            self.paint_at(x, y)


def line_cells(x0: int, y0: int, x1: int, y1: int) -> Iterable[Tuple[int, int]]:
    dx, dy = abs(x1 - x0), -abs(y1 - y0)
    sx, sy = (1 if x0 < x1 else -1), (1 if y0 < y1 else -1)
    err = dx + dy
    while True:
        yield x0, y0
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


def flood_fill(
    map_mgr: "MapManager",
    undo_mgr: Optional["UndoManager"],
    x: int,
    y: int,
    fill_id: int,
    flipped: bool = False,
) -> int:
    """
    Fill the 4-connected region of cells sharing the start cell's tile id.
    Empty cells only match empty cells. Returns the number of cells filled.
    """
    if not map_mgr.in_bounds(x, y):
        return 0
    layer = map_mgr.active_layer
    start = layer.get(x, y)
    start_id = start.tile_id if start else None
    if start_id == fill_id:
        return 0

    if undo_mgr is not None:
        undo_mgr.checkpoint(map_mgr)

    properties = {"isSolid": True} if layer.is_collision else None
    visited: Set[Tuple[int, int]] = set()
    stack = [(x, y)]
    while stack:
        cx, cy = stack.pop()
        if (cx, cy) in visited or not map_mgr.in_bounds(cx, cy):
            continue
        current = layer.get(cx, cy)
        if (current.tile_id if current else None) != start_id:
            continue

        visited.add((cx, cy))
        layer.set(cx, cy, Tile(fill_id, flipped, dict(properties) if properties else None))

        stack.append((cx + 1, cy))
        stack.append((cx - 1, cy))
        stack.append((cx, cy + 1))
        stack.append((cx, cy - 1))

    logger.debug("Flood fill at (%d, %d) changed %d cells", x, y, len(visited))
    return len(visited)


def fill_rect(
    map_mgr: "MapManager",
    undo_mgr: "UndoManager",
    rect: SelectionRect,
    tile_id: int,
    flipped: bool = False,
):
    undo_mgr.checkpoint(map_mgr)
    for cx, cy in rect.cells():
        paint_tile(map_mgr, cx, cy, tile_id, flipped)


def delete_selection(
    map_mgr: "MapManager", undo_mgr: "UndoManager", rect: SelectionRect
) -> int:
    undo_mgr.checkpoint(map_mgr)
    layer = map_mgr.active_layer
    return sum(1 for cx, cy in rect.cells() if layer.delete(cx, cy))


def sample_brush(map_mgr: "MapManager", rect: SelectionRect) -> CustomBrush:
    """Copy the tiles under ``rect`` on the active layer into a brush (eyedropper/copy)."""
    layer = map_mgr.active_layer
    data = {}
    for cx, cy in rect.cells():
        tile = layer.get(cx, cy)
        if tile is not None:
            data[tile_key(cx - rect.x, cy - rect.y)] = Tile(
                tile.tile_id,
                tile.flip_x,
                dict(tile.properties) if tile.properties else None,
            )
    return CustomBrush(width=rect.w, height=rect.h, data=data)


def paste_brush(
    map_mgr: "MapManager",
    undo_mgr: "UndoManager",
    clipboard: CustomBrush,
    target: Optional[SelectionRect] = None,
) -> bool:
    """Paste at the selection origin, or at (0, 0) when nothing is selected."""
    if clipboard.is_empty():
        return False
    undo_mgr.checkpoint(map_mgr)
    tx, ty = (target.x, target.y) if target else (0, 0)
    stamp_brush(map_mgr, tx, ty, clipboard)
    return True


def paint_group(
    map_mgr: "MapManager",
    undo_mgr: "UndoManager",
    x: int,
    y: int,
    group: TileGroup,
    width: int,
    flipped: bool = False,
) -> bool:
    """Smart brush: stamp ``group`` stretched to ``width`` columns."""
    if not group.can_resize:
        width = group.natural_width
    brush = brush_from_group(group, width, flipped and group.can_flip)
    if brush.is_empty():
        return False
    undo_mgr.checkpoint(map_mgr)
    stamp_brush(map_mgr, x, y, brush)
    return True


def apply_generated_level(
    map_mgr: "MapManager",
    undo_mgr: "UndoManager",
    generator: "LevelGenerator",
    groups: Iterable[TileGroup],
) -> bool:
    """Replace every layer with a freshly generated level. Undoable."""
    groups = [g for g in groups if g.allow_in_generation]
    layers = generator.generate(map_mgr.width, map_mgr.height, groups)
    if layers is None:
        return False
    undo_mgr.checkpoint(map_mgr)
    map_mgr.replace_layers(layers, active_index=len(layers) - 1)
    return True
