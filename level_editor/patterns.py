"""
Pattern expansion for smart components (TileGroups).

A group is a left cap, a repeating run of middle columns and a right cap.
Expanding it at a width produces a sparse "dx,dy" -> Tile mapping that
painting and the generator stamp onto layers.
"""

from typing import Dict, List, Optional

from .models import (
    CustomBrush,
    Role,
    SelectionRect,
    Tile,
    TileGroup,
    parse_key,
    tile_key,
)


def _source_column(x: int, width: int, group: TileGroup) -> List[int]:
    if width == 1:
        return group.single
    if x == 0:
        return group.left
    if x == width - 1:
        return group.right
    if group.middle:
        return group.middle[(x - 1) % len(group.middle)]
    return group.single


def expand_group(width: int, group: TileGroup) -> Dict[str, Tile]:
    """Expand ``group`` to ``width`` columns. Empty columns emit nothing."""
    data: Dict[str, Tile] = {}
    if width <= 0:
        return data

    height = group.height or 1
    for x in range(width):
        column = _source_column(x, width, group)
        if not column:
            continue
        for y in range(height):
            data[tile_key(x, y)] = Tile(column[y % len(column)], False)
    return data


def mirror_pattern(pattern: Dict[str, Tile], width: int) -> Dict[str, Tile]:
    """Mirror a pattern horizontally around ``width - 1``, inverting each tile's flip."""
    mirrored: Dict[str, Tile] = {}
    for key, tile in pattern.items():
        dx, dy = parse_key(key)
        mirrored[tile_key(width - 1 - dx, dy)] = Tile(
            tile.tile_id,
            not tile.flip_x,
            dict(tile.properties) if tile.properties else None,
        )
    return mirrored


def brush_from_group(
    group: TileGroup, width: int, flipped: bool = False
) -> CustomBrush:
    data = expand_group(width, group)
    if flipped:
        data = mirror_pattern(data, width)
    return CustomBrush(width=max(width, 0), height=group.height or 1, data=data)


def brush_from_palette(rect: SelectionRect, tiles_per_row: int) -> CustomBrush:
    """Convert a spritesheet selection into a rectangular brush."""
    data = {}
    for dy in range(rect.h):
        for dx in range(rect.w):
            tile_id = (rect.y + dy) * tiles_per_row + (rect.x + dx)
            data[tile_key(dx, dy)] = Tile(tile_id, False)
    return CustomBrush(width=rect.w, height=rect.h, data=data)


def capture_group(
    rect: SelectionRect,
    tiles_per_row: int,
    group_id: str,
    name: str,
    role: Role = Role.TERRAIN,
    can_resize: Optional[bool] = None,
    can_flip: bool = False,
) -> TileGroup:
    """
    Build a smart component from a spritesheet selection.

    The first column becomes the left cap, the last column the right cap
    and everything in between the repeating middle. A resizable group is
    never flipped.
    """

    def column(cx: int) -> List[int]:
        return [(rect.y + dy) * tiles_per_row + cx for dy in range(rect.h)]

    columns = [column(rect.x + dx) for dx in range(rect.w)]
    middle = columns[1:-1]
    if can_resize is None:
        can_resize = role == Role.TERRAIN

    return TileGroup(
        id=group_id,
        name=name,
        left=columns[0],
        middle=middle,
        right=columns[-1],
        single=middle[0] if middle else columns[0],
        height=rect.h,
        preview=[col[0] for col in columns],
        role=role,
        can_resize=can_resize,
        can_flip=can_flip and not can_resize,
    )
