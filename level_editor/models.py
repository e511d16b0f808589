"""
Core models and data structures for the Level Editor.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple, Union

Primitive = Union[str, int, float, bool]

COLLISION_LAYER_ID = "collision"
GENERATED_COLLISION_LAYER_ID = "layer-collision"


def tile_key(x: int, y: int) -> str:
    return f"{x},{y}"


def parse_key(key: str) -> Tuple[int, int]:
    x, y = key.split(",")
    return int(x), int(y)


class Tool(Enum):
    BRUSH = "brush"
    ERASER = "eraser"
    FILL = "fill"
    MARQUEE = "marquee"
    EYEDROPPER = "eyedropper"
    SMART_BRUSH = "smartBrush"


class Role(Enum):
    TERRAIN = "terrain"
    DECORATION = "decoration"
    TERRAIN_DECORATION = "terrain-decoration"


class VerticalAlignment(Enum):
    TOP = "top"
    BOTTOM = "bottom"


@dataclass
class Tile:
    tile_id: int
    flip_x: bool = False
    properties: Optional[Dict[str, Primitive]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"tileId": self.tile_id, "flipX": self.flip_x}
        if self.properties:
            data["properties"] = dict(self.properties)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tile":
        props = data.get("properties")
        return cls(
            tile_id=int(data["tileId"]),
            flip_x=bool(data.get("flipX", False)),
            properties=dict(props) if props else None,
        )


@dataclass
class Layer:
    """One sparse plane of tiles keyed by "x,y". Missing keys are empty cells."""

    id: str
    name: str
    visible: bool = True
    opacity: float = 1.0
    data: Dict[str, Tile] = field(default_factory=dict)

    def get(self, x: int, y: int) -> Optional[Tile]:
        return self.data.get(tile_key(x, y))

    def set(self, x: int, y: int, tile: Tile):
        self.data[tile_key(x, y)] = tile

    def delete(self, x: int, y: int) -> bool:
        return self.data.pop(tile_key(x, y), None) is not None

    @property
    def is_collision(self) -> bool:
        return self.id in (COLLISION_LAYER_ID, GENERATED_COLLISION_LAYER_ID)

    def is_occupied(self, x: int, y: int) -> bool:
        return tile_key(x, y) in self.data

    def cells(self) -> Set[Tuple[int, int]]:
        return {parse_key(k) for k in self.data}

    def clone(self) -> "Layer":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "visible": self.visible,
            "opacity": self.opacity,
            "data": {k: t.to_dict() for k, t in self.data.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Layer":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            visible=bool(data.get("visible", True)),
            opacity=float(data.get("opacity", 1.0)),
            data={k: Tile.from_dict(t) for k, t in data.get("data", {}).items()},
        )


@dataclass
class SelectionRect:
    x: int
    y: int
    w: int = 1
    h: int = 1

    def is_valid(self) -> bool:
        return self.w >= 1 and self.h >= 1

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.w and self.y <= y < self.y + self.h

    def cells(self):
        for y in range(self.y, self.y + self.h):
            for x in range(self.x, self.x + self.w):
                yield x, y

    @classmethod
    def from_corners(cls, x0: int, y0: int, x1: int, y1: int) -> "SelectionRect":
        return cls(min(x0, x1), min(y0, y1), abs(x1 - x0) + 1, abs(y1 - y0) + 1)

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SelectionRect":
        return cls(int(data["x"]), int(data["y"]), int(data["w"]), int(data["h"]))


@dataclass
class CustomBrush:
    """An arbitrary stamp. Keys are 0-based "dx,dy" offsets within width x height."""

    width: int
    height: int
    data: Dict[str, Tile] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.data


@dataclass
class TileGroup:
    """
    A stretchable pattern ("smart component").

    Each column lists tile ids top-to-bottom. Columns may be shorter than
    ``height``; rows wrap around the column length when expanded.
    """

    id: str
    name: str
    left: List[int] = field(default_factory=list)
    middle: List[List[int]] = field(default_factory=list)
    right: List[int] = field(default_factory=list)
    single: List[int] = field(default_factory=list)
    height: int = 1
    preview: List[int] = field(default_factory=list)
    role: Role = Role.TERRAIN
    can_resize: bool = True
    can_flip: bool = False
    allow_in_generation: bool = True
    vertical_alignments: List[VerticalAlignment] = field(default_factory=list)
    density: int = 5

    @property
    def natural_width(self) -> int:
        if self.preview:
            return len(self.preview)
        return len(self.middle) + 2 if self.left or self.right else 1

    def alignments(self) -> Set[VerticalAlignment]:
        """Alignments the generator may use. Empty means unrestricted."""
        return set(self.vertical_alignments)

    def normalize(self) -> "TileGroup":
        """Clamp density to 1-10. Resizable groups never flip."""
        if self.can_resize:
            self.can_flip = False
        self.density = min(10, max(1, int(self.density)))
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "left": list(self.left),
            "middle": [list(col) for col in self.middle],
            "right": list(self.right),
            "single": list(self.single),
            "height": self.height,
            "preview": list(self.preview),
            "role": self.role.value,
            "canResize": self.can_resize,
            "canFlip": self.can_flip,
            "allowInGeneration": self.allow_in_generation,
            "verticalAlignments": [a.value for a in self.vertical_alignments],
            "density": self.density,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TileGroup":
        role = Role(data.get("role", Role.TERRAIN.value))
        alignments = [VerticalAlignment(a) for a in data.get("verticalAlignments") or []]
        legacy = data.get("verticalAlignment")
        if legacy and not alignments:
            alignments = [VerticalAlignment(legacy)]
        group = cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            left=[int(t) for t in data.get("left", [])],
            middle=[[int(t) for t in col] for col in data.get("middle", [])],
            right=[int(t) for t in data.get("right", [])],
            single=[int(t) for t in data.get("single", [])],
            height=int(data.get("height") or 1),
            preview=[int(t) for t in data.get("preview", [])],
            role=role,
            can_resize=bool(data.get("canResize", role == Role.TERRAIN)),
            can_flip=bool(data.get("canFlip", False)),
            allow_in_generation=bool(data.get("allowInGeneration", True)),
            vertical_alignments=alignments,
            density=int(data.get("density") or 5),
        )
        return group.normalize()
