"""
Map data management and file I/O for the Level Editor.
Holds the ordered layer stack, the active layer and the map bounds.
"""

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from .config import CONFIG
from .group_manager import GroupManager
from .models import (
    COLLISION_LAYER_ID,
    Layer,
    SelectionRect,
    Tile,
)

logger = logging.getLogger(__name__)

_SUFFIX_RE = re.compile(r"^(.*) \((\d+)\)$")


class LevelEditorError(Exception):
    """Base class for level editor errors."""


class MapLoadError(LevelEditorError):
    """Raised when a persisted map document is malformed."""


def default_layers() -> List[Layer]:
    return [
        Layer(id="ground", name="Ground"),
        Layer(id="decor", name="Decoration"),
        Layer(id=COLLISION_LAYER_ID, name="Collision", opacity=0.5),
    ]


def map_from_dict(data: Any) -> Tuple[int, int, List[Layer], int, List[SelectionRect], GroupManager]:
    """Parse a persisted map document. Raises MapLoadError if malformed."""
    if not isinstance(data, dict):
        raise MapLoadError("Map document must be an object")
    raw_layers = data.get("layers")
    if not isinstance(raw_layers, list) or not raw_layers:
        raise MapLoadError("Map document is missing its layer list")

    try:
        layers = [Layer.from_dict(lyr) for lyr in raw_layers]
        width = int(data.get("width", CONFIG.map_width))
        height = int(data.get("height", CONFIG.map_height))
        active = int(data.get("activeLayerIndex", 0))
        recent = [SelectionRect.from_dict(r) for r in data.get("recentBrushes", [])]
        groups = GroupManager.from_dict(data.get("tileGroups", {}))
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise MapLoadError(f"Invalid map document: {e}") from e

    active = min(max(active, 0), len(layers) - 1)
    return width, height, layers, active, recent, groups


class MapManager:
    def __init__(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        layers: Optional[List[Layer]] = None,
        groups: Optional[GroupManager] = None,
    ):
        self.width = width if width is not None else CONFIG.map_width
        self.height = height if height is not None else CONFIG.map_height
        self.layers: List[Layer] = layers if layers else default_layers()
        self.active_layer_index = 0
        self.recent_brushes: List[SelectionRect] = []
        self.recent_limit = CONFIG.recent_brush_limit
        self.groups = groups if groups is not None else GroupManager()
        self._layer_counter = len(self.layers)

    # --- Layer access ---

    @property
    def active_layer(self) -> Layer:
        return self.layers[self.active_layer_index]

    def layer(self, layer_id: Optional[str] = None) -> Layer:
        if layer_id is None:
            return self.active_layer
        for lyr in self.layers:
            if lyr.id == layer_id:
                return lyr
        raise KeyError(f"No layer with id {layer_id!r}")

    def set_active_layer(self, index: int):
        if not 0 <= index < len(self.layers):
            raise IndexError(f"Layer index {index} out of range")
        self.active_layer_index = index

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    # --- Tiles ---

    def get_tile(self, x: int, y: int, layer_id: Optional[str] = None) -> Optional[Tile]:
        return self.layer(layer_id).get(x, y)

    def set_tile(self, x: int, y: int, tile: Tile, layer_id: Optional[str] = None):
        self.layer(layer_id).set(x, y, tile)

    def delete_tile(self, x: int, y: int, layer_id: Optional[str] = None) -> bool:
        return self.layer(layer_id).delete(x, y)

    # --- Layer management ---

    def unique_layer_name(self, name: str, exclude_index: Optional[int] = None) -> str:
        taken = {
            lyr.name for i, lyr in enumerate(self.layers) if i != exclude_index
        }
        if name not in taken:
            return name
        match = _SUFFIX_RE.match(name)
        base = match.group(1) if match else name
        n = 1
        while f"{base} ({n})" in taken:
            n += 1
        return f"{base} ({n})"

    def add_layer(self, name: str = "Layer") -> Layer:
        ids = {lyr.id for lyr in self.layers}
        self._layer_counter += 1
        while f"layer-{self._layer_counter}" in ids:
            self._layer_counter += 1
        lyr = Layer(id=f"layer-{self._layer_counter}", name=self.unique_layer_name(name))
        self.layers.append(lyr)
        self.active_layer_index = len(self.layers) - 1
        return lyr

    def remove_layer(self, index: int) -> bool:
        if len(self.layers) <= 1:
            logger.warning("Refusing to delete the last remaining layer")
            return False
        if not 0 <= index < len(self.layers):
            raise IndexError(f"Layer index {index} out of range")
        self.layers.pop(index)
        if self.active_layer_index >= len(self.layers):
            self.active_layer_index = len(self.layers) - 1
        elif self.active_layer_index > index:
            self.active_layer_index -= 1
        return True

    def move_layer(self, index: int, direction: int) -> bool:
        """Swap layer ``index`` with its neighbour. Active selection follows the layer."""
        target = index + direction
        if not (0 <= index < len(self.layers) and 0 <= target < len(self.layers)):
            return False
        self.layers[index], self.layers[target] = self.layers[target], self.layers[index]
        if self.active_layer_index == index:
            self.active_layer_index = target
        elif self.active_layer_index == target:
            self.active_layer_index = index
        return True

    def rename_layer(self, index: int, name: str) -> str:
        lyr = self.layers[index]
        lyr.name = self.unique_layer_name(name.strip() or lyr.name, exclude_index=index)
        return lyr.name

    def toggle_visibility(self, index: int) -> bool:
        lyr = self.layers[index]
        lyr.visible = not lyr.visible
        return lyr.visible

    def set_opacity(self, index: int, opacity: float) -> float:
        lyr = self.layers[index]
        lyr.opacity = min(1.0, max(0.0, float(opacity)))
        return lyr.opacity

    def replace_layers(self, layers: List[Layer], active_index: int = 0):
        if not layers:
            return
        self.layers = layers
        self.active_layer_index = min(max(active_index, 0), len(layers) - 1)

    # --- History support ---

    def snapshot(self) -> List[Layer]:
        """Deep, independent copy of the layer stack."""
        return [lyr.clone() for lyr in self.layers]

    def restore(self, layers: List[Layer]):
        self.layers = layers
        if self.active_layer_index >= len(self.layers):
            self.active_layer_index = len(self.layers) - 1

    # --- Recent brushes ---

    def push_recent_brush(self, rect: SelectionRect):
        self.recent_brushes = [r for r in self.recent_brushes if r != rect]
        self.recent_brushes.insert(0, SelectionRect(rect.x, rect.y, rect.w, rect.h))
        del self.recent_brushes[self.recent_limit:]

    # --- Persistence ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "activeLayerIndex": self.active_layer_index,
            "layers": [lyr.to_dict() for lyr in self.layers],
            "recentBrushes": [r.to_dict() for r in self.recent_brushes],
            "tileGroups": self.groups.to_dict(),
        }

    def load_dict(self, data: Any):
        """Replace state from a document. State is untouched if it is malformed."""
        width, height, layers, active, recent, groups = map_from_dict(data)
        self.width = width
        self.height = height
        self.layers = layers
        self.active_layer_index = active
        self.recent_brushes = recent[: self.recent_limit]
        self.groups = groups
        self._layer_counter = len(layers)

    def load(self, path: str) -> bool:
        if not os.path.exists(path):
            logger.error("Map file %s does not exist", path)
            return False
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self.load_dict(data)
            return True
        except ValueError as e:
            logger.error("Error parsing map file %s: %s", path, e)
            return False
        except (MapLoadError, OSError) as e:
            logger.error("Error loading map file %s: %s", path, e)
            return False

    def save(self, path: str) -> bool:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
            return True
        except OSError as e:
            logger.error("Error saving map file %s: %s", path, e)
            return False
