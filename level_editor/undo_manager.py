"""
Undo and redo management for the Level Editor.
Each checkpoint is a full, independent copy of the layer stack.
"""

from typing import TYPE_CHECKING, List, Optional

from .config import CONFIG
from .models import Layer

if TYPE_CHECKING:
    from .map_manager import MapManager


class UndoManager:
    def __init__(self, max_history: Optional[int] = None):
        self.max_history = max_history if max_history is not None else CONFIG.history_limit
        self.undo_stack: List[List[Layer]] = []
        self.redo_stack: List[List[Layer]] = []

    def _push(self, stack: List[List[Layer]], snapshot: List[Layer]):
        stack.append(snapshot)
        if len(stack) > self.max_history:
            stack.pop(0)

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def checkpoint(self, map_mgr: "MapManager"):
        """Record the current layers before a mutation. Invalidates redo history."""
        self._push(self.undo_stack, map_mgr.snapshot())
        self.redo_stack.clear()

    def undo(self, map_mgr: "MapManager") -> bool:
        if not self.undo_stack:
            return False

        previous = self.undo_stack.pop()
        self._push(self.redo_stack, map_mgr.snapshot())
        map_mgr.restore(previous)
        return True

    def redo(self, map_mgr: "MapManager") -> bool:
        if not self.redo_stack:
            return False

        following = self.redo_stack.pop()
        self._push(self.undo_stack, map_mgr.snapshot())
        map_mgr.restore(following)
        return True

    def clear(self):
        self.undo_stack.clear()
        self.redo_stack.clear()
