"""
Smart component (TileGroup) registry for the Level Editor.
Groups can be saved to and loaded from a TOML library file.
"""

import logging
import os
from typing import Dict, Iterable, List, Optional

import toml

from .models import Role, TileGroup

logger = logging.getLogger(__name__)


def default_groups() -> Dict[str, TileGroup]:
    return {
        "grass": TileGroup(
            id="grass",
            name="Grass Platform",
            left=[8],
            middle=[[9]],
            right=[10],
            single=[9],
            height=1,
            preview=[8, 9, 10],
            role=Role.TERRAIN,
            can_resize=True,
            can_flip=False,
        )
    }


def partition_by_role(groups: Iterable[TileGroup]) -> Dict[Role, List[TileGroup]]:
    parts: Dict[Role, List[TileGroup]] = {role: [] for role in Role}
    for group in groups:
        parts[group.role].append(group)
    return parts


class GroupManager:
    def __init__(self, groups: Optional[Dict[str, TileGroup]] = None):
        self.groups: Dict[str, TileGroup] = (
            groups if groups is not None else default_groups()
        )

    def get(self, group_id: str) -> Optional[TileGroup]:
        return self.groups.get(group_id)

    def list_groups(self) -> List[TileGroup]:
        return list(self.groups.values())

    def unique_id(self, name: str) -> str:
        base = "-".join(name.lower().split()) or "group"
        candidate, n = base, 1
        while candidate in self.groups:
            n += 1
            candidate = f"{base}-{n}"
        return candidate

    def add_group(self, group: TileGroup) -> TileGroup:
        """Registers a group, renaming its id if it collides with an existing one."""
        if group.id in self.groups:
            group.id = self.unique_id(group.name)
        self.groups[group.id] = group
        return group

    def update_group(self, group_id: str, **changes) -> Optional[TileGroup]:
        group = self.groups.get(group_id)
        if group is None:
            return None
        for name, value in changes.items():
            if not hasattr(group, name) or name == "id":
                raise AttributeError(f"TileGroup has no editable field {name!r}")
            setattr(group, name, value)
        return group.normalize()

    def delete_group(self, group_id: str) -> bool:
        return self.groups.pop(group_id, None) is not None

    def clear(self):
        self.groups.clear()

    def eligible_groups(self, selected_ids: Optional[Iterable[str]] = None) -> List[TileGroup]:
        """Groups usable by the generator, optionally limited to ``selected_ids``."""
        wanted = set(selected_ids) if selected_ids is not None else None
        return [
            g
            for g in self.groups.values()
            if g.allow_in_generation and (wanted is None or g.id in wanted)
        ]

    # --- Persistence ---

    def to_dict(self) -> Dict[str, dict]:
        return {gid: g.to_dict() for gid, g in self.groups.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, dict]) -> "GroupManager":
        groups = {}
        for gid, raw in data.items():
            raw = dict(raw)
            raw.setdefault("id", gid)
            groups[gid] = TileGroup.from_dict(raw)
        return cls(groups)

    def save_library(self, path: str) -> bool:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write("# Smart Component Library\n# Generated by Level Editor\n\n")
                toml.dump({"groups": self.to_dict()}, f)
            return True
        except OSError as e:
            logger.error("Error saving group library %s: %s", path, e)
            return False

    def load_library(self, path: str) -> bool:
        """Replaces the registry with the groups in ``path``."""
        if not os.path.exists(path):
            return False
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = toml.load(f)
            loaded = GroupManager.from_dict(data.get("groups", {}))
        except toml.TomlDecodeError as e:
            logger.error("Error parsing group library %s: %s", path, e)
            return False
        except (OSError, KeyError, TypeError, ValueError) as e:
            logger.error("Error loading group library %s: %s", path, e)
            return False
        self.groups = loaded.groups
        logger.debug("Loaded %d groups from %s", len(self.groups), path)
        return True
