"""
Tests for the smart component registry and its TOML library files.
"""

import pytest

from level_editor.group_manager import GroupManager, partition_by_role
from level_editor.models import Role, TileGroup, VerticalAlignment


class TestRegistry:
    """Test registry operations."""

    def test_seeded_with_grass(self):
        groups = GroupManager()

        grass = groups.get("grass")
        assert grass.left == [8]
        assert grass.middle == [[9]]
        assert grass.right == [10]

    def test_add_renames_colliding_id(self):
        groups = GroupManager()
        added = groups.add_group(TileGroup(id="grass", name="Grass Platform"))

        assert added.id == "grass-platform"
        assert len(groups.list_groups()) == 2

    def test_update_group(self):
        groups = GroupManager()
        groups.update_group("grass", can_flip=True, density=40)

        grass = groups.get("grass")
        assert grass.can_flip is False  # resizable groups never flip
        assert grass.density == 10

    def test_update_unknown_field(self):
        with pytest.raises(AttributeError):
            GroupManager().update_group("grass", colour="red")

    def test_update_missing_group(self):
        assert GroupManager().update_group("nope", density=2) is None

    def test_delete_and_clear(self):
        groups = GroupManager()

        assert groups.delete_group("grass") is True
        assert groups.delete_group("grass") is False
        groups.add_group(TileGroup(id="a", name="A"))
        groups.clear()
        assert groups.list_groups() == []

    def test_eligible_groups(self):
        groups = GroupManager()
        groups.add_group(TileGroup(id="hidden", name="Hidden", allow_in_generation=False))
        groups.add_group(TileGroup(id="cloud", name="Cloud", role=Role.DECORATION))

        assert {g.id for g in groups.eligible_groups()} == {"grass", "cloud"}
        assert [g.id for g in groups.eligible_groups(["cloud", "hidden"])] == ["cloud"]

    def test_partition_by_role(self):
        parts = partition_by_role(
            [
                TileGroup(id="a", name="A"),
                TileGroup(id="b", name="B", role=Role.DECORATION),
                TileGroup(id="c", name="C", role=Role.TERRAIN_DECORATION),
            ]
        )

        assert [g.id for g in parts[Role.TERRAIN]] == ["a"]
        assert [g.id for g in parts[Role.DECORATION]] == ["b"]
        assert [g.id for g in parts[Role.TERRAIN_DECORATION]] == ["c"]


class TestLibraryFiles:
    """Test TOML persistence."""

    def test_save_and_load_library(self, tmp_path, level_groups):
        path = tmp_path / "lib" / "groups.toml"
        groups = GroupManager({g.id: g for g in level_groups})

        assert groups.save_library(str(path)) is True

        loaded = GroupManager()
        assert loaded.load_library(str(path)) is True
        assert {g.id for g in loaded.list_groups()} == {"grass", "flower", "cloud", "bush"}
        assert loaded.get("bush") == groups.get("bush")

    def test_load_missing_library(self, tmp_path):
        groups = GroupManager()

        assert groups.load_library(str(tmp_path / "missing.toml")) is False
        assert groups.get("grass") is not None

    def test_load_malformed_library(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[groups.a\nname = ")
        groups = GroupManager()

        assert groups.load_library(str(path)) is False
        assert groups.get("grass") is not None

    def test_legacy_single_alignment(self):
        group = TileGroup.from_dict(
            {"id": "old", "name": "Old", "role": "decoration", "verticalAlignment": "bottom"}
        )

        assert group.vertical_alignments == [VerticalAlignment.BOTTOM]
        assert group.alignments() == {VerticalAlignment.BOTTOM}
        assert "verticalAlignment" not in group.to_dict()
        assert group.can_resize is False
        assert group.density == 5

    def test_loaded_groups_are_normalized(self):
        group = TileGroup.from_dict(
            {"id": "wide", "name": "Wide", "canResize": True, "canFlip": True, "density": 40}
        )

        assert group.can_flip is False
        assert group.density == 10
        assert TileGroup.from_dict({"id": "thin", "density": -3}).density == 1
