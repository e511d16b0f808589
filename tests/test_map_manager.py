"""
Tests for the layered tile store and map persistence.
"""

import json

import pytest

from level_editor.map_manager import MapLoadError, MapManager, map_from_dict
from level_editor.models import SelectionRect, Tile


class TestTileStore:
    """Test sparse tile access."""

    def test_unset_cells_are_empty(self, map_mgr):
        assert map_mgr.get_tile(0, 0) is None
        assert map_mgr.get_tile(-50, 1000) is None
        assert all(not lyr.data for lyr in map_mgr.layers)

    def test_set_get_delete(self, map_mgr):
        map_mgr.set_tile(-3, 2, Tile(7), "decor")

        assert map_mgr.get_tile(-3, 2, "decor") == Tile(7)
        assert map_mgr.get_tile(-3, 2) is None
        assert map_mgr.delete_tile(-3, 2, "decor") is True
        assert map_mgr.delete_tile(-3, 2, "decor") is False

    def test_unknown_layer_fails_fast(self, map_mgr):
        with pytest.raises(KeyError):
            map_mgr.get_tile(0, 0, "missing")

    def test_set_active_layer_out_of_range(self, map_mgr):
        with pytest.raises(IndexError):
            map_mgr.set_active_layer(3)


class TestLayers:
    """Test layer management."""

    def test_default_layers(self, map_mgr):
        assert [lyr.name for lyr in map_mgr.layers] == ["Ground", "Decoration", "Collision"]
        assert map_mgr.layers[2].opacity == 0.5

    def test_cannot_delete_last_layer(self):
        mgr = MapManager(4, 4)
        assert mgr.remove_layer(2) is True
        assert mgr.remove_layer(1) is True

        assert mgr.remove_layer(0) is False
        assert len(mgr.layers) == 1

    def test_remove_layer_keeps_active_in_range(self, map_mgr):
        map_mgr.set_active_layer(2)
        map_mgr.remove_layer(2)

        assert map_mgr.active_layer_index == 1

    def test_rename_disambiguates(self, map_mgr):
        assert map_mgr.rename_layer(0, "Decoration") == "Decoration (1)"
        assert map_mgr.rename_layer(2, "Decoration") == "Decoration (2)"
        assert map_mgr.rename_layer(1, "Decoration") == "Decoration"

    def test_rename_to_same_name_is_unchanged(self, map_mgr):
        assert map_mgr.rename_layer(0, "Ground") == "Ground"

    def test_add_layer_gets_unique_name_and_id(self, map_mgr):
        first = map_mgr.add_layer("Ground")
        second = map_mgr.add_layer("Ground")

        assert first.name == "Ground (1)"
        assert second.name == "Ground (2)"
        assert first.id != second.id
        assert map_mgr.active_layer is second

    def test_move_layer(self, map_mgr):
        assert map_mgr.move_layer(0, 1) is True
        assert [lyr.id for lyr in map_mgr.layers] == ["decor", "ground", "collision"]
        assert map_mgr.active_layer.id == "ground"
        assert map_mgr.move_layer(0, -1) is False

    def test_visibility_and_opacity(self, map_mgr):
        assert map_mgr.toggle_visibility(1) is False
        assert map_mgr.set_opacity(1, 1.7) == 1.0
        assert map_mgr.set_opacity(1, -0.2) == 0.0


class TestRecentBrushes:
    """Test recent palette selections."""

    def test_most_recent_first_without_duplicates(self, map_mgr):
        map_mgr.push_recent_brush(SelectionRect(0, 0))
        map_mgr.push_recent_brush(SelectionRect(1, 0, 2, 2))
        map_mgr.push_recent_brush(SelectionRect(0, 0))

        assert map_mgr.recent_brushes == [SelectionRect(0, 0), SelectionRect(1, 0, 2, 2)]

    def test_limit(self, map_mgr):
        map_mgr.recent_limit = 3
        for i in range(5):
            map_mgr.push_recent_brush(SelectionRect(i, 0))

        assert [r.x for r in map_mgr.recent_brushes] == [4, 3, 2]


class TestPersistence:
    """Test map documents."""

    def test_save_and_load(self, map_mgr, tmp_path):
        map_mgr.set_tile(1, 2, Tile(3, True, {"isSolid": True}), "collision")
        map_mgr.set_tile(0, 0, Tile(5))
        map_mgr.rename_layer(1, "Props")
        map_mgr.push_recent_brush(SelectionRect(2, 3, 1, 2))
        path = tmp_path / "maps" / "level.json"

        assert map_mgr.save(str(path)) is True

        loaded = MapManager()
        assert loaded.load(str(path)) is True
        assert (loaded.width, loaded.height) == (5, 5)
        assert loaded.layers == map_mgr.layers
        assert loaded.recent_brushes == [SelectionRect(2, 3, 1, 2)]
        assert loaded.groups.get("grass") is not None

    def test_document_keys(self, map_mgr):
        data = map_mgr.to_dict()

        assert set(data) == {
            "width", "height", "activeLayerIndex", "layers", "recentBrushes", "tileGroups"
        }
        assert data["layers"][0]["id"] == "ground"

    def test_missing_layers_is_load_failure(self, map_mgr, tmp_path):
        map_mgr.set_tile(0, 0, Tile(1))
        before = map_mgr.to_dict()
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"width": 10, "height": 10}))

        assert map_mgr.load(str(path)) is False
        assert map_mgr.to_dict() == before

    def test_invalid_json_is_load_failure(self, map_mgr, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        assert map_mgr.load(str(path)) is False

    def test_undecodable_file_is_load_failure(self, map_mgr, tmp_path):
        path = tmp_path / "bad.json"
        path.write_bytes(b'{"layers": "\xff\xfe"}')
        before = map_mgr.to_dict()

        assert map_mgr.load(str(path)) is False
        assert map_mgr.to_dict() == before

    def test_missing_file(self, map_mgr, tmp_path):
        assert map_mgr.load(str(tmp_path / "nope.json")) is False

    def test_map_from_dict_rejects_bad_tiles(self):
        doc = {"layers": [{"id": "a", "data": {"0,0": {"flipX": True}}}]}

        with pytest.raises(MapLoadError):
            map_from_dict(doc)

    def test_map_from_dict_rejects_non_object(self):
        with pytest.raises(MapLoadError):
            map_from_dict([1, 2, 3])
