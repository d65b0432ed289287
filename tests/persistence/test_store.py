# ABOUTME: Tests for JSON collection persistence and error reports
# ABOUTME: Verifies sorted rewrites, reloading and the failure report formats

import json

from minewiki.core.models import Block, CraftingRecipe, Item, ScrapeFailure
from minewiki.persistence.store import JsonCollection, read_json, write_error_report


def _item(name: str, namespaced_id: str) -> Item:
    return Item(name=name, namespaced_id=namespaced_id, image="x", stack_size=64, renewable=True)


class TestJsonCollection:
    def test_missing_file_loads_empty(self, tmp_path):
        collection = JsonCollection(tmp_path / "items.json", Item).load()
        assert len(collection) == 0

    def test_add_flushes_sorted(self, tmp_path):
        path = tmp_path / "data" / "items.json"
        collection = JsonCollection(path, Item)
        collection.add(_item("Torch", "torch"))
        collection.add(_item("Stick", "stick"))

        assert [record["name"] for record in read_json(path)] == ["Stick", "Torch"]
        assert read_json(path)[0]["namespacedId"] == "stick"

    def test_reload(self, tmp_path):
        path = tmp_path / "items.json"
        collection = JsonCollection(path, Item)
        collection.add(_item("Stick", "stick"))

        reloaded = JsonCollection(path, Item).load()
        assert reloaded.names == {"Stick"}
        assert reloaded.namespaced_ids == {"stick"}

    def test_blocks_keep_undefined_attributes(self, tmp_path):
        path = tmp_path / "blocks.json"
        block = Block(name="Stone", namespaced_id="stone", image="x", tool=None)
        JsonCollection(path, Block).add(block)

        assert read_json(path) == [{"name": "Stone", "namespacedId": "stone", "image": "x", "tool": None}]
        assert not JsonCollection(path, Block).load().records[0].is_defined("luminance")

    def test_recipes_sorted_by_output(self, tmp_path):
        path = tmp_path / "recipes.json"
        collection = JsonCollection(path, CraftingRecipe, sort_key=lambda recipe: recipe.item)
        collection.extend(
            [
                CraftingRecipe(item="Torch", recipe=[None] * 8 + ["Coal"]),
                CraftingRecipe(item="Bowl", recipe=[None] * 8 + ["Oak Planks"]),
            ]
        )
        collection.flush()

        assert [record["item"] for record in read_json(path)] == ["Bowl", "Torch"]
        assert collection.names == {"Bowl", "Torch"}

    def test_clear(self, tmp_path):
        collection = JsonCollection(tmp_path / "items.json", Item)
        collection.add(_item("Stick", "stick"))
        collection.clear()
        collection.flush()

        assert read_json(tmp_path / "items.json") == []

    def test_non_ascii_names_written_verbatim(self, tmp_path):
        path = tmp_path / "items.json"
        JsonCollection(path, Item).add(_item("Jack o'Lantern ✓", "jack_o_lantern"))
        assert "✓" in path.read_text(encoding="utf-8")


class TestErrorReport:
    def test_reports_written(self, tmp_path):
        failures = [ScrapeFailure.from_exception("Stone", "block", ValueError("bad page"))]
        json_path, text_path = write_error_report(tmp_path / "errors", "blocks", failures, ["Zeta", "Alpha"])

        report = json.loads(json_path.read_text(encoding="utf-8"))
        assert report["collection"] == "blocks"
        assert report["failures"][0]["error_type"] == "ValueError"
        assert report["notFound"] == ["Alpha", "Zeta"]
        assert text_path.read_text(encoding="utf-8").splitlines() == [
            "Stone\tblock\tValueError: bad page",
            "Alpha\tnot_found",
            "Zeta\tnot_found",
        ]

    def test_empty_report(self, tmp_path):
        _json_path, text_path = write_error_report(tmp_path, "items", [])
        assert text_path.read_text(encoding="utf-8") == ""
