# ABOUTME: Tests for the pydantic-settings application configuration
# ABOUTME: Covers defaults, MINEWIKI_* environment overrides and derived output paths

from pathlib import Path

import pytest
from pydantic import ValidationError

from minewiki.config import Config, get_config, reload_config


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.wiki_base_url == "https://minecraft.wiki"
        assert config.data_dir == Path("data")
        assert config.items_concurrency >= 1
        assert config.log_level == "INFO"

    def test_derived_paths(self):
        config = Config(data_dir=Path("out"), public_dir=Path("site"))
        assert config.items_json_path == Path("out/items.json")
        assert config.blocks_json_path == Path("out/blocks.json")
        assert config.recipes_json_path == Path("out/recipes.json")
        assert config.errors_dir == Path("out/errors")
        assert config.item_images_dir == Path("site/items")
        assert config.block_images_dir == Path("site/blocks")

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("MINEWIKI_DATA_DIR", "/srv/minewiki")
        monkeypatch.setenv("MINEWIKI_BLOCKS_CONCURRENCY", "8")
        config = reload_config()

        assert config.data_dir == Path("/srv/minewiki")
        assert config.blocks_concurrency == 8
        assert get_config() is config

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("MINEWIKI_IMAGE_BASE_URL=https://cdn.example/images\n")
        assert Config().image_base_url == "https://cdn.example/images"

    def test_invalid_concurrency(self):
        with pytest.raises(ValidationError):
            Config(items_concurrency=0)
