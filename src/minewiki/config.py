# ABOUTME: Application configuration using Pydantic Settings for environment variables
# ABOUTME: Provides type-safe access to wiki URLs, output paths, concurrency and logging settings

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="MINEWIKI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown environment variables
    )

    # Wiki source
    wiki_base_url: str = Field(default="https://minecraft.wiki", description="Base URL of the Minecraft wiki")
    user_agent: str = Field(
        default="minewiki/0.1 (+https://mc.geertvandrunen.nl)", description="User-Agent for direct HTTP requests"
    )
    headless: bool = Field(default=True, description="Run the automated browser headless")
    page_timeout_ms: int = Field(default=120_000, description="Per-page navigation timeout for the browser")

    # Output locations
    data_dir: Path = Field(default=Path("data"), description="Directory holding items/blocks/recipes JSON")
    public_dir: Path = Field(default=Path("public"), description="Directory holding published assets")
    image_base_url: str = Field(
        default="https://mc.geertvandrunen.nl/images",
        description="Public URL prefix under which items/ and blocks/ images are served",
    )

    # Batch sizing
    items_concurrency: int = Field(default=3, ge=1, description="Concurrent item pages")
    blocks_concurrency: int = Field(default=4, ge=1, description="Concurrent block pages")
    item_image_size: int = Field(default=32, ge=1, description="Item icon edge length in pixels")
    block_image_size: int = Field(default=200, ge=1, description="Block image edge length in pixels")

    # Logging Configuration
    log_mode: Literal["interactive", "production"] = Field(default="interactive", description="Logging output mode")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging verbosity level"
    )

    log_file: Path | None = Field(default=None, description="Custom log file path (overrides default)")

    @property
    def items_json_path(self) -> Path:
        return self.data_dir / "items.json"

    @property
    def blocks_json_path(self) -> Path:
        return self.data_dir / "blocks.json"

    @property
    def recipes_json_path(self) -> Path:
        return self.data_dir / "recipes.json"

    @property
    def errors_dir(self) -> Path:
        return self.data_dir / "errors"

    @property
    def item_images_dir(self) -> Path:
        return self.public_dir / "items"

    @property
    def block_images_dir(self) -> Path:
        return self.public_dir / "blocks"


# Global config instance - lazy loaded when first accessed
_config_instance: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Creates the config on first access, subsequent calls return the same instance.

    Returns:
        Config: The application configuration instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reload_config() -> Config:
    """Reload configuration from environment variables.

    Useful for testing or when environment variables change at runtime.

    Returns:
        Config: A fresh configuration instance
    """
    global _config_instance
    _config_instance = Config()
    return _config_instance
