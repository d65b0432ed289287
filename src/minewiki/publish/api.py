# ABOUTME: Static JSON API generation from the scraped collections
# ABOUTME: Writes one index.json per collection under public/api so a static host serves /api/<collection>

from pathlib import Path

from minewiki.core.models import Block, CraftingRecipe, Item
from minewiki.core.validation import ensure_valid, validate_files
from minewiki.persistence.store import JsonCollection, write_json
from minewiki.utils.logging import get_logger

logger = get_logger(__name__)

API_COLLECTIONS = {
    "items": Item,
    "blocks": Block,
    "recipes": CraftingRecipe,
}


def build_static_api(data_dir: Path, public_dir: Path) -> dict[str, Path]:
    """Validate the collections in ``data_dir`` and publish them under ``public_dir/api``.

    Returns the written index file per collection.

    Raises:
        ValidationError: When any collection breaks an invariant; nothing is written
    """
    data_dir = Path(data_dir)
    api_dir = Path(public_dir) / "api"

    reports = validate_files(data_dir / "items.json", data_dir / "blocks.json", data_dir / "recipes.json")
    ensure_valid(reports)

    written = {}
    for collection, model in API_COLLECTIONS.items():
        records = JsonCollection(data_dir / f"{collection}.json", model).load()
        target = api_dir / collection / "index.json"
        write_json(target, [record.to_json_dict() for record in records])
        logger.info("Published API collection", collection=collection, count=len(records), path=str(target))
        written[collection] = target
    return written
