# ABOUTME: Block extraction from the Java Edition block data values table and block wiki pages
# ABOUTME: Applies the ordered attribute rule table, infobox fallbacks and texture palettes

import re
from pathlib import Path
from typing import Any

import httpx
from bs4 import BeautifulSoup, Tag

from minewiki.config import get_config
from minewiki.core.models import Block, ToolType
from minewiki.extraction.base import ExtractionError, MissingPageError, WikiPage, WikiPageFetcher
from minewiki.extraction.images import create_blank_png, download_image, save_png, texture_palette
from minewiki.extraction.items import extract_description
from minewiki.extraction.wiki.base import BaseWikiScraper
from minewiki.utils.logging import log_scrape_step

BLOCK_DATA_TITLE = "Java_Edition_data_values/Blocks"

# Blocks without a texture of their own; they share a transparent image
AIR_BLOCKS = ["Air", "Cave Air", "Void Air", "Moving Piston"]
AIR_IMAGE = "air"

# Marks the last cell of a row as the block's item form id
ITEM_FORM_COLOR = "#ccaaff"

GENERIC_DESCRIPTION = "MediaWiki host for official and independent wikis"

ITEM_NAME_OVERRIDES = {
    # item name differs from block name
    "Beetroots": "Beetroot Seeds",
    "Carrots": "Carrot",
    "Cave Vines": "Glow Berries",
    "Cocoa": "Cocoa Beans",
    "Lava": "Lava Bucket",
    "Melon Stem": "Melon Seeds",
    "Potatoes": "Potato",
    "Powder Snow": "Powder Snow Bucket",
    "Pumpkin Stem": "Pumpkin Seeds",
    "Redstone Wire": "Redstone Dust",
    "Sweet Berry Bush": "Sweet Berries",
    "Tripwire": "String",
    "Water": "Water Bucket",
    "Wheat Crops": "Wheat Seeds",
    # growth variants
    "Bamboo Shoot": "Bamboo",
    "Cave Vines Plant": "Sweet Berries",
    "Kelp Plant": "Kelp",
    "Twisting Vines Plant": "Twisting Vines",
    "Weeping Vines Plant": "Weeping Vines",
    "Chorus Plant": "Chorus Flower",
}
WALL_PLACEMENTS = ["Banner", "Head", "Torch", "Sign", "Fan", "Skull"]

ID_PREFIXES_SHARING_PAGE = ["exposed_", "oxidized_", "weathered_", "weeping_", "waxed_", "potted_"]

# (substring of the id, page title); checked in order
PAGE_BY_ID_SUBSTRING = [
    ("carpet", "Carpet"),
    ("shulker_box", "Shulker_Box"),
    ("concrete_powder", "Concrete_Powder"),
    ("concrete", "Concrete"),
    ("_bed", "Bed"),
    ("jack_o_lantern", "Jack_o%27Lantern"),
]

# (name substrings, attributes); a rule applies when any substring occurs in
# the block name and only fills attributes that are still undefined, so
# earlier rules win
BLOCK_ATTRIBUTE_RULES: list[tuple[list[str], dict[str, Any]]] = [
    (["Lava", "Water", "Powder Snow"], {"flammable": False, "tool": None}),
    (["Sweet Berry Bush"], {"flammable": True}),
    (["Sea Pickle"], {"luminance": 6}),
    (["Redstone Torch", "Redstone Wall Torch"], {"luminance": 7}),
    (["Redstone Ore"], {"luminance": 9}),
    (["Carrots", "Potatoes"], {"transparent": True, "luminance": 0, "flammable": True, "tool": None}),
    (["Melon"], {"tool": ToolType.AXE}),
    (["Magma Block"], {"flammable": False}),
    (["Iron "], {"tool": ToolType.PICKAXE}),
    (
        ["Enchanting Table", "Cauldron", "Red Mushroom", "Observer", "Blue Ice", " Head", "Skull", "Spawner", "Cake"],
        {"luminance": 0},
    ),
    (["Fletching Table"], {"flammable": False}),
    (["Dead Bush"], {"flammable": True}),
    (["Cobweb"], {"tool": ToolType.SHEARS}),
    (["Brown Mushroom"], {"luminance": 1}),
    (["Beehive", "Bee Nest"], {"flammable": True, "luminance": 0}),
    (["Furnace", "Smoker"], {"luminance": 13}),
    (["Soul Fire"], {"luminance": 10}),
    (["Torch"], {"luminance": 14}),
    (["Candle", "Cake with"], {"luminance": 3}),
    (["Fire", "Lantern", "Redstone Lamp", "Campfire", "Respawn Anchor"], {"luminance": 15}),
    (["Bedrock"], {"transparent": False, "flammable": False}),
    (["Weighted Pressure Plate"], {"tool": ToolType.PICKAXE}),
    (["Bamboo Shoot"], {"flammable": False}),
    (["Pumpkin Stem"], {"blast_resistance": 0}),
    (["Carpet"], {"flammable": True}),
    (
        [
            "Dandelion",
            "Poppy",
            "Blue Orchid",
            "Allium",
            "Azure Bluet",
            "Red Tulip",
            "Orange Tulip",
            "White Tulip",
            "Pink Tulip",
            "Oxeye Daisy",
            "Cornflower",
            "Lily of the Valley",
            "Wither Rose",
            "Sunflower",
            "Lilac",
            "Rose Bush",
            "Peony",
        ],
        {"flammable": True},
    ),
    (["Stairs", "Slab"], {"transparent": True}),
    (["Leaves", "Glow Lichen"], {"blast_resistance": 0.2, "transparent": True, "tool": ToolType.SHEARS}),
    ([" Wood", "Log"], {"blast_resistance": 2, "flammable": True}),
    (["Stem", "Hyphae"], {"blast_resistance": 2, "flammable": False}),
    (
        ["Oak", "Spruce", "Birch", "Jungle", "Acacia", "Crimson", "Warped"],
        {"blast_resistance": 3, "flammable": True, "tool": ToolType.AXE},
    ),
    (["Oak", "Spruce", "Birch", "Jungle", "Acacia"], {"flammable": True}),
    (["Crimson", "Warped"], {"flammable": False}),
    (
        [
            "Stone ",
            "Cobblestone",
            "Sandstone",
            "Diorite",
            "Andesite",
            "Granite",
            "Prismarine",
            "Brick",
            "Purpur",
            "Quartz",
            "Blackstone",
            "Deepslate",
        ],
        {"flammable": False, "tool": ToolType.PICKAXE},
    ),
    (["Quartz"], {"blast_resistance": 0.8}),
    (["Copper"], {"blast_resistance": 6, "tool": ToolType.PICKAXE}),
    (["Small Amethyst Bud"], {"luminance": 1}),
    (["Medium Amethyst Bud"], {"luminance": 2}),
    (["Large Amethyst Bud"], {"luminance": 4}),
    (["Amethyst Cluster"], {"luminance": 5}),
    (["Cave Vines"], {"luminance": 14}),
    (["Light"], {"luminance": 15}),
]


def item_name_for_block(name: str) -> str:
    """Name of the item that places the block ``name``."""
    item_name = ITEM_NAME_OVERRIDES.get(name, name)
    if any(name.endswith(f"Wall {placement}") for placement in WALL_PLACEMENTS):
        for placement in WALL_PLACEMENTS:
            item_name = item_name.replace(f"Wall {placement}", placement)
    return item_name


def block_page_title(namespaced_id: str) -> str:
    """Wiki page title describing the block with ``namespaced_id``."""
    for prefix in ID_PREFIXES_SHARING_PAGE:
        namespaced_id = namespaced_id.replace(prefix, "")

    if namespaced_id == "big_dripleaf_stem":
        return "Big_Dripleaf"
    for fragment, title in PAGE_BY_ID_SUBSTRING:
        if fragment in namespaced_id:
            return title
    return namespaced_id


def block_row_identity(row: Tag) -> tuple[str, str]:
    """(name, namespaced id) of a block data values row; the name is "" for header rows."""
    name_cell = row.select_one("td:nth-child(3)")
    if name_cell is None:
        return "", ""
    name = name_cell.get_text(strip=True)

    last = row.select_one("td:last-child")
    if last is not None and ITEM_FORM_COLOR in (last.get("style") or ""):
        return name, last.get_text(strip=True)
    code = row.select_one("code")
    return name, code.get_text(strip=True) if code else ""


def row_image_src(row: Tag) -> str | None:
    """Row thumbnail source rewritten to request the 200px rendition."""
    img = row.select_one("img")
    if img is None:
        return None
    src = BaseWikiScraper.image_src(img)
    if not src:
        return None
    src = re.sub(r"width-down.+", "width-down/200", src)
    return src.replace("30px", "200px")


def apply_attribute_rules(block: Block) -> None:
    for substrings, attributes in BLOCK_ATTRIBUTE_RULES:
        if any(part in block.name for part in substrings):
            block.apply_defaults(attributes)


def block_description(soup: BeautifulSoup) -> str:
    meta = soup.select_one('meta[name="description"]')
    content = (meta.get("content") or "").strip() if meta else ""
    if content and content != GENERIC_DESCRIPTION:
        return content
    return extract_description(soup)


def _infobox_cell(soup: BeautifulSoup, label: str) -> Tag | None:
    for row in soup.select(".infobox-rows tr"):
        header = row.select_one("th")
        if header is not None and label.lower() in header.get_text(strip=True).lower():
            return row.select_one("td")
    return None


def _yes_no(text: str) -> bool | None:
    if text.startswith("Yes"):
        return True
    if text.startswith("No"):
        return False
    return None


def parse_blast_resistance(soup: BeautifulSoup) -> float | None:
    cell = _infobox_cell(soup, "Blast resistance")
    if cell is None:
        return None
    match = re.search(r"\d[\d,]*(?:\.\d+)?", cell.get_text(" ", strip=True))
    if not match:
        return None
    return float(match.group(0).replace(",", ""))


_MISSING = object()


def parse_tool(soup: BeautifulSoup) -> Any:
    """The single harvesting tool, None when no tool is listed, or ``_MISSING`` when ambiguous."""
    cell = _infobox_cell(soup, "Tool")
    if cell is None:
        return _MISSING
    titles = [link.get("title") for link in cell.select("a[title]")]
    if not titles:
        return None
    known = {tool.value for tool in ToolType}
    if len(titles) == 1 and titles[0] in known:
        return ToolType(titles[0])
    return _MISSING


def parse_luminance(soup: BeautifulSoup) -> int | None:
    cell = _infobox_cell(soup, "Luminous")
    if cell is None:
        return None
    text = cell.get_text(" ", strip=True)
    if text.startswith("No"):
        return 0
    match = re.search(r"\d+", text)
    if match and 0 <= int(match.group(0)) <= 15:
        return int(match.group(0))
    return None


def parse_flag(soup: BeautifulSoup, label: str) -> bool | None:
    cell = _infobox_cell(soup, label)
    return _yes_no(cell.get_text(" ", strip=True)) if cell is not None else None


def apply_infobox_fallbacks(block: Block, soup: BeautifulSoup) -> None:
    """Fill attributes the rule table left undefined from the page infobox."""
    if not block.is_defined("tool"):
        tool = parse_tool(soup)
        if tool is not _MISSING:
            block.tool = tool
    if not block.is_defined("luminance"):
        luminance = parse_luminance(soup)
        if luminance is not None:
            block.luminance = luminance
    for field_name, label in (("transparent", "Transparent"), ("flammable", "Flammable")):
        if not block.is_defined(field_name):
            value = parse_flag(soup, label)
            if value is not None:
                setattr(block, field_name, value)


class BlockScraper(BaseWikiScraper):
    """Builds Block records from the block data values table and block pages."""

    def __init__(
        self,
        fetcher: WikiPageFetcher,
        client: httpx.AsyncClient | None = None,
        images_dir: Path | None = None,
        image_base_url: str | None = None,
        image_size: int | None = None,
    ):
        super().__init__(fetcher, client)
        config = get_config()
        self.images_dir = Path(images_dir or config.block_images_dir)
        self.image_base_url = (image_base_url or config.image_base_url).rstrip("/")
        self.image_size = image_size or config.block_image_size

    def image_url(self, image_name: str) -> str:
        return f"{self.image_base_url}/blocks/{image_name}.png"

    def ensure_air_image(self) -> Path:
        return create_blank_png(self.images_dir / f"{AIR_IMAGE}.png", self.image_size)

    async def load_data_page(self) -> WikiPage:
        return await self.fetcher.fetch(self.page_url(BLOCK_DATA_TITLE), wait_for="css:.stikitable")

    @staticmethod
    def block_rows(page: WikiPage) -> list[Tag]:
        return page.soup.select(".stikitable tbody tr")

    @log_scrape_step("scrape_block", collection="blocks")
    async def scrape_block(self, name: str, namespaced_id: str, row: Tag, page_title: str | None = None) -> Block:
        """Build the Block for a data values row.

        ``page_title`` defaults to the page mapped from ``namespaced_id``; the
        run passes the row's own id when the stored id had to be renamed.

        Raises:
            MissingPageError: When the block has no wiki article
            ExtractionError: When the image or its palette cannot be produced
        """
        src = None
        if name not in AIR_BLOCKS:
            src = row_image_src(row)
            if not src:
                raise ExtractionError(f"No image found for block: {name}")

        page = await self.fetcher.fetch(self.page_url(page_title or block_page_title(namespaced_id)))
        if page.is_missing:
            raise MissingPageError(f"No content found for block: {name}")
        soup = page.soup

        if src is None:
            image_name = AIR_IMAGE
            image_path = self.ensure_air_image()
        else:
            image_name = namespaced_id
            data = await download_image(self.http_client, self.absolute_url(src))
            image_path = save_png(data, self.images_dir / f"{image_name}.png", self.image_size)

        block = Block(
            name=name,
            namespaced_id=namespaced_id,
            description=block_description(soup),
            image=self.image_url(image_name),
        )
        item_name = item_name_for_block(name)
        block.item = item_name if item_name != name else None

        apply_attribute_rules(block)

        blast_resistance = parse_blast_resistance(soup)
        if blast_resistance is not None:
            block.blast_resistance = blast_resistance

        apply_infobox_fallbacks(block, soup)

        try:
            block.colors = texture_palette(image_path)
        except (OSError, ValueError) as e:
            if image_name != AIR_IMAGE:
                image_path.unlink(missing_ok=True)
            raise ExtractionError(f"Error when getting block colors for: {name}: {e}") from e

        return block
