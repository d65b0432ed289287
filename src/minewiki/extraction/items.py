# ABOUTME: Item extraction from the Java Edition data values tables and individual item pages
# ABOUTME: Holds the name, image, stack size and renewability heuristics plus the special multi-variant pages

import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import httpx
from bs4 import BeautifulSoup, Tag

from minewiki.config import get_config
from minewiki.core.models import Item
from minewiki.extraction.base import ExtractionError, MissingPageError, WikiPage, WikiPageFetcher
from minewiki.extraction.images import download_image, save_gif, save_png
from minewiki.extraction.wiki.base import BaseWikiScraper
from minewiki.utils.logging import log_scrape_step

DATA_VALUES_TITLE = "Java_Edition_data_values"
ITEMS_SECTION = "div[data-page='Java Edition data values/Items']"
BLOCKS_SECTION = "div[data-page='Java Edition data values/Blocks']"

# Expand both lazy-loaded tables, then wait until a known row of each is present
DATA_PAGE_JS = [
    f'document.querySelectorAll("{ITEMS_SECTION} .jslink, {BLOCKS_SECTION} .jslink").forEach((l) => l.click());'
]
DATA_PAGE_WAIT = (
    "js:() => document.querySelector(\"a[title='Spawn Egg']\") !== null"
    " && document.querySelector(\"a[href='/w/File:Acacia_Leaves.png']\") !== null"
)

# Handled by the special pages below, or not real inventory items
EXCLUDED_ITEMS = [
    "Lingering Potion",
    "Potion",
    "Splash Potion",
    "Tipped Arrow",
    "Music Disc",
    "Chorus Plant",
    "Ominous Shield",
]

NAME_OVERRIDES = {
    "Pufferfish (item)": "Pufferfish",
    "Light Block": "Light",
}

PAGE_URL_OVERRIDES = {
    "Tropical Fish": "Tropical_Fish",
}

STACK_SIZE_OVERRIDES = {
    "Pufferfish": 1,
}


# --------------------------------------------------------------------------
# Data values rows
# --------------------------------------------------------------------------


def item_name_from_row(row: Tag) -> str:
    """Display name for a data values row, or "" when the row has no item form."""
    if row.select_one("td:last-child[style]") is not None:
        return ""
    link = row.select_one("a")
    if link is None:
        return ""
    name = link.get_text(strip=True)

    if name.startswith("Banner Pattern"):
        # "Banner Pattern (Flower Charge)" -> "Flower Charge Banner Pattern"
        cell = row.select_one("td")
        parts = cell.get_text(" ", strip=True).split(" (") if cell else []
        if len(parts) > 1:
            return f"{parts[1].replace(')', '').strip()} Banner Pattern"
        return name

    return NAME_OVERRIDES.get(name, name)


def namespaced_id_from_row(row: Tag) -> str:
    code = row.select_one("code")
    return code.get_text(strip=True) if code else ""


def should_process_item(name: str, existing: set[str]) -> bool:
    return bool(name) and name not in existing and name not in EXCLUDED_ITEMS


# --------------------------------------------------------------------------
# Item page fields
# --------------------------------------------------------------------------


def _banner_or_template_variant(name: str) -> str | None:
    for prefix in ("Banner Pattern (", "Smithing Template (", "Music Disc ("):
        if name.startswith(prefix):
            return name.replace(prefix, "").replace(")", "")
    if name.endswith(" Banner Pattern"):
        return name.removesuffix(" Banner Pattern")
    if "Music Box version" in name:
        return "Creator"
    if "Boat with Chest" in name:
        return name.split(" ")[0]
    return None


def find_item_image_src(soup: BeautifulSoup, name: str) -> str | None:
    """Pick the infobox inventory image that depicts ``name``.

    A lone image wins outright; otherwise the first image whose alt text
    contains the name, then one containing the variant part of the name.
    """
    images = soup.select(".infobox-imagearea .invslot-item-image img")

    def alt_contains(text: str) -> Tag | None:
        needle = text.lower()
        return next((img for img in images if needle in (img.get("alt") or "").lower()), None)

    if len(images) == 1:
        found = images[0]
    else:
        found = alt_contains(name)

    if found is None:
        variant = _banner_or_template_variant(name)
        if variant:
            found = alt_contains(variant)

    if found is None:
        return None
    return BaseWikiScraper.image_src(found)


def find_gif_src(soup: BeautifulSoup, name: str) -> str | None:
    """Source of the animated inventory image whose alt text is exactly ``name``."""
    for img in soup.select(".invslot-item img"):
        if img.get("alt") == name:
            return BaseWikiScraper.image_src(img)
    return None


def _infobox_row(soup: BeautifulSoup, label: str, header_only: bool = True) -> Tag | None:
    for row in soup.select(".infobox-rows tr"):
        if header_only:
            header = row.select_one("th")
            if header is not None and label in header.get_text():
                return row
        elif label in row.get_text():
            return row
    return None


def stack_size_from_text(text: str) -> int | None:
    """Interpret the infobox "Stackable" cell text."""
    text = text.strip()
    if text == "No" or "JE: No" in text:
        return 1
    if text.startswith("Yes,"):
        match = re.search(r"\d+", text)
        return int(match.group(0)) if match else 64
    match = re.search(r"\((\d+)\)", text)
    if match:
        return int(match.group(1))
    match = re.match(r"\d+", text)
    if match:
        return int(match.group(0))
    return None


def parse_stack_size(soup: BeautifulSoup, name: str) -> int | None:
    if name in STACK_SIZE_OVERRIDES:
        return STACK_SIZE_OVERRIDES[name]
    row = _infobox_row(soup, "Stackable")
    if row is None:
        return None
    cell = row.select_one("td")
    return stack_size_from_text(cell.get_text() if cell else "")


RENEWABLE_TRUE = [
    "Arrow",
    "Spectral Arrow",
    "Bundle",
    "Clay",
    "Skeleton Skull",
    "Wither Skeleton Skull",
    "Zombie Head",
    "Creeper Head",
    "Grass",
    "Fern",
    "Leather Cap",
    "Leather Tunic",
    "Leather Pants",
    "Turtle Shell",
    "Firework Star",
    "Firework Rocket",
    "Shulker Shell",
    "Clay Ball",
    "Enchanted Book",
    "Music Disc (13)",
    "Music Disc (Cat)",
    "Music Disc (Blocks)",
    "Music Disc (Chirp)",
    "Music Disc (Far)",
    "Music Disc (Mall)",
    "Music Disc (Mellohi)",
    "Music Disc (Stal)",
    "Music Disc (Strad)",
    "Music Disc (Ward)",
    "Music Disc (11)",
    "Music Disc (Wait)",
]
RENEWABLE_FALSE = ["Dirt Path", "Dragon Head", "Player Head", "Tall Grass", "Large Fern", "Pufferfish"]
RENEWABLE_SUFFIX_TRUE = ["Shulker Box"]
RENEWABLE_SUFFIX_FALSE = ["Nylium"]
RENEWABLE_CONTAINS_FALSE = ["Infested", "Smithing Template", "Music Disc", "Banner Pattern"]

_EQUIPMENT_SUFFIXES = ["Pickaxe", "Hoe", "Axe", "Shovel", "Sword", "Helmet", "Chestplate", "Leggings", "Boots"]

# (applies to name, renewable for name); the first matching pattern decides
RENEWABLE_PATTERNS: list[tuple[Callable[[str], bool], Callable[[str], bool]]] = [
    (
        lambda name: any(name.endswith(ending) for ending in ("Slab", "Stairs", "Wall")),
        lambda name: "Deepslate" not in name,
    ),
    (
        lambda name: "Banner Pattern" in name,
        lambda name: not any(name.endswith(pattern) for pattern in ("(Snout)", "(Thing)")),
    ),
    (
        lambda name: any(name.endswith(ending) for ending in _EQUIPMENT_SUFFIXES),
        lambda name: not name.startswith("Netherite"),
    ),
    (lambda name: name.endswith("Horse Armor"), lambda name: name.startswith("Leather")),
    (lambda name: name.endswith("Terracotta"), lambda name: name == "Terracotta"),
]


def renewable_from_rules(name: str) -> bool | None:
    """Renewability decided by name alone, or None when the page must be consulted."""
    if name in RENEWABLE_TRUE:
        return True
    if name in RENEWABLE_FALSE:
        return False
    if any(name.endswith(ending) for ending in RENEWABLE_SUFFIX_TRUE):
        return True
    if any(name.endswith(ending) for ending in RENEWABLE_SUFFIX_FALSE):
        return False
    if any(part in name for part in RENEWABLE_CONTAINS_FALSE):
        return False

    for applies, value in RENEWABLE_PATTERNS:
        if applies(name):
            return value(name)
    return None


def renewable_from_page(soup: BeautifulSoup) -> bool | None:
    row = _infobox_row(soup, "Renewable", header_only=False)
    if row is None:
        return None
    cell = row.select_one("p") or row.select_one("td")
    text = cell.get_text(strip=True) if cell else ""
    if text.startswith("Yes"):
        return True
    if text.startswith("No"):
        return False
    return None


def is_renewable(name: str, soup: BeautifulSoup | None = None) -> bool | None:
    ruled = renewable_from_rules(name)
    if ruled is not None or soup is None:
        return ruled
    return renewable_from_page(soup)


def extract_description(soup: BeautifulSoup) -> str:
    """First lead paragraph with footnote markers removed."""
    paragraph = soup.select_one(".mw-parser-output > p")
    if paragraph is None:
        return ""
    return re.sub(r"\[a\]|\n$", "", paragraph.get_text()).strip()


# --------------------------------------------------------------------------
# Special multi-variant pages
# --------------------------------------------------------------------------


def _not_uncraftable_or_luck(title: str) -> bool:
    return not any(title.endswith(kind) for kind in ("Uncraftable", "Luck"))


@dataclass(frozen=True)
class SpecialItemPage:
    """A wiki page whose infobox lists several item variants."""

    page: str
    namespaced_id: str | None
    stack_size: int
    renewable: Callable[[str], bool]
    keep: Callable[[str, int], bool]


SPECIAL_ITEM_PAGES = [
    SpecialItemPage(
        page="Tipped_Arrow",
        namespaced_id="tipped_arrow",
        stack_size=64,
        renewable=_not_uncraftable_or_luck,
        keep=lambda title, _i: title not in ("Arrow", "Spectral Arrow") and "Decay" not in title,
    ),
    SpecialItemPage("Bundle", "bundle", 1, lambda _t: True, lambda _t, _i: True),
    SpecialItemPage("Shield", "shield", 1, lambda _t: True, lambda _t, _i: True),
    SpecialItemPage("Potion", "potion", 1, _not_uncraftable_or_luck, lambda title, _i: "Decay" not in title),
    SpecialItemPage(
        "Splash_Potion", "splash_potion", 1, _not_uncraftable_or_luck, lambda title, _i: "Decay" not in title
    ),
    SpecialItemPage(
        "Lingering_Potion", "lingering_potion", 1, _not_uncraftable_or_luck, lambda title, _i: "Decay" not in title
    ),
    SpecialItemPage("Map", "filled_map", 64, lambda _t: True, lambda _t, i: i < 2),
    SpecialItemPage(
        "Explorer_Map", "filled_map", 64, lambda title: title != "Buried Treasure Map", lambda _t, i: i < 3
    ),
    SpecialItemPage(
        page="Music_Disc",
        namespaced_id=None,
        stack_size=1,
        renewable=lambda title: not any(disc in title for disc in ("otherside", "Pigstep")),
        keep=lambda _t, _i: True,
    ),
]


def special_item_variants(soup: BeautifulSoup, keep: Callable[[str, int], bool]) -> list[tuple[str, str | None]]:
    """(title, image src) for every infobox inventory slot accepted by ``keep``.

    ``keep`` receives the slot title and its position among all slots.
    """
    variants = []
    for index, slot in enumerate(soup.select(".infobox-imagearea .invslot-item")):
        name = slot.get("data-minetip-title")
        titled_span = slot.select_one("span[title]")
        if titled_span is not None:
            name = titled_span.get("title")
        titled_link = slot.select_one("a[title]")
        if titled_link is not None:
            name = titled_link.get("title")

        if name and name.endswith("Music Disc"):
            name = (slot.get("data-minetip-text") or "").replace("&7", "")
        if not name:
            name = "NO SPECIAL NAME"

        img = slot.select_one("img")
        src = BaseWikiScraper.image_src(img) if img is not None else None

        if keep(name, index):
            variants.append((name, src))
    return variants


def music_disc_identity(title: str) -> tuple[str, str]:
    """("C418 - cat") -> ("Music Disc (C418 - cat)", "music_disc_cat")."""
    disc_name = title.split(" ")[-1].lower().replace(")", "") or "unknown"
    return f"Music Disc ({title})", f"music_disc_{disc_name}"


# --------------------------------------------------------------------------
# Scraper
# --------------------------------------------------------------------------


class ItemScraper(BaseWikiScraper):
    """Builds Item records from the data values page and per-item wiki pages."""

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
        self.images_dir = Path(images_dir or config.item_images_dir)
        self.image_base_url = (image_base_url or config.image_base_url).rstrip("/")
        self.image_size = image_size or config.item_image_size

    def image_url(self, namespaced_id: str, extension: str = "png") -> str:
        return f"{self.image_base_url}/items/{namespaced_id}.{extension}"

    async def load_data_page(self) -> WikiPage:
        self.logger.info("Opening data page", url=self.page_url(DATA_VALUES_TITLE))
        return await self.fetcher.fetch(self.page_url(DATA_VALUES_TITLE), js_code=DATA_PAGE_JS, wait_for=DATA_PAGE_WAIT)

    @staticmethod
    def item_rows(page: WikiPage) -> list[Tag]:
        return page.soup.select(f"{ITEMS_SECTION} .stikitable tbody tr, {BLOCKS_SECTION} .stikitable tbody tr")

    def item_page_url(self, row: Tag, name: str) -> str:
        if name in PAGE_URL_OVERRIDES:
            return self.page_url(PAGE_URL_OVERRIDES[name])
        link = row.select_one("a[href]")
        if link is None:
            raise ExtractionError(f"No page link for item: {name}")
        return self.absolute_url(link["href"].strip())

    async def _save_image(self, src: str, file_stem: str) -> str:
        """Download an image and return its public URL; GIFs are kept, everything else becomes a PNG."""
        url = self.absolute_url(src)
        data = await download_image(self.http_client, url)
        if ".gif" in url:
            save_gif(data, self.images_dir / f"{file_stem}.gif")
            return self.image_url(file_stem, "gif")
        save_png(data, self.images_dir / f"{file_stem}.png", self.image_size)
        return self.image_url(file_stem, "png")

    @log_scrape_step("scrape_item", collection="items")
    async def scrape_item(self, name: str, namespaced_id: str, url: str) -> Item:
        """Build the Item for ``name`` from its wiki page.

        Raises:
            MissingPageError: When the wiki has no article at ``url``
            ExtractionError: When no image, stack size or renewability can be determined
        """
        page = await self.fetcher.fetch(url)
        if page.is_missing:
            raise MissingPageError(f"No wiki article for item: {name}")
        soup = page.soup

        png_src = find_item_image_src(soup, name)
        gif_src = None
        if not png_src:
            self.logger.debug("Image URL not found, looking for GIF", item=name)
            gif_src = find_gif_src(soup, name)
            if not gif_src:
                raise ExtractionError(f"Image details and GIF URL not found for item: {name}")

        stack_size = parse_stack_size(soup, name)
        if stack_size is None:
            raise ExtractionError(f"Error getting stack size for item: {name}")

        renewable = is_renewable(name, soup)
        if renewable is None:
            raise ExtractionError(f"Error getting renewable status for item: {name}")

        # Only records that passed every page check leave an image in public/
        if png_src:
            data = await download_image(self.http_client, self.absolute_url(png_src))
            save_png(data, self.images_dir / f"{namespaced_id}.png", self.image_size)
            image = self.image_url(namespaced_id, "png")
        else:
            data = await download_image(self.http_client, self.absolute_url(gif_src))
            save_gif(data, self.images_dir / f"{namespaced_id}.gif")
            image = self.image_url(namespaced_id, "gif")

        return Item(
            name=name,
            namespaced_id=namespaced_id,
            description=extract_description(soup),
            image=image,
            stack_size=stack_size,
            renewable=renewable,
        )

    @log_scrape_step("scrape_special_page", collection="items")
    async def scrape_special_page(
        self, special: SpecialItemPage, existing_names: set[str], taken_ids: set[str]
    ) -> list[Item]:
        """Items for every variant on a special page.

        Variants whose name is already collected are skipped. ``taken_ids`` is
        updated in place; a variant whose default id is taken gets the slug of
        its display name instead.
        """
        page = await self.fetcher.fetch(self.page_url(special.page), wait_for="css:.invslot-item")
        description = extract_description(page.soup)

        items = []
        for title, src in special_item_variants(page.soup, special.keep):
            name = title
            namespaced_id = special.namespaced_id
            if special.page == "Music_Disc":
                name, namespaced_id = music_disc_identity(title)

            if name in existing_names:
                continue
            if not src:
                self.logger.warning("Special item has no image", item=name, page=special.page)
                continue

            if not namespaced_id or namespaced_id in taken_ids:
                namespaced_id = self.slugify(name)
            if namespaced_id in taken_ids:
                self.logger.warning("Duplicate special item id", item=name, namespaced_id=namespaced_id)
                continue

            image = await self._save_image(src, namespaced_id)
            items.append(
                Item(
                    name=name,
                    namespaced_id=namespaced_id,
                    description=description,
                    image=image,
                    stack_size=special.stack_size,
                    renewable=special.renewable(name),
                )
            )
            taken_ids.add(namespaced_id)
            existing_names.add(name)
            self.logger.info("Added special item", item=name, namespaced_id=namespaced_id)

        return items
