# ABOUTME: Crafting recipe extraction from the wiki Crafting page
# ABOUTME: Turns recipe table rows into 9-slot grids and adds the generated recipe families the tables omit

from collections.abc import Iterable, Sequence
from itertools import product

from bs4 import Tag

from minewiki.core.models import CraftingRecipe, RecipeSlot, ScrapeFailure
from minewiki.extraction.base import ExtractionError, WikiPage
from minewiki.extraction.wiki.base import BaseWikiScraper

CRAFTING_TITLE = "Crafting"

CRAFTING_PAGE_JS = [
    "document.querySelectorAll('.load-page[data-page] .jslink').forEach((button) => button.click());"
]
RECIPE_TABLE_COUNT = 11
CRAFTING_PAGE_WAIT = (
    f"js:() => document.querySelectorAll('.load-page[data-page] table').length >= {RECIPE_TABLE_COUNT}"
)

EXCLUDED_DETAILS = ["Bedrock Edition", "Minecraft Education", "Minecraft Earth", "upcoming", "Calcium"]
# Generated below, or not in Java Edition
EXCLUDED_KEYWORDS = [
    "Glow Stick",
    "Any Planks +",
    "Firework Star",
    "Firework Rocket",
    "Tipped Arrow",
    "Written Book",
    "Resin",
]

WOOD_TYPES = [
    "Oak Planks",
    "Spruce Planks",
    "Birch Planks",
    "Jungle Planks",
    "Acacia Planks",
    "Dark Oak Planks",
    "Crimson Planks",
    "Warped Planks",
]

COLORS = [
    "White",
    "Orange",
    "Magenta",
    "Light Blue",
    "Yellow",
    "Lime",
    "Pink",
    "Gray",
    "Light Gray",
    "Cyan",
    "Purple",
    "Blue",
    "Brown",
    "Green",
    "Red",
    "Black",
]

TOOL_MATERIALS: list[tuple[str, str | list[str]]] = [
    ("Wooden", WOOD_TYPES),
    ("Stone", "Cobblestone"),
    ("Iron", "Iron Ingot"),
    ("Golden", "Gold Ingot"),
    ("Diamond", "Diamond"),
]

ARROW_EFFECTS = [
    "Splashing",
    "Regeneration",
    "Swiftness",
    "Fire Resistance",
    "Poison",
    "Healing",
    "Night Vision",
    "Weakness",
    "Strength",
    "Slowness",
    "Leaping",
    "Harming",
    "Water Breathing",
    "Invisibility",
    "Luck",
    "the Turtle Master",
    "Slow Falling",
]

FIREWORK_SHAPES = [
    "Skeleton Skull",
    "Wither Skeleton Skull",
    "Zombie Head",
    "Player Head",
    "Creeper Head",
    "Dragon Head",
    "Gold Nugget",
    "Feather",
    "Fire Charge",
]


# --------------------------------------------------------------------------
# Table rows
# --------------------------------------------------------------------------


def should_keep_row(row: Tag) -> bool:
    """Whether a Crafting table row holds a Java Edition recipe parsed from the page."""
    details = row.select_one("td:nth-child(4)")
    if details is None:
        return False

    detail_text = details.get_text()
    if any(detail in detail_text for detail in EXCLUDED_DETAILS):
        return False

    row_text = row.get_text()
    if any(keyword in row_text for keyword in EXCLUDED_KEYWORDS) or "Any Planks or" in row_text:
        return False
    if row.select_one('a[title="Planks"]') is not None:
        return False

    first_link = row.select_one("a[title]")
    if first_link is not None and first_link.get("title") in EXCLUDED_KEYWORDS:
        return False

    return bool(row.select(".invslot-large .invslot-item span"))


def _link_title(slot: Tag) -> str | None:
    link = slot.select_one("a[title]")
    return link.get("title") if link is not None else None


def _variant_title(slot: Tag) -> str:
    title = slot.get("data-minetip-title") or _link_title(slot)
    if not title:
        raise ExtractionError("Recipe slot variant has no title")
    return title


def output_name(slot: Tag) -> str:
    tip = slot.get("data-minetip-title")
    if tip and not tip.startswith("&"):
        return tip
    title = _link_title(slot)
    if not title:
        raise ExtractionError("Recipe output has no name")
    return title


def output_quantity(slot: Tag) -> int:
    stack = slot.select_one(".invslot-stacksize")
    text = stack.get_text(strip=True) if stack is not None else ""
    return int(text) if text.isdigit() and int(text) > 0 else 1


def _slot_value(tile: Tag, output_index: int, output_count: int) -> RecipeSlot:
    variants = tile.select(".invslot-item")
    if not variants:
        return None
    if len(variants) == 1:
        return _link_title(variants[0]) or _variant_title(variants[0])
    if len(variants) == output_count:
        # Animated slot cycling in step with the outputs
        variant = variants[output_index]
        if not variant.contents:
            return None
        return _variant_title(variant)
    return [_variant_title(variant) for variant in variants]


def recipes_from_row(row: Tag) -> list[CraftingRecipe]:
    """One recipe per output variant of a recipe table row.

    Raises:
        ExtractionError: When the input grid is not 3x3 or a slot cannot be named
    """
    outputs = row.select(".mcui-output .invslot-item")
    tiles = row.select(".mcui-input .invslot")
    if len(tiles) != 9:
        raise ExtractionError(f"Recipe does not have 9 tiles (found {len(tiles)})")
    shapeless = row.select_one(".mcui-shapeless") is not None

    recipes = []
    for index, output in enumerate(outputs):
        recipes.append(
            CraftingRecipe(
                item=output_name(output),
                quantity=output_quantity(output),
                recipe=[_slot_value(tile, index, len(outputs)) for tile in tiles],
                shapeless=shapeless,
            )
        )
    return recipes


def describe_row(row: Tag) -> str:
    output = row.select_one(".mcui-output .invslot-item")
    if output is not None:
        try:
            return output_name(output)
        except ExtractionError:
            pass
    return _link_title(row) or row.get_text(" ", strip=True)[:60]


# --------------------------------------------------------------------------
# Generated families
# --------------------------------------------------------------------------


def _grid(ingredients: Sequence[RecipeSlot], start: int = 0) -> list[RecipeSlot]:
    """Place ``ingredients`` in consecutive slots from ``start`` on an otherwise empty grid."""
    grid: list[RecipeSlot] = [None] * 9
    for offset, ingredient in enumerate(ingredients):
        grid[start + offset] = ingredient
    return grid


def bed_recipes(colors: Iterable[str] = COLORS, wood_types: list[str] = WOOD_TYPES) -> list[CraftingRecipe]:
    return [
        CraftingRecipe(
            item=f"{color} Bed",
            recipe=_grid([f"{color} Wool"] * 3 + [wood_types] * 3, start=3),
        )
        for color in colors
    ]


def shulker_box_recipes(colors: list[str] = COLORS) -> list[CraftingRecipe]:
    boxes = ["Shulker Box"] + [f"{color} Shulker Box" for color in colors]
    return [
        CraftingRecipe(item=f"{color} Shulker Box", recipe=_grid([boxes, f"{color} Dye"], start=3), shapeless=True)
        for color in colors
    ]


def tool_recipes(materials: list[tuple[str, str | list[str]]] = TOOL_MATERIALS) -> list[CraftingRecipe]:
    recipes = []
    for material_name, m in materials:
        layouts = {
            "Pickaxe": [m, m, m, None, "Stick", None, None, "Stick", None],
            "Sword": [None, m, None, None, m, None, None, "Stick", None],
            "Axe": [m, m, None, m, "Stick", None, None, "Stick", None],
            "Shovel": [None, m, None, None, "Stick", None, None, "Stick", None],
            "Hoe": [m, m, None, None, "Stick", None, None, "Stick", None],
        }
        for tool, layout in layouts.items():
            recipes.append(CraftingRecipe(item=f"{material_name} {tool}", recipe=layout))
    return recipes


def firework_recipes(colors: list[str] = COLORS) -> list[CraftingRecipe]:
    """Firework stars and rockets, one recipe per combination of optional ingredients."""
    dyes = [f"{color} Dye" for color in colors]
    recipes = []

    # Star: gunpowder and a dye, each of shape, trail and twinkle optional
    for shape, trail, twinkle in product([False, True], repeat=3):
        ingredients: list[RecipeSlot] = ["Gunpowder", dyes]
        if shape:
            ingredients.append(FIREWORK_SHAPES)
        if trail:
            ingredients.append("Diamond")
        if twinkle:
            ingredients.append("Glowstone Dust")
        recipes.append(CraftingRecipe(item="Firework Star", recipe=_grid(ingredients), shapeless=True))

    # Fade colour
    recipes.append(CraftingRecipe(item="Firework Star", recipe=_grid(["Firework Star", dyes], start=3), shapeless=True))

    for gunpowder in range(1, 4):
        recipes.append(
            CraftingRecipe(
                item="Firework Rocket",
                quantity=3,
                recipe=_grid(["Paper"] + ["Gunpowder"] * gunpowder, start=3),
                shapeless=True,
            )
        )
        recipes.append(
            CraftingRecipe(
                item="Firework Rocket",
                quantity=3,
                recipe=_grid(["Firework Star", "Paper"] + ["Gunpowder"] * gunpowder, start=3),
                shapeless=True,
            )
        )
    return recipes


def tipped_arrow_recipes(effects: list[str] = ARROW_EFFECTS) -> list[CraftingRecipe]:
    recipes = []
    for effect in effects:
        potion = "Lingering Water Bottle" if effect == "Splashing" else f"Lingering Potion of {effect}"
        recipes.append(
            CraftingRecipe(
                item=f"Arrow of {effect}",
                quantity=8,
                recipe=["Arrow"] * 4 + [potion] + ["Arrow"] * 4,
            )
        )
    return recipes


def written_book_recipes() -> list[CraftingRecipe]:
    return [
        CraftingRecipe(
            item="Written Book",
            quantity=copies,
            recipe=["Written Book"] + ["Book and Quill"] * copies + [None] * (8 - copies),
            shapeless=True,
        )
        for copies in range(1, 9)
    ]


def generated_recipes() -> list[CraftingRecipe]:
    """Recipe families the Crafting tables leave out or encode too loosely to parse."""
    return [
        *bed_recipes(),
        *shulker_box_recipes(),
        *tool_recipes(),
        *firework_recipes(),
        *tipped_arrow_recipes(),
        *written_book_recipes(),
    ]


def unknown_outputs(recipes: Iterable[CraftingRecipe], item_names: set[str]) -> list[str]:
    """Recipe outputs that have no record in the items collection."""
    return sorted({recipe.item for recipe in recipes if recipe.item not in item_names})


# --------------------------------------------------------------------------
# Scraper
# --------------------------------------------------------------------------


class RecipeScraper(BaseWikiScraper):
    """Reads every crafting recipe table from the Crafting page."""

    async def load_crafting_page(self) -> WikiPage:
        url = self.page_url(CRAFTING_TITLE)
        self.logger.info("Loading crafting recipes", url=url)
        return await self.fetcher.fetch(url, js_code=CRAFTING_PAGE_JS, wait_for=CRAFTING_PAGE_WAIT)

    @staticmethod
    def recipe_rows(page: WikiPage) -> list[Tag]:
        return page.soup.select(".load-page[data-page] table tbody tr")

    def parse_rows(self, rows: Iterable[Tag]) -> tuple[list[CraftingRecipe], list[ScrapeFailure]]:
        """Recipes from every kept row; a row that cannot be parsed becomes a failure."""
        recipes: list[CraftingRecipe] = []
        failures: list[ScrapeFailure] = []
        for row in rows:
            if not should_keep_row(row):
                continue
            try:
                recipes.extend(recipes_from_row(row))
            except (ExtractionError, ValueError) as e:
                name = describe_row(row)
                self.logger.error("Error parsing recipe row", record=name, error=str(e))
                failures.append(ScrapeFailure.from_exception(name, "recipe", e))
        return recipes, failures
