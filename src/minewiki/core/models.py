# ABOUTME: Domain models for the static API collections (items, blocks, crafting recipes)
# ABOUTME: Pydantic models with camelCase JSON aliases and the range/shape invariants of the output

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ToolType(str, Enum):
    """Tools that can be required to harvest a block."""

    PICKAXE = "Pickaxe"
    AXE = "Axe"
    SHOVEL = "Shovel"
    HOE = "Hoe"
    SWORD = "Sword"
    SHEARS = "Shears"


class ApiModel(BaseModel):
    """Base model for records published through the static API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        use_enum_values=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Item(ApiModel):
    """An inventory item as listed by the wiki."""

    name: str = Field(description="Display name, e.g. 'Oak Planks'")
    namespaced_id: str = Field(description="Game identifier, e.g. 'oak_planks'")
    description: str = Field(default="", description="First paragraph of the item's wiki page")
    image: str = Field(description="Public URL of the item icon")
    stack_size: int = Field(ge=1, le=64, description="Maximum stack size")
    renewable: bool = Field(description="Whether the item can be obtained indefinitely")


class BlockColor(ApiModel):
    """One bin of a block texture's colour palette."""

    color: tuple[
        Annotated[int, Field(ge=0, le=255)],
        Annotated[int, Field(ge=0, le=255)],
        Annotated[int, Field(ge=0, le=255)],
    ]
    amount: float = Field(ge=0.0, le=1.0, description="Fraction of opaque pixels in this bin")


class Block(ApiModel):
    """A placeable block.

    Optional attributes distinguish "explicitly null" from "unknown": an
    attribute that was never assigned is left out of the JSON output
    entirely, one assigned ``None`` is written as ``null``. Use
    :meth:`is_defined` to test which case applies.
    """

    name: str
    namespaced_id: str
    description: str = ""
    image: str
    item: str | None = Field(default=None, description="Item that places this block, when named differently")
    tool: ToolType | None = None
    flammable: bool | None = None
    transparent: bool | None = None
    luminance: int | None = Field(default=None, ge=0, le=15)
    blast_resistance: float | None = Field(default=None, ge=0)
    colors: list[BlockColor] | None = None

    def is_defined(self, field_name: str) -> bool:
        return field_name in self.model_fields_set

    def apply_defaults(self, attributes: dict[str, Any]) -> None:
        """Assign each attribute that is still undefined on this block."""
        for field_name, value in attributes.items():
            if not self.is_defined(field_name):
                setattr(self, field_name, value)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


Ingredient = Annotated[str, Field(min_length=1)]
RecipeSlot = Ingredient | Annotated[list[Ingredient], Field(min_length=1)] | None


class CraftingRecipe(ApiModel):
    """A 3x3 crafting table recipe.

    ``recipe`` always has nine slots in row-major order. A slot is empty
    (``None``), a single ingredient name, or a list of interchangeable
    ingredient names.
    """

    item: str
    quantity: int = Field(default=1, ge=1)
    recipe: list[RecipeSlot] = Field(min_length=9, max_length=9)
    shapeless: bool = False


class ScrapeFailure(BaseModel):
    """A record that could not be scraped during a batch run."""

    name: str
    stage: str
    error: str
    error_type: str

    @classmethod
    def from_exception(cls, name: str, stage: str, exc: BaseException) -> "ScrapeFailure":
        return cls(name=name, stage=stage, error=str(exc) or repr(exc), error_type=type(exc).__name__)


class RunSummary(BaseModel):
    """Outcome counters for one batch command."""

    collection: str
    total: int = 0
    added: int = 0
    skipped: int = 0
    failures: list[ScrapeFailure] = Field(default_factory=list)
    not_found: list[str] = Field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)
