# ABOUTME: Invariant checks over the items, blocks and recipes collections
# ABOUTME: Used by the validate command and before building the static API

from collections import Counter
from collections.abc import Iterable
from pathlib import Path

import pydantic
from pydantic import BaseModel, Field

from minewiki.core.models import Block, CraftingRecipe, Item
from minewiki.persistence.store import JsonCollection
from minewiki.utils.logging import get_logger

logger = get_logger(__name__)


class ValidationError(Exception):
    """Raised when one or more collections break their invariants."""

    def __init__(self, reports: list["ValidationReport"]):
        self.reports = reports
        failing = [report for report in reports if not report.ok]
        details = "; ".join(f"{report.collection}: {len(report.issues)} issue(s)" for report in failing)
        super().__init__(f"Collection validation failed ({details})")


class ValidationReport(BaseModel):
    collection: str
    count: int = 0
    issues: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


def _duplicates(values: Iterable[str]) -> list[str]:
    return sorted(value for value, seen in Counter(values).items() if seen > 1)


def validate_items(items: list[Item]) -> ValidationReport:
    report = ValidationReport(collection="items", count=len(items))
    for namespaced_id in _duplicates(item.namespaced_id for item in items):
        report.issues.append(f"Duplicate namespacedId: {namespaced_id}")
    for item in items:
        if not 1 <= item.stack_size <= 64:
            report.issues.append(f"{item.name}: stackSize {item.stack_size} outside 1-64")
        if not item.namespaced_id:
            report.issues.append(f"{item.name}: empty namespacedId")
    return report


def validate_blocks(blocks: list[Block]) -> ValidationReport:
    report = ValidationReport(collection="blocks", count=len(blocks))
    for namespaced_id in _duplicates(block.namespaced_id for block in blocks):
        report.issues.append(f"Duplicate namespacedId: {namespaced_id}")
    for block in blocks:
        if block.luminance is not None and not 0 <= block.luminance <= 15:
            report.issues.append(f"{block.name}: luminance {block.luminance} outside 0-15")
    return report


def slot_issue(slot: object) -> str | None:
    """Why ``slot`` is not a valid grid slot, or None when it is."""
    if slot is None:
        return None
    if isinstance(slot, str):
        return None if slot else "empty ingredient name"
    if isinstance(slot, list):
        if not slot:
            return "empty alternative list"
        if not all(isinstance(name, str) and name for name in slot):
            return "alternative list holds a non-ingredient"
        return None
    return f"unexpected slot type {type(slot).__name__}"


def validate_recipes(recipes: list[CraftingRecipe]) -> ValidationReport:
    report = ValidationReport(collection="recipes", count=len(recipes))
    for recipe in recipes:
        if len(recipe.recipe) != 9:
            report.issues.append(f"{recipe.item}: grid has {len(recipe.recipe)} slots")
            continue
        for index, slot in enumerate(recipe.recipe):
            issue = slot_issue(slot)
            if issue:
                report.issues.append(f"{recipe.item}: slot {index} {issue}")
        if recipe.quantity < 1:
            report.issues.append(f"{recipe.item}: quantity {recipe.quantity}")
    return report


def _load(path: Path, model: type, collection: str) -> tuple[list, ValidationReport | None]:
    if not path.exists():
        return [], ValidationReport(collection=collection, issues=[f"Missing file: {path}"])
    try:
        return JsonCollection(path, model).load().records, None
    except pydantic.ValidationError as e:
        issues = [f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()]
        return [], ValidationReport(collection=collection, issues=issues)


def validate_files(items_path: Path, blocks_path: Path, recipes_path: Path) -> list[ValidationReport]:
    """Load the three collection files and check every invariant."""
    reports = []
    for path, model, collection, check in (
        (items_path, Item, "items", validate_items),
        (blocks_path, Block, "blocks", validate_blocks),
        (recipes_path, CraftingRecipe, "recipes", validate_recipes),
    ):
        records, load_failure = _load(Path(path), model, collection)
        report = load_failure or check(records)
        if report.ok:
            logger.info("Collection valid", collection=collection, count=report.count)
        else:
            logger.warning("Collection invalid", collection=collection, issues=len(report.issues))
        reports.append(report)
    return reports


def ensure_valid(reports: list[ValidationReport]) -> None:
    if any(not report.ok for report in reports):
        raise ValidationError(reports)
