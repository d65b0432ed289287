# ABOUTME: Business logic and orchestration layer
# ABOUTME: Domain models, the bounded batch runner, collection validation and scrape services

"""
Core Layer: Domain models and workflow orchestration

This layer handles:
- The published record models (items, blocks, recipes)
- Bounded fan-out over wiki rows with per-record failure capture
- Collection invariant checks
- Service APIs used by the CLI

Data Flow: extraction/ records → JSON collections → publish/
"""

from .models import (
    Block,
    BlockColor,
    CraftingRecipe,
    Item,
    RunSummary,
    ScrapeFailure,
    ToolType,
)

# Import services on-demand to avoid circular imports
# Use: from minewiki.core.service import ScrapeService

__all__ = [
    "Block",
    "BlockColor",
    "CraftingRecipe",
    "Item",
    "RunSummary",
    "ScrapeFailure",
    "ToolType",
]
