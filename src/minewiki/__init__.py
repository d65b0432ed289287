# ABOUTME: Minecraft wiki scraper package root
# ABOUTME: Batch ETL for items, blocks and crafting recipes plus static API publishing

__version__ = "0.1.0"
