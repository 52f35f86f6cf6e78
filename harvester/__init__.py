"""Feed harvester: authenticated group feed scraping with deduplicated storage."""

__version__ = "0.1.0"
