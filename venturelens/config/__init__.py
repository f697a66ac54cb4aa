"""Configuration module -- exports Settings and the YAML loaders."""

from venturelens.config.loader import DEFAULT_CRAWL_SOURCES, load_config, load_crawl_sources
from venturelens.config.settings import Settings

__all__ = ["DEFAULT_CRAWL_SOURCES", "Settings", "load_config", "load_crawl_sources"]
