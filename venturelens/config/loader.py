"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- static data checked into the repo (crawl sources)
  2. .env file           -- local developer overrides (not committed)
  3. Environment vars    -- set at deploy time

:func:`load_config` reads the YAML file first, then deep-merges the
environment-based values on top.  :func:`load_crawl_sources` turns the
``crawl.sources`` section into typed :class:`CrawlSource` descriptors,
falling back to :data:`DEFAULT_CRAWL_SOURCES` when the section is absent.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from venturelens.config.settings import Settings
from venturelens.models.crawl import CrawlSource
from venturelens.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_CRAWL_SOURCES: tuple[CrawlSource, ...] = (
    CrawlSource(
        name="Inc42 Funding Galore",
        url="https://inc42.com/buzz/funding-galore",
        category="funding_news",
    ),
    CrawlSource(
        name="YourStory Funding",
        url="https://yourstory.com/companies/funding",
        category="funding_news",
    ),
    CrawlSource(
        name="Entrackr Funding",
        url="https://entrackr.com/category/funding/",
        category="funding_news",
    ),
    CrawlSource(
        name="VCCircle Deals",
        url="https://www.vccircle.com/deals",
        category="deals",
    ),
    CrawlSource(
        name="Startup India Schemes",
        url="https://startupindia.gov.in/content/sih/en/government-schemes.html",
        category="government_policy",
    ),
)


def load_config(path: str | None = None, settings: Settings | None = None) -> dict[str, Any]:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  Defaults to
            ``settings.config_path``.
        settings: Settings instance; a fresh one is created when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.config_path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    if not isinstance(yaml_config, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "providers": {
            "available": settings.get_available_providers(),
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def load_crawl_sources(config: dict[str, Any]) -> list[CrawlSource]:
    """Return the ordered crawl source list from a resolved config dict."""
    raw_sources = (config.get("crawl") or {}).get("sources")
    if not raw_sources:
        return list(DEFAULT_CRAWL_SOURCES)

    try:
        sources = [CrawlSource(**entry) for entry in raw_sources]
    except (TypeError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid crawl source entry: {exc}") from exc

    logger.debug("crawl_sources_loaded", count=len(sources))
    return sources


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
