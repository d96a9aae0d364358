"""
Configuration loader for the peripheral catalog (store, source, logging).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from peripheral_catalog.error_handler import CatalogConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "catalog_config.yml"


class DatabaseConfig(BaseModel):
    """Catalog store configuration. No URL means the in-memory store."""

    url: Optional[str] = None


class SourceConfig(BaseModel):
    """Peripheral source configuration"""

    mode: Literal["mock", "http"] = "mock"
    base_url: str = "https://peripheral.mock/"
    timeout_seconds: float = Field(default=10.0, gt=0.0, le=300.0)
    data_dir: Optional[str] = None


class CatalogConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    log_level: str = "INFO"


def _apply_env_overrides(data: dict) -> dict:
    database = dict(data.get("database") or {})
    source = dict(data.get("source") or {})

    if os.getenv("DATABASE_URL"):
        database["url"] = os.environ["DATABASE_URL"]
    if os.getenv("CATALOG_SOURCE_MODE"):
        source["mode"] = os.environ["CATALOG_SOURCE_MODE"].strip().lower()
    if os.getenv("CATALOG_SOURCE_URL"):
        source["base_url"] = os.environ["CATALOG_SOURCE_URL"]
    if os.getenv("CATALOG_SOURCE_TIMEOUT"):
        source["timeout_seconds"] = os.environ["CATALOG_SOURCE_TIMEOUT"]
    if os.getenv("LOG_LEVEL"):
        data["log_level"] = os.environ["LOG_LEVEL"]

    data["database"] = database
    data["source"] = source
    return data


def load_catalog_config(config_path: Optional[Path] = None) -> CatalogConfig:
    """
    Load and validate the catalog configuration from a YAML file

    Args:
        config_path: Path to config file. Defaults to config/catalog_config.yml;
            when the default file is absent the built-in defaults are used.

    Returns:
        Validated CatalogConfig object, environment overrides applied

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        CatalogConfigError: If config doesn't match schema
    """
    data: dict = {}
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
        if not config_path.exists():
            logger.info("No config file at %s, using defaults", config_path)
            config_path = None
    elif not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    if config_path is not None:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    try:
        config = CatalogConfig(**_apply_env_overrides(data))
    except ValidationError as e:
        logger.error("Catalog config validation failed: %s", e)
        raise CatalogConfigError(f"Invalid catalog configuration: {e}") from e

    if config_path is not None:
        logger.info("Successfully loaded catalog config from %s", config_path)
    return config
