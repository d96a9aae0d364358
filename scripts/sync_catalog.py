#!/usr/bin/env python3
"""
Synchronize the local catalog store with the peripheral source once and print
a summary.

Uses config/catalog_config.yml plus DATABASE_URL / CATALOG_SOURCE_* overrides.
Without DATABASE_URL the in-memory store is used, which is only useful to
check that the source answers.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

# Make sure the package is importable when run from a checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from peripheral_catalog.api.main import build_service  # noqa: E402
from peripheral_catalog.error_handler import CatalogError  # noqa: E402
from peripheral_catalog.utils.config_loader import load_catalog_config  # noqa: E402

logger = logging.getLogger(__name__)


async def _sync(config_path, category) -> int:
    config = load_catalog_config(config_path)
    service = build_service(config)

    try:
        result = await service.refresh(category)
    except CatalogError as e:
        print(f"❌ Sync failed: {e}", file=sys.stderr)
        return 1

    categories = await service.fetch_categories()
    favorites = service.get_favorites()
    print(f"✅ Synchronized {result.count} peripherals")
    print(f"   Categories: {', '.join(categories) or '-'}")
    print(f"   Favorites kept: {len(favorites)}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Refresh the local peripheral catalog from its source")
    parser.add_argument("--config", type=Path, default=None, help="Path to catalog_config.yml")
    parser.add_argument("--category", default=None, help="Only fetch this category")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    return asyncio.run(_sync(args.config, args.category))


if __name__ == "__main__":
    sys.exit(main())
