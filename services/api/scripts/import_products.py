#!/usr/bin/env python3
"""Import products from a unified CSV (one row per SKU).

Columns (header row required):
  brand, category, family, model, variant, title, description, published,
  public_id, colors_list, primary_color, storages_list, primary_storage,
  condition, storage, color, ram, connectivity, chip_tier,
  currency, base_price, discount_percent, discount_amount, quantity, images

`images` holds file paths (relative to --images-dir) or http(s) URLs,
separated by ";", "|" or ",".

Run:
  cd services/api
  python -m scripts.import_products --file products.csv --images-dir public/import_images
  python -m scripts.import_products -f products.csv --discover --dry-run

Env vars (real runs):
  DATABASE_URL, SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY)
"""

import argparse
import asyncio
import os
import sys
from dataclasses import asdict

from dotenv import load_dotenv

# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from catalog.services.catalog_import import ImportOptions, run_import  # noqa: E402
from catalog.services.catalog_rows import group_rows, parse_product_rows, read_csv_rows  # noqa: E402
from catalog.settings import get_settings  # noqa: E402
from scripts.import_runtime import configure_logging, import_runtime  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import products from a unified CSV")
    parser.add_argument("--file", "-f", required=True, help="Path to the products CSV")
    parser.add_argument("--images-dir", "-i", default=None, help="Root for local image paths")
    parser.add_argument("--dry-run", action="store_true", help="Log instead of writing/uploading")
    parser.add_argument(
        "--discover",
        action="store_true",
        help="Also classify image files under --images-dir by filename",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = _parse_args(argv)
    configure_logging(args.verbose)
    settings = get_settings()

    images_dir = args.images_dir or settings.import_images_dir
    options = ImportOptions(
        discover=args.discover,
        default_currency=settings.default_currency,
        default_quantity=settings.default_inventory_quantity,
    )

    async with import_runtime(images_dir, args.dry_run) as (store, resolver):
        rows = parse_product_rows(read_csv_rows(args.file))
        groups = group_rows(rows)
        print(f"Loaded {len(rows)} rows -> {len(groups)} products from {args.file}")
        stats = await run_import(groups, store, resolver, options)

    print({"ok": True, "dry_run": args.dry_run, **asdict(stats)})


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        raise SystemExit(f"Import failed: {e}") from e
