#!/usr/bin/env python3
"""Import the curated Apple iPhone 16 product.

Colors:   Black, White, Ultramarine, Teal, Pink (plus any discovered by filename)
Storages: 128GB, 256GB, 512GB
Primary:  Black / 128GB, price 799 USD

Prior SKUs of the product (and any "IPH16-NEW-*" code) are deleted first so
renamed colors or storages do not linger.

Run:
  cd services/api
  python -m scripts.import_iphone16 --images-dir public/import_images
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
from catalog.services.catalog_rows import ProductGroup, ProductRow  # noqa: E402
from catalog.settings import get_settings  # noqa: E402
from scripts.import_runtime import configure_logging, import_runtime  # noqa: E402

IPHONE16_COLORS = ["Black", "White", "Ultramarine", "Teal", "Pink"]
IPHONE16_STORAGES = ["128GB", "256GB", "512GB"]


def iphone16_group(base_price: float = 799) -> ProductGroup:
    """The curated product as a single CSV-like row."""
    row = ProductRow(
        brand="Apple",
        category="Phones",
        family="iPhone",
        model="iPhone 16",
        title="Apple iPhone 16",
        published="true",
        public_id="IPH16",
        colors_list=";".join(IPHONE16_COLORS),
        primary_color="Black",
        storages_list=";".join(IPHONE16_STORAGES),
        primary_storage="128GB",
        condition="new",
        currency="USD",
        base_price=str(base_price),
        row_number=1,
    )
    return ProductGroup(key=row.group_key(), rows=[row])


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import the curated iPhone 16 product")
    parser.add_argument("--images-dir", "-i", default=None, help="Root scanned for product images")
    parser.add_argument("--dry-run", action="store_true", help="Log instead of writing/uploading")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = _parse_args(argv)
    configure_logging(args.verbose)
    settings = get_settings()

    images_dir = args.images_dir or settings.import_images_dir
    options = ImportOptions(
        discover=True,
        default_currency=settings.default_currency,
        default_quantity=settings.default_inventory_quantity,
        purge_existing_skus=True,
    )

    async with import_runtime(images_dir, args.dry_run) as (store, resolver):
        stats = await run_import([iphone16_group()], store, resolver, options)

    print({"ok": True, "dry_run": args.dry_run, **asdict(stats)})


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        raise SystemExit(f"Import failed: {e}") from e
