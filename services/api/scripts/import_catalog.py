#!/usr/bin/env python3
"""Import the catalog from Products.csv + Images.csv + local image discovery.

Products.csv: one row per product
  brand, category, family, model, variant, title, description, published,
  public_id, colors_list ("Black;White"), primary_color,
  storages_list ("128GB;256GB"), primary_storage
Images.csv: product_public_id, file_or_url, is_primary, sort_order, color
  (color "" or "Common" = shown for every color)

Every color from colors_list or from discovered files gets a SKU, priced by
variant when the row has no base_price.

Run:
  cd services/api
  python -m scripts.import_catalog --csv-dir docs/csv --images-dir public/import_images
"""

import argparse
import asyncio
import os
import sys
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv

# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from catalog.services.catalog_import import ImportOptions, run_import  # noqa: E402
from catalog.services.catalog_rows import (  # noqa: E402
    group_image_rows,
    group_rows,
    parse_image_rows,
    parse_product_rows,
    read_csv_rows,
)
from catalog.settings import get_settings  # noqa: E402
from scripts.import_runtime import configure_logging, import_runtime  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import Products.csv + Images.csv with image discovery")
    parser.add_argument("--csv-dir", default=None, help="Directory holding Products.csv and Images.csv")
    parser.add_argument("--images-dir", "-i", default=None, help="Root scanned for product images")
    parser.add_argument("--dry-run", action="store_true", help="Log instead of writing/uploading")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = _parse_args(argv)
    configure_logging(args.verbose)
    settings = get_settings()

    csv_dir = Path(args.csv_dir or settings.catalog_csv_dir)
    images_dir = args.images_dir or settings.import_images_dir

    async with import_runtime(images_dir, args.dry_run) as (store, resolver):
        # Missing files mean "nothing of that kind", not an error
        products = parse_product_rows(read_csv_rows(csv_dir / "Products.csv", missing_ok=True))
        images = parse_image_rows(read_csv_rows(csv_dir / "Images.csv", missing_ok=True))
        print({"loaded": {"products": len(products), "images": len(images)}})

        options = ImportOptions(
            discover=True,
            image_groups=group_image_rows(images),
            default_currency=settings.default_currency,
            default_quantity=settings.default_inventory_quantity,
        )
        stats = await run_import(group_rows(products), store, resolver, options)

    print({"ok": True, "dry_run": args.dry_run, **asdict(stats)})


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        raise SystemExit(f"Import failed: {e}") from e
