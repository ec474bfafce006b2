"""CSV rows -> products, SKUs and image sources.

Input shapes:
- Unified rows: one row per SKU, product fields repeated (brand, category,
  family, model, variant, title, ... storage, color, base_price, quantity, images)
- Products.csv: one row per product with colors_list ("Black;White") and
  optional primary_color / storages_list / primary_storage
- Images.csv: product_public_id, file_or_url, color ("" or "Common" = common)

Rows sharing brand+category+family+model+variant+title form one product.
Colors come from the CSV and from image discovery; every color gets a SKU
even when it has no images.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import pandas as pd

from catalog.services.image_discovery import DiscoveredImageSet
from catalog.services.image_plan import MergedImages, order_colors
from catalog.services.slugs import generate_public_id, generate_sku_code

logger = logging.getLogger("uvicorn.error")

CONDITIONS = ("new", "second_hand")

# Default base price by variant when the CSV has no base_price column/value
VARIANT_DEFAULT_PRICES: dict[str, float] = {
    "pro max": 1299,
    "pro": 1199,
    "plus": 899,
}
FALLBACK_DEFAULT_PRICE = 799.0

# Source line number attached to each row by read_csv_rows
ROW_NUMBER_KEY = "row_number"


class CatalogRowError(ValueError):
    """A CSV row cannot be turned into catalog records."""


# ============================================================
# Parsing helpers
# ============================================================


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    s = str(value).strip().lower()
    if not s:
        return default
    return s in ("true", "1", "yes", "y")


def parse_number(value: Any, default: float | None = None) -> float | None:
    """Parse "1,299" / " 12 " style numbers; blank, invalid or non-finite -> default."""
    if value is None:
        return default
    s = str(value).strip().replace(",", "").replace(" ", "")
    if not s:
        return default
    try:
        result = float(s)
    except ValueError:
        return default
    if not math.isfinite(result):
        return default
    return result


def split_list(value: str | None, separators: str = ";|,") -> list[str]:
    """Split a multi-value cell on any of the given separator characters."""
    if not value:
        return []
    items = [value]
    for sep in separators:
        items = [part for item in items for part in item.split(sep)]
    return [item.strip() for item in items if item.strip()]


def read_csv_rows(path: str | Path, *, missing_ok: bool = False) -> list[dict[str, str]]:
    """Read a CSV with a header row into trimmed string mappings.

    Blank lines are skipped. Each row carries its source line number under
    ROW_NUMBER_KEY (the header is line 1). A missing file raises
    FileNotFoundError unless missing_ok is set, in which case it yields no rows.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        if missing_ok:
            return []
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    try:
        df = pd.read_csv(
            csv_path,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError:
        return []

    # Blank lines come back as all-NaN rows
    df = df.fillna("")
    df.columns = [str(c).strip() for c in df.columns]
    rows: list[dict[str, str]] = []
    for idx, record in enumerate(df.to_dict(orient="records")):
        cleaned = {str(k): str(v).strip() for k, v in record.items()}
        if any(cleaned.values()):
            cleaned[ROW_NUMBER_KEY] = str(idx + 2)
            rows.append(cleaned)
    return rows


def is_common_color(color: str | None) -> bool:
    """Blank or "Common" image color means the image belongs to every color."""
    return not color or color.strip().lower() == "common"


# ============================================================
# Row types
# ============================================================


def _from_mapping(cls, data: Mapping[str, Any], **extra: Any):
    names = {f.name for f in fields(cls)} - set(extra)
    values = {k: str(v).strip() for k, v in data.items() if k in names and v is not None}
    values.update(extra)
    return cls(**values)


@dataclass
class ProductRow:
    """One CSV row describing a product (and optionally one SKU of it)."""

    brand: str = ""
    category: str = ""
    family: str = ""
    model: str = ""
    variant: str = ""
    title: str = ""
    description: str = ""
    published: str = ""
    public_id: str = ""
    colors_list: str = ""
    primary_color: str = ""
    storages_list: str = ""
    primary_storage: str = ""
    condition: str = ""
    storage: str = ""
    color: str = ""
    ram: str = ""
    connectivity: str = ""
    chip_tier: str = ""
    currency: str = ""
    base_price: str = ""
    discount_percent: str = ""
    discount_amount: str = ""
    quantity: str = ""
    images: str = ""
    row_number: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], row_number: int = 0) -> ProductRow:
        return _from_mapping(cls, data, row_number=row_number)

    def validate(self) -> None:
        missing = [name for name in ("brand", "category", "title") if not getattr(self, name)]
        if missing:
            raise CatalogRowError(f"Row {self.row_number}: missing {', '.join(missing)}")

    def group_key(self) -> str:
        return "||".join(
            [self.brand, self.category, self.family, self.model, self.variant, self.title]
        )


@dataclass
class ImageRow:
    """One Images.csv row.

    is_primary / sort_order are accepted for compatibility; the import computes
    both itself.
    """

    product_public_id: str = ""
    file_or_url: str = ""
    is_primary: str = ""
    sort_order: str = ""
    color: str = ""
    row_number: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], row_number: int = 0) -> ImageRow:
        return _from_mapping(cls, data, row_number=row_number)

    @property
    def is_common(self) -> bool:
        return is_common_color(self.color)


def _row_number(record: Mapping[str, Any], idx: int) -> int:
    """Source line from read_csv_rows, else position after the header."""
    value = record.get(ROW_NUMBER_KEY)
    return int(value) if value else idx + 2


def parse_product_rows(records: Iterable[Mapping[str, Any]]) -> list[ProductRow]:
    """Build validated ProductRows; row numbers count the header as line 1."""
    rows: list[ProductRow] = []
    for idx, record in enumerate(records):
        row = ProductRow.from_mapping(record, row_number=_row_number(record, idx))
        row.validate()
        rows.append(row)
    return rows


def parse_image_rows(records: Iterable[Mapping[str, Any]]) -> list[ImageRow]:
    rows: list[ImageRow] = []
    for idx, record in enumerate(records):
        row = ImageRow.from_mapping(record, row_number=_row_number(record, idx))
        if not row.product_public_id or not row.file_or_url:
            logger.warning(f"Images row {row.row_number}: missing product_public_id or file_or_url, skipped")
            continue
        rows.append(row)
    return rows


# ============================================================
# Records handed to the store
# ============================================================


@dataclass(frozen=True)
class ProductRecord:
    brand: str
    category: str
    title: str
    public_id: str
    family: str | None = None
    model: str | None = None
    variant: str | None = None
    description: str | None = None
    published: bool = False


def effective_price(
    base_price: float,
    discount_percent: float | None = None,
    discount_amount: float | None = None,
) -> float:
    """Price after discount; an amount discount wins over a percent one."""
    if discount_amount is not None:
        return base_price - discount_amount
    if discount_percent is not None:
        return base_price * (1 - discount_percent / 100)
    return base_price


@dataclass(frozen=True)
class PriceSpec:
    """Base price with at most one active discount mode."""

    currency: str
    base_price: float
    discount_percent: float | None = None
    discount_amount: float | None = None

    def __post_init__(self) -> None:
        if self.discount_percent is not None and self.discount_amount is not None:
            raise CatalogRowError("Only one of discount_percent / discount_amount may be set")
        if self.base_price < 0:
            raise CatalogRowError(f"Negative base_price: {self.base_price}")

    @property
    def effective_price(self) -> float:
        return effective_price(self.base_price, self.discount_percent, self.discount_amount)


@dataclass(frozen=True)
class SkuSpec:
    condition: str
    attributes: dict[str, str]
    sku_code: str
    price: PriceSpec
    quantity: int
    is_active: bool = True


@dataclass
class CsvImageGroup:
    """Images declared in CSV for one product."""

    common: list[str] = field(default_factory=list)
    by_color: dict[str, list[str]] = field(default_factory=dict)

    def add(self, file_or_url: str, color: str | None = None) -> None:
        if is_common_color(color):
            self.common.append(file_or_url)
        else:
            self.by_color.setdefault(color, []).append(file_or_url)


# ============================================================
# Grouping
# ============================================================


def _dedup_ci(values: Iterable[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for v in values:
        if v and v.lower() not in seen:
            out.append(v)
            seen.add(v.lower())
    return out


@dataclass
class ProductGroup:
    """All CSV rows belonging to one logical product."""

    key: str
    rows: list[ProductRow] = field(default_factory=list)

    @property
    def first(self) -> ProductRow:
        return self.rows[0]

    @property
    def public_id(self) -> str:
        first = self.first
        return first.public_id or generate_public_id(
            first.family, first.model, first.variant, first.title
        )

    @property
    def primary_color(self) -> str | None:
        return self.first.primary_color or None

    def record(self) -> ProductRecord:
        first = self.first
        return ProductRecord(
            brand=first.brand,
            category=first.category,
            title=first.title,
            public_id=self.public_id,
            family=first.family or None,
            model=first.model or None,
            variant=first.variant or None,
            description=first.description or None,
            published=to_bool(first.published),
        )

    def declared_colors(self) -> list[str]:
        """colors_list of the first row, then per-row colors (file order)."""
        return _dedup_ci([*split_list(self.first.colors_list, ";"), *(r.color for r in self.rows)])

    def storages(self) -> list[str]:
        """storages_list of the first row with primary_storage moved first."""
        storages = _dedup_ci(split_list(self.first.storages_list, ";"))
        wanted = self.first.primary_storage.lower()
        if wanted:
            front = [s for s in storages if s.lower() == wanted]
            storages = front + [s for s in storages if s.lower() != wanted]
        return storages

    def csv_images(self) -> CsvImageGroup:
        """Images listed in the rows' `images` cells (colored rows -> that color)."""
        group = CsvImageGroup()
        for row in self.rows:
            for item in split_list(row.images):
                group.add(item, row.color or None)
        return group


def group_rows(rows: Iterable[ProductRow]) -> list[ProductGroup]:
    """Group rows by brand+category+family+model+variant+title, keeping file order."""
    groups: dict[str, ProductGroup] = {}
    for row in rows:
        key = row.group_key()
        if key not in groups:
            groups[key] = ProductGroup(key=key)
        groups[key].rows.append(row)
    return list(groups.values())


def group_image_rows(rows: Iterable[ImageRow]) -> dict[str, CsvImageGroup]:
    """Images.csv rows keyed by product public id."""
    out: dict[str, CsvImageGroup] = {}
    for row in rows:
        color = None if row.is_common else row.color
        out.setdefault(row.product_public_id, CsvImageGroup()).add(row.file_or_url, color)
    return out


# ============================================================
# Merging
# ============================================================


def _append_unseen(target: list[str], items: Iterable[str], seen: set[str]) -> None:
    for item in items:
        if item.lower() not in seen:
            target.append(item)
            seen.add(item.lower())


def merge_image_sources(
    csv_images: CsvImageGroup | None,
    discovered: DiscoveredImageSet,
) -> MergedImages:
    """Union CSV-declared and discovered images.

    CSV entries come first; discovered paths are appended when not already
    present (case-insensitive). Discovered colors join an existing CSV bucket
    of the same name regardless of case, keeping the CSV spelling.
    """
    csv_images = csv_images or CsvImageGroup()

    common: list[str] = []
    _append_unseen(common, csv_images.common, set())
    _append_unseen(common, discovered.common, {p.lower() for p in common})

    by_color: dict[str, list[str]] = {}
    for color, paths in csv_images.by_color.items():
        bucket = by_color.setdefault(color, [])
        _append_unseen(bucket, paths, {p.lower() for p in bucket})

    for color, paths in discovered.by_color.items():
        name = next((c for c in by_color if c.lower() == color.lower()), color)
        bucket = by_color.setdefault(name, [])
        _append_unseen(bucket, paths, {p.lower() for p in bucket})

    return MergedImages(hero=discovered.hero, common=common, by_color=by_color)


# ============================================================
# SKU expansion
# ============================================================


def default_price_for_variant(variant: str | None) -> float:
    return float(VARIANT_DEFAULT_PRICES.get((variant or "").strip().lower(), FALLBACK_DEFAULT_PRICE))


def _price_for_row(row: ProductRow, default_currency: str) -> PriceSpec:
    base = parse_number(row.base_price)
    try:
        return PriceSpec(
            currency=(row.currency or default_currency).upper(),
            base_price=base if base is not None else default_price_for_variant(row.variant),
            discount_percent=parse_number(row.discount_percent),
            discount_amount=parse_number(row.discount_amount),
        )
    except CatalogRowError as e:
        raise CatalogRowError(f"Row {row.row_number}: {e}") from e


def _quantity_for_row(row: ProductRow, default_quantity: int) -> int:
    qty = parse_number(row.quantity)
    if qty is None:
        return default_quantity
    if qty < 0:
        raise CatalogRowError(f"Row {row.row_number}: negative quantity {row.quantity}")
    return int(qty)


def _condition_for_row(row: ProductRow) -> str:
    condition = (row.condition or "new").strip().lower()
    if condition not in CONDITIONS:
        raise CatalogRowError(f"Row {row.row_number}: unknown condition {row.condition!r}")
    return condition


def _attributes(row: ProductRow, color: str | None, storage: str | None) -> dict[str, str]:
    attrs: dict[str, str] = {}
    if storage:
        attrs["storage"] = storage
    if color:
        attrs["color"] = color
    if row.ram:
        attrs["ram"] = row.ram
    if row.connectivity:
        attrs["connectivity"] = row.connectivity
    if row.chip_tier:
        attrs["chip_tier"] = row.chip_tier
    return attrs


def build_sku_specs(
    group: ProductGroup,
    discovered_colors: Iterable[str] = (),
    *,
    default_currency: str = "USD",
    default_quantity: int = 5,
) -> list[SkuSpec]:
    """Expand a product's rows into SKUs.

    - A row with its own color yields SKUs for that color.
    - Colors from colors_list or discovery that no row covers get SKUs cloned
      from the color-less rows (or the first row when every row has a color).
    - storages_list multiplies every color by each storage.
    - A product without any color yields one SKU per row.

    SKU codes are unique per product; a repeated code keeps the first SKU.
    """
    public_id = group.public_id
    colors = order_colors(group.declared_colors(), discovered_colors, group.primary_color)
    storages = group.storages()
    covered = {r.color.lower() for r in group.rows if r.color}
    uncovered = [c for c in colors if c.lower() not in covered]

    plan: list[tuple[ProductRow, str | None]] = [(r, r.color) for r in group.rows if r.color]
    templates = [r for r in group.rows if not r.color]
    if uncovered and not templates:
        templates = [group.first]
    for row in templates:
        for color in uncovered or [None]:
            plan.append((row, color))

    specs: list[SkuSpec] = []
    seen_codes: set[str] = set()
    for row, color in plan:
        condition = _condition_for_row(row)
        price = _price_for_row(row, default_currency)
        quantity = _quantity_for_row(row, default_quantity)
        for storage in storages or [row.storage or None]:
            attrs = _attributes(row, color, storage)
            code = generate_sku_code(public_id, condition, attrs)
            if code in seen_codes:
                logger.warning(f"Duplicate SKU code {code} for {public_id}, keeping the first")
                continue
            seen_codes.add(code)
            specs.append(
                SkuSpec(
                    condition=condition,
                    attributes=attrs,
                    sku_code=code,
                    price=price,
                    quantity=quantity,
                )
            )
    return specs
