"""Stable identifiers for catalog rows.

The import is idempotent because every upsert is keyed by a value computed here:
- brand/category slug (e.g. "Apple" -> "apple")
- product public_id (e.g. "IPHONE-IPHONE-16-PRO-MAX-APPLE-IPHONE-16-PRO-MAX")
- SKU code (e.g. "IPH16-NEW-128GB-BLACK")

Truncation (60 chars for public ids, 80 for SKU codes) can make two long,
distinct inputs collide. That is a known limitation and is not detected here.
"""

import re
import unicodedata
from collections.abc import Mapping
from typing import Any

PUBLIC_ID_MAX_LENGTH = 60
SKU_CODE_MAX_LENGTH = 80

# Attribute keys contributing to the SKU code suffix, in this order.
SKU_CODE_ATTRIBUTE_ORDER: tuple[str, ...] = ("storage", "ram", "color", "chip_tier", "connectivity")

_NON_ALNUM_UPPER = re.compile(r"[^A-Z0-9]+")


def slugify(value: str | None) -> str:
    """Normalize free text into a URL-safe slug.

    Example:
        >>> slugify("Ultramarine Blue!")
        "ultramarine-blue"
    """
    if not value:
        return ""

    result = unicodedata.normalize("NFKD", value.lower())
    result = re.sub(r"[^a-z0-9\s-]", "", result)
    result = result.strip()
    result = re.sub(r"\s+", "-", result)
    result = re.sub(r"-+", "-", result)
    return result


def _upper_token(value: str) -> str:
    return _NON_ALNUM_UPPER.sub("-", value.upper())


def generate_public_id(
    family: str | None,
    model: str | None,
    variant: str | None,
    title: str | None,
) -> str:
    """Compute the product public id from its naming fields.

    Format: FAMILY-MODEL-VARIANT-TITLE, uppercase alnum + hyphens, max 60 chars.

    Args:
        family: Product family (e.g. "iPhone").
        model: Model (e.g. "16").
        variant: Variant (e.g. "Pro Max").
        title: Display title.

    Returns:
        Deterministic public id (empty string when every part is empty).
    """
    parts = [p for p in (family, model, variant, title) if p]
    joined = _upper_token(" ".join(parts)).strip("-")
    return joined[:PUBLIC_ID_MAX_LENGTH]


def generate_sku_code(
    public_id: str,
    condition: str,
    attributes: Mapping[str, Any] | None,
) -> str:
    """Compute a stable SKU code.

    Format: {public_id}-{NEW|USED}[-{storage}-{ram}-{color}-{chip_tier}-{connectivity}]

    Example:
        >>> generate_sku_code("IPH16", "new", {"color": "Black", "storage": "128GB"})
        "IPH16-NEW-128GB-BLACK"
    """
    attrs = attributes or {}
    values = [str(attrs[key]) for key in SKU_CODE_ATTRIBUTE_ORDER if attrs.get(key)]
    suffix = _upper_token("-".join(values))

    base = f"{public_id}-{'USED' if condition == 'second_hand' else 'NEW'}"
    code = f"{base}-{suffix}" if suffix else base
    return code[:SKU_CODE_MAX_LENGTH]


def title_case_words(value: str) -> str:
    """Capitalize each whitespace-separated word ("deep  BLUE" -> "Deep Blue")."""
    return " ".join(w[:1].upper() + w[1:].lower() for w in value.split() if w)
