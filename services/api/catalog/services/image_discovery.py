"""Image discovery: classify files under the import root by filename.

There is no manifest for product photos, so the filename (and for one product
family, the folder name) is the only signal. Each image file lands in exactly
one bucket for a given product:

- hero:   "<prefix>-..._main_main.jpg" (first match wins)
- common: "<prefix>-common-1.jpg" (shown for every color)
- color:  "<prefix>-ultramarine-main.jpg", "<prefix>-white2.jpg"
- unrelated: anything else (dropped silently)

Prefixes come from a lookup table keyed by public id, then from phrases in the
product title (more specific first), then from the lowercased public id.

The base iPhone 16 product also accepts loosely named files inside an
"iphone 16" folder ("iPhone16 Ultramarine 3.png"), scanning an ordered
token table for the color. That fallback is deliberately limited to the one
product so unrelated products sharing a folder do not pick up its files.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from catalog.services.image_order import sort_image_files
from catalog.services.slugs import title_case_words

logger = logging.getLogger("uvicorn.error")

IMAGE_EXTENSIONS: frozenset[str] = frozenset({".jpg", ".jpeg", ".png", ".webp"})

_HERO_RE = re.compile(r"(^|[-_.])main_main(?![a-z])", re.IGNORECASE)
_COMMON_RE = re.compile(r"(^|[-_.])common(?![a-z])", re.IGNORECASE)
_TRAILING_MAIN_RE = re.compile(r"-?main$", re.IGNORECASE)
_TRAILING_DIGITS_RE = re.compile(r"\d+$")


# ============================================================
# Lookup tables (injected through DiscoveryConfig)
# ============================================================

DEFAULT_PREFIX_BY_PUBLIC_ID: dict[str, str] = {
    "IPH16": "iph16",
    "IPH16PLUS": "iph16plus",
    "IPH16PRO": "iph16pro",
    "IPH16PROMAX": "iph16promax",
}

# (title phrase, prefix) - order matters, more specific first
DEFAULT_TITLE_PREFIX_PHRASES: tuple[tuple[str, str], ...] = (
    ("iphone 16 pro max", "iph16promax"),
    ("iphone 16 pro", "iph16pro"),
    ("iphone 16 plus", "iph16plus"),
    ("iphone 16", "iph16"),
)

# (path token, color) - first token found in the lowercased path wins
DEFAULT_COLOR_TOKENS: tuple[tuple[str, str], ...] = (
    ("ultramarine", "Ultramarine"),
    ("teal", "Teal"),
    ("pink", "Pink"),
    ("white", "White"),
    ("black", "Black"),
    ("midnight", "Black"),
)

DEFAULT_COLOR_ALIASES: dict[str, dict[str, str]] = {
    "IPH16": {"Midnight": "Black"},
}

BASE_MODEL_PUBLIC_ID = "IPH16"
BASE_MODEL_DIRECTORY_RE = re.compile(r"iphone\s*16", re.IGNORECASE)
BASE_MODEL_FILENAME_RES: tuple[re.Pattern[str], ...] = (
    re.compile(r"^iph?16(?!pro|plus|promax)", re.IGNORECASE),
    re.compile(r"iphone\s*16(?!\s*(pro|max|plus))", re.IGNORECASE),
)


@dataclass(frozen=True)
class DiscoveryConfig:
    """Tables driving filename classification."""

    prefix_by_public_id: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_PREFIX_BY_PUBLIC_ID)
    )
    title_prefix_phrases: tuple[tuple[str, str], ...] = DEFAULT_TITLE_PREFIX_PHRASES
    color_tokens: tuple[tuple[str, str], ...] = DEFAULT_COLOR_TOKENS
    color_aliases: Mapping[str, Mapping[str, str]] = field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_COLOR_ALIASES.items()}
    )
    base_model_public_id: str | None = BASE_MODEL_PUBLIC_ID
    base_model_directory_re: re.Pattern[str] = BASE_MODEL_DIRECTORY_RE
    base_model_filename_res: tuple[re.Pattern[str], ...] = BASE_MODEL_FILENAME_RES


DEFAULT_DISCOVERY_CONFIG = DiscoveryConfig()


# ============================================================
# Per-product strategy
# ============================================================


@dataclass(frozen=True)
class PrefixedStrategy:
    """Files belong to the product only when named "<prefix>[-_.]..."."""

    prefix: str

    @property
    def kind(self) -> str:
        return "prefixed"

    def has_prefix(self, basename: str) -> bool:
        return bool(re.match(rf"{re.escape(self.prefix)}[-_.]", basename, re.IGNORECASE))

    def strip_prefix(self, stem: str) -> str:
        return re.sub(rf"^{re.escape(self.prefix)}[-_.]", "", stem, flags=re.IGNORECASE)


@dataclass(frozen=True)
class TokenScannedStrategy(PrefixedStrategy):
    """Prefix matching plus the folder/token fallback for the base model."""

    directory_re: re.Pattern[str] = BASE_MODEL_DIRECTORY_RE
    filename_res: tuple[re.Pattern[str], ...] = BASE_MODEL_FILENAME_RES
    color_tokens: tuple[tuple[str, str], ...] = DEFAULT_COLOR_TOKENS

    @property
    def kind(self) -> str:
        return "token_scanned"

    def in_hint_directory(self, rel_path: str) -> bool:
        parent = str(PurePosixPath(rel_path.lower()).parent)
        return bool(self.directory_re.search(parent))

    def is_base_model_file(self, basename: str) -> bool:
        lower = basename.lower()
        return any(p.search(lower) for p in self.filename_res)

    def scan_color_token(self, rel_path: str) -> str | None:
        lower = rel_path.lower()
        for token, color in self.color_tokens:
            if token in lower:
                return color
        return None


DiscoveryStrategy = PrefixedStrategy | TokenScannedStrategy


def resolve_prefix(
    public_id: str,
    title: str | None = None,
    config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG,
) -> str:
    """Filename prefix for a product (e.g. "IPH16PRO" -> "iph16pro")."""
    mapped = config.prefix_by_public_id.get(public_id)
    if mapped:
        return mapped
    t = (title or "").lower()
    for phrase, prefix in config.title_prefix_phrases:
        if phrase in t:
            return prefix
    return public_id.lower()


def resolve_strategy(
    public_id: str,
    title: str | None = None,
    config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG,
) -> DiscoveryStrategy:
    """Decide once per product how its files are recognised."""
    prefix = resolve_prefix(public_id, title, config)
    if config.base_model_public_id and public_id == config.base_model_public_id:
        return TokenScannedStrategy(
            prefix=prefix,
            directory_re=config.base_model_directory_re,
            filename_res=config.base_model_filename_res,
            color_tokens=config.color_tokens,
        )
    return PrefixedStrategy(prefix=prefix)


# ============================================================
# Result + accumulator
# ============================================================


@dataclass
class DiscoveredImageSet:
    """Images found for one product. Rebuilt on every run, never persisted."""

    hero: str | None = None
    common: list[str] = field(default_factory=list)
    by_color: dict[str, list[str]] = field(default_factory=dict)
    discovered_colors: set[str] = field(default_factory=set)

    @property
    def total(self) -> int:
        return (1 if self.hero else 0) + len(self.common) + sum(len(v) for v in self.by_color.values())


class DiscoveredImageBuilder:
    """Accumulates classified paths; finalize() applies the bucket order."""

    def __init__(self) -> None:
        self._hero: str | None = None
        self._common: list[str] = []
        self._by_color: dict[str, list[str]] = {}

    def set_hero(self, path: str) -> bool:
        """Record the hero image. Returns False if one was already recorded."""
        if self._hero is not None:
            return False
        self._hero = path
        return True

    def add_common(self, path: str) -> None:
        self._common.append(path)

    def add_to_color(self, color: str, path: str) -> None:
        self._by_color.setdefault(color, []).append(path)

    def finalize(self) -> DiscoveredImageSet:
        return DiscoveredImageSet(
            hero=self._hero,
            common=sort_image_files(self._common),
            by_color={color: sort_image_files(paths) for color, paths in self._by_color.items()},
            discovered_colors=set(self._by_color),
        )


# ============================================================
# Classification
# ============================================================


def _color_from_prefixed_name(stem: str, strategy: DiscoveryStrategy) -> str | None:
    rest = strategy.strip_prefix(stem).strip()
    rest = _TRAILING_MAIN_RE.sub("", rest)
    rest = _TRAILING_DIGITS_RE.sub("", rest)
    rest = re.sub(r"[-_]+", " ", rest.strip())
    rest = re.sub(r"\s+", " ", rest).strip()
    return title_case_words(rest) if rest else None


def normalize_discovered_color(
    public_id: str,
    color: str,
    config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG,
) -> str:
    """Map a discovered color onto the product's canonical name (Midnight -> Black)."""
    return config.color_aliases.get(public_id, {}).get(color, color)


def classify_image_paths(
    paths: Iterable[str],
    public_id: str,
    title: str | None = None,
    config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG,
) -> DiscoveredImageSet:
    """Classify relative image paths for one product (no filesystem access).

    Args:
        paths: Relative POSIX paths under the import root.
        public_id: Product public id (e.g. "IPH16").
        title: Product title, used to derive the prefix when not in the table.
        config: Lookup tables.

    Returns:
        DiscoveredImageSet with sorted buckets.
    """
    strategy = resolve_strategy(public_id, title, config)
    token_scanned = isinstance(strategy, TokenScannedStrategy)
    builder = DiscoveredImageBuilder()

    for rel_path in paths:
        pure = PurePosixPath(rel_path)
        basename = pure.name
        stem = pure.stem
        has_prefix = strategy.has_prefix(basename)
        in_hint_dir = token_scanned and strategy.in_hint_directory(rel_path)

        if _HERO_RE.search(stem):
            if has_prefix or in_hint_dir:
                if not builder.set_hero(rel_path):
                    logger.debug(f"Extra hero image ignored for {public_id}: {rel_path}")
            continue

        base_model_file = in_hint_dir and strategy.is_base_model_file(basename)

        if _COMMON_RE.search(stem) and (has_prefix or base_model_file):
            builder.add_common(rel_path)
            continue

        color: str | None = None
        if has_prefix:
            color = _color_from_prefixed_name(stem, strategy)
        elif base_model_file:
            color = strategy.scan_color_token(rel_path)

        if not color:
            logger.debug(f"Image not classified for {public_id}: {rel_path}")
            continue

        builder.add_to_color(normalize_discovered_color(public_id, color, config), rel_path)

    return builder.finalize()


def list_image_files(root: str | Path) -> list[str]:
    """List image files under root (recursive) as sorted relative POSIX paths."""
    base = Path(root)
    if not base.is_dir():
        return []
    found = [
        p.relative_to(base).as_posix()
        for p in base.rglob("*")
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    ]
    return sorted(found)
