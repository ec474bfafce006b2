"""Primary image selection, color display order and sort order.

Given the merged image buckets of a product this module decides:
- the display order of colors (CSV order, then discovered colors A-Z, with
  primary_color or else "Black" moved to the front)
- the upload sequence: hero, common, then each color's files
- which image is primary and every image's sort_order

Images are resolved (uploaded) strictly one after another; sort_order and the
primary flag depend on which earlier uploads succeeded, so this must not be
parallelized.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field

from catalog.services.image_order import sort_image_files
from catalog.services.image_resolver import LocalImageNotFound

logger = logging.getLogger("uvicorn.error")

PREFERRED_PRIMARY_COLOR = "Black"


@dataclass
class MergedImages:
    """CSV-declared and discovered images for one product after merging."""

    hero: str | None = None
    common: list[str] = field(default_factory=list)
    by_color: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class ImageCandidate:
    """One file or URL to upload, in upload order."""

    path: str
    color: str | None = None


@dataclass(frozen=True)
class ResolvedImage:
    """An uploaded image ready to be written as a product_images row."""

    url: str
    is_primary: bool
    sort_order: int
    color: str | None
    source: str


@dataclass
class ImageResolution:
    images: list[ResolvedImage] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def primary(self) -> ResolvedImage | None:
        return next((img for img in self.images if img.is_primary), None)


def _move_to_front(colors: list[str], wanted: str) -> list[str]:
    wanted_lower = wanted.lower()
    match = next((c for c in colors if c.lower() == wanted_lower), None)
    if match is None:
        return colors
    return [match] + [c for c in colors if c.lower() != wanted_lower]


def order_colors(
    csv_colors: Iterable[str],
    discovered_colors: Iterable[str],
    primary_color: str | None = None,
) -> list[str]:
    """Compute the color display order.

    CSV colors keep file order; discovered-only colors follow alphabetically.
    Duplicates (case-insensitive) keep the first spelling. An explicit
    primary_color present in the list goes first; otherwise "Black" does.
    """
    ordered: list[str] = []
    seen: set[str] = set()
    for color in [*csv_colors, *sorted(discovered_colors)]:
        c = color.strip()
        if not c or c.lower() in seen:
            continue
        ordered.append(c)
        seen.add(c.lower())

    desired = (primary_color or "").strip().lower()
    if desired and any(c.lower() == desired for c in ordered):
        return _move_to_front(ordered, desired)
    return _move_to_front(ordered, PREFERRED_PRIMARY_COLOR)


def _bucket(by_color: Mapping[str, list[str]], color: str) -> list[str]:
    if color in by_color:
        return by_color[color]
    color_lower = color.lower()
    for name, paths in by_color.items():
        if name.lower() == color_lower:
            return paths
    return []


def plan_images(merged: MergedImages, ordered_colors: list[str]) -> list[ImageCandidate]:
    """Build the upload sequence: hero, common, then colors in display order.

    A file listed both as common and under a color is kept under the color.
    Paths are deduplicated case-insensitively, first occurrence wins.
    """
    color_paths = {p.lower() for paths in merged.by_color.values() for p in paths}
    seen: set[str] = set()
    candidates: list[ImageCandidate] = []

    def _add(path: str, color: str | None) -> None:
        key = path.lower()
        if key in seen:
            return
        seen.add(key)
        candidates.append(ImageCandidate(path=path, color=color))

    if merged.hero:
        _add(merged.hero, None)

    for path in merged.common:
        if path.lower() in color_paths:
            continue
        _add(path, None)

    ordered_lower = {c.lower() for c in ordered_colors}
    for name in merged.by_color:
        if name.lower() not in ordered_lower:
            logger.warning(f"Images for color {name!r} skipped: color is not part of the product")

    for color in ordered_colors:
        for path in sort_image_files(_bucket(merged.by_color, color)):
            _add(path, color)

    return candidates


async def iter_resolved_images(
    candidates: Iterable[ImageCandidate],
    resolve: Callable[[str], Awaitable[str]],
    skipped: list[str] | None = None,
) -> AsyncIterator[ResolvedImage]:
    """Resolve candidates one at a time, yielding uploaded images in order.

    The first image that resolves is primary. Missing local files are skipped
    (and appended to `skipped` when given); any other error propagates.
    """
    sort_order = 1
    primary_assigned = False
    for candidate in candidates:
        try:
            url = await resolve(candidate.path)
        except LocalImageNotFound as e:
            logger.warning(f"Skipping image: {e}")
            if skipped is not None:
                skipped.append(candidate.path)
            continue

        yield ResolvedImage(
            url=url,
            is_primary=not primary_assigned,
            sort_order=sort_order,
            color=candidate.color,
            source=candidate.path,
        )
        primary_assigned = True
        sort_order += 1


async def resolve_images(
    candidates: Iterable[ImageCandidate],
    resolve: Callable[[str], Awaitable[str]],
) -> ImageResolution:
    """Resolve every candidate sequentially and collect the results."""
    result = ImageResolution()
    async for image in iter_resolved_images(candidates, resolve, skipped=result.skipped):
        result.images.append(image)
    return result
