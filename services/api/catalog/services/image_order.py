"""Ordering of image files inside one bucket (common or a single color).

Order:
1. "-main." files first (e.g. iph16-black-main.jpg)
2. Files with a trailing number before the extension, numerically (2 before 10)
3. Files without a number
4. Case-insensitive name as the final tie-break
"""

import functools
import re
from collections.abc import Iterable

_MAIN_RE = re.compile(r"-main\.", re.IGNORECASE)
_TRAILING_NUMBER_RE = re.compile(r"(\d+)(?=\.[^.]+$)")


def _trailing_number(name: str) -> int | None:
    match = _TRAILING_NUMBER_RE.search(name)
    return int(match.group(1)) if match else None


def _cmp(a: int | str, b: int | str) -> int:
    return (a > b) - (a < b)


def compare_image_files(a: str, b: str) -> int:
    """Comparator implementing the bucket order (negative when a sorts first)."""
    a_main = bool(_MAIN_RE.search(a))
    b_main = bool(_MAIN_RE.search(b))
    if a_main != b_main:
        return -1 if a_main else 1

    a_num = _trailing_number(a)
    b_num = _trailing_number(b)
    if a_num is not None and b_num is not None:
        if a_num != b_num:
            return _cmp(a_num, b_num)
    elif a_num is not None:
        return -1
    elif b_num is not None:
        return 1

    return _cmp(a.lower(), b.lower())


def sort_image_files(files: Iterable[str]) -> list[str]:
    """Return a new list of file paths in display order.

    >>> sort_image_files(["x-2.jpg", "x-main.jpg", "x-10.jpg", "x-1.jpg"])
    ['x-main.jpg', 'x-1.jpg', 'x-2.jpg', 'x-10.jpg']
    """
    return sorted(files, key=functools.cmp_to_key(compare_image_files))
