# ─────────────────────────────────────────────────────────────────────────────
# Listing — sorting, page-number resolution, page slicing
# ─────────────────────────────────────────────────────────────────────────────
# Pure functions. Pagination is recomputed from the full listing on every
# request; nothing here touches storage.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Iterable

from bucketview.schemas import Page, StoredObject

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def collation_key(key: str) -> tuple[str, str, str]:
    """Browser-style ordering: accents and case only break ties.

    Primary: accent-stripped, casefolded text, so "apple" < "Banana" < "cherry"
    and punctuation such as "_" sorts ahead of letters. Secondary: lowercase
    before uppercase. Last: the raw key, so the order is total.
    """
    decomposed = unicodedata.normalize("NFKD", key)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return base.casefold(), key.swapcase(), key


def sort_objects(objects: Iterable[StoredObject]) -> list[StoredObject]:
    """Sort by key ascending in collation order."""
    return sorted(objects, key=lambda obj: collation_key(obj.key))


def leading_int(raw: str | None) -> int | None:
    """Leading integer of raw ("29abc" -> 29), None when there is none."""
    if not raw:
        return None
    match = _LEADING_INT.match(raw)
    if match is None:
        return None
    return int(match.group(1))


def total_pages(total_items: int, page_size: int) -> int:
    """ceil(total_items / page_size); 0 for an empty listing."""
    return math.ceil(total_items / page_size)


def clamp_page(requested: int, pages: int) -> int:
    """Clamp into [1, pages], or 1 when there are no pages."""
    if pages == 0:
        return 1
    return max(1, min(requested, pages))


def parse_page(raw: str | None) -> int:
    """Read the ?page= value: leading integer, anything else (or 0) means 1.

    "3" -> 3, "3abc" -> 3, "abc" -> 1, "0" -> 1, "-2" -> -2 (clamped later).
    """
    return leading_int(raw) or 1


def paginate(objects: list[StoredObject], requested_page: int, page_size: int) -> Page:
    """Slice the sorted listing to the (clamped) requested page."""
    pages = total_pages(len(objects), page_size)
    page_number = clamp_page(requested_page, pages)
    start = (page_number - 1) * page_size
    return Page(
        items=objects[start : start + page_size],
        page_number=page_number,
        total_pages=pages,
        page_size=page_size,
        total_items=len(objects),
    )
