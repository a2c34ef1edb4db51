# ─────────────────────────────────────────────────────────────────────────────
# Listing Page Renderer — Jinja2 HTML with embedded client-side pagination
# ─────────────────────────────────────────────────────────────────────────────
# The document carries the current page server-rendered plus the whole sorted
# listing as JSON, so page turns happen in the browser without a round-trip.
# Fine for small/medium buckets; the full listing ships on every load.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from bucketview.schemas import Page, StoredObject

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def format_bytes(size_bytes: int, decimals: int = 2) -> str:
    """Human-readable size with 1024-based units, trailing zeros trimmed.

    0 -> "0 Bytes", 1024 -> "1 KB", 1536 -> "1.5 KB".
    """
    if size_bytes == 0:
        return "0 Bytes"

    k = 1024
    dm = max(decimals, 0)
    i = 0
    while i < len(SIZE_UNITS) - 1 and size_bytes >= k ** (i + 1):
        i += 1

    text = f"{size_bytes / k**i:.{dm}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"


_env.filters["format_bytes"] = format_bytes


def render_listing(page: Page, all_objects: Sequence[StoredObject], title: str = "Files") -> str:
    """Render the full listing document for one page."""
    template = _env.get_template("listing.html")
    return template.render(
        title=title,
        page=page,
        all_objects=[{"key": obj.key, "size": obj.size} for obj in all_objects],
        size_units=SIZE_UNITS,
    )
