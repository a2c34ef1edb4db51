# ─────────────────────────────────────────────────────────────────────────────
# Tests for the listing renderer — size formatting and the HTML document
# ─────────────────────────────────────────────────────────────────────────────

import json
import re

import pytest

from bucketview.schemas import StoredObject
from bucketview.services.listing import paginate
from bucketview.services.rendering import TEMPLATE_DIR, format_bytes, render_listing


class TestFormatBytes:
    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0 Bytes"),
            (1, "1 Bytes"),
            (1023, "1023 Bytes"),
            (1024, "1 KB"),
            (1536, "1.5 KB"),
            (1126, "1.1 KB"),
            (1048576, "1 MB"),
            (5 * 1024**3 + 1024**3 // 4, "5.25 GB"),
        ],
    )
    def test_binary_units(self, size: int, expected: str) -> None:
        assert format_bytes(size) == expected

    def test_decimals(self) -> None:
        assert format_bytes(1100, decimals=0) == "1 KB"
        assert format_bytes(1100, decimals=3) == "1.074 KB"

    def test_negative_decimals_treated_as_zero(self) -> None:
        assert format_bytes(1536, decimals=-1) == "2 KB"

    def test_beyond_largest_unit_stays_in_yb(self) -> None:
        assert format_bytes(1024**9) == "1024 YB"


def _objects(n: int) -> list[StoredObject]:
    return [StoredObject(key=f"doc-{i:02d}.pdf", size=1024 * i) for i in range(1, n + 1)]


def _embedded_files(html: str) -> list[dict]:
    match = re.search(r"const ALL_FILES = (.*?);\n", html)
    assert match is not None
    return json.loads(match.group(1))


class TestRenderListing:
    def test_template_loaded_from_package_directory(self) -> None:
        assert (TEMPLATE_DIR / "listing.html").is_file()
        assert TEMPLATE_DIR.parent.name == "bucketview"

    def test_renders_current_page_items_only(self) -> None:
        objs = _objects(25)
        html = render_listing(paginate(objs, 3, 10), objs)
        assert "doc-21.pdf" in html
        assert "doc-25.pdf" in html
        # Pages 1-2 only appear inside the embedded JSON, not as list markup
        assert ">doc-01.pdf</a>" not in html
        assert ">doc-21.pdf</a>" in html

    def test_embeds_entire_listing(self) -> None:
        objs = _objects(25)
        html = render_listing(paginate(objs, 1, 10), objs)
        embedded = _embedded_files(html)
        assert len(embedded) == 25
        assert embedded[0] == {"key": "doc-01.pdf", "size": 1024}

    def test_pagination_bar(self) -> None:
        objs = _objects(25)
        html = render_listing(paginate(objs, 2, 10), objs)
        assert '<span id="current-page-display">2</span> / 3' in html
        assert 'href="?page=1"' in html
        assert 'href="?page=3"' in html
        assert "const TOTAL_PAGES = 3;" in html
        assert "const PAGE_SIZE = 10;" in html

    def test_empty_listing(self) -> None:
        html = render_listing(paginate([], 1, 10), [])
        assert "Directory is empty." in html
        assert '<span id="current-page-display">1</span> / 1' in html
        assert 'href="?page=' not in html
        assert _embedded_files(html) == []

    def test_sizes_formatted(self) -> None:
        objs = [StoredObject(key="big.iso", size=1536)]
        html = render_listing(paginate(objs, 1, 10), objs)
        assert '<span class="file-size">1.5 KB</span>' in html

    def test_download_link_is_url_encoded(self) -> None:
        objs = [StoredObject(key="reports/q1 & q2.csv", size=10)]
        html = render_listing(paginate(objs, 1, 10), objs)
        assert 'href="?file=reports/q1%20%26%20q2.csv"' in html

    def test_keys_are_escaped(self) -> None:
        objs = [StoredObject(key="<script>alert(1)</script>.txt", size=10)]
        html = render_listing(paginate(objs, 1, 10), objs)
        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html

    def test_title(self) -> None:
        html = render_listing(paginate([], 1, 10), [], title="Releases")
        assert "<title>Releases</title>" in html
        assert "<h1>Releases</h1>" in html
