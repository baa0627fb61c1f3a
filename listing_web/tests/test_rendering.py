"""Test view helpers."""

import math

import pytest

from listing_web.models import Competitor, GeneratedContent, PricingAnalysis
from listing_web.rendering import (
    format_price,
    pricing_chart_rows,
    render_content,
    seo_snippet,
    split_attributes,
    split_tags,
    truncate_text,
)


class TestFormatPrice:
    def test_number(self):
        assert format_price(5150.5) == "R 5150.50"

    @pytest.mark.parametrize("value", [None, math.nan, "5000", True])
    def test_unknown_is_na(self, value):
        assert format_price(value) == "N/A"

    def test_null_suggested_price_renders_na(self):
        """A null suggestedPrice must never show as R 0.00."""
        content = GeneratedContent(productTitle="X", pricingAnalysis=PricingAnalysis())
        view = render_content(content)
        assert view["pricing"]["suggested_price"] == "N/A"
        assert view["pricing"]["margin"] == "N/A"
        assert view["pricing"]["chart"] == []


class TestSplitting:
    def test_attributes(self):
        rows = split_attributes("Brand: Lenovo\n\nDisplay: 14\": FHD\nLoose line")
        assert rows[0] == {"key": "Brand", "value": "Lenovo"}
        assert rows[1] == {"key": "Display", "value": "14\": FHD"}
        assert rows[2] == {"key": "", "value": "Loose line"}

    def test_tags(self):
        assert split_tags("Lenovo, T480 ,, Refurbished") == ["Lenovo", "T480", "Refurbished"]
        assert split_tags("") == []


class TestSeoSnippet:
    def test_short_text_unchanged(self):
        assert truncate_text("short", 60) == "short"

    def test_truncates_on_word_boundary(self):
        assert truncate_text("alpha beta gamma", 12) == "alpha beta..."

    def test_truncates_hard_without_space(self):
        assert truncate_text("x" * 70, 60) == "x" * 60 + "..."

    def test_snippet(self):
        snippet = seo_snippet("Title", "refurbished-lenovo", "Desc")
        assert snippet["url"].endswith("/product/refurbished-lenovo")


class TestPricingChart:
    def test_sorted_descending_with_widths(self):
        rows = pricing_chart_rows(5000.0, [Competitor("Takealot", 5500.0), Competitor("Evetech", 5150.0)])
        assert [r["name"] for r in rows] == ["Takealot", "Evetech", "Our Suggested Price"]
        assert rows[0]["width_percent"] == 100.0
        assert rows[2]["is_suggested"]
        assert rows[2]["label"] == "R 5000.00"

    def test_without_suggested_price(self):
        rows = pricing_chart_rows(None, [Competitor("Takealot", 5500.0)])
        assert len(rows) == 1
        assert not rows[0]["is_suggested"]
