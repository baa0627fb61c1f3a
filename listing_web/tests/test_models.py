"""Test ProductInput and GeneratedContent data structures."""

import math

import pytest

from listing_web.models import (
    OEM_FIELDS,
    CompetitorInput,
    GeneratedContent,
    LabelImage,
    OEMLabelData,
    PricingAnalysis,
    ProductInput,
    to_number,
)


class TestToNumber:
    @pytest.mark.parametrize(
        "value,expected",
        [(5500, 5500.0), (5150.5, 5150.5), ("5150.50", 5150.5), ("R 5,500", 5500.0), ("r4999", 4999.0)],
    )
    def test_numeric_values(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [None, "", "N/A", "abc", True, [], {}, math.nan, "inf"])
    def test_unknown_values(self, value):
        assert to_number(value) is None


class TestOEMLabelData:
    def test_has_twelve_fields(self):
        assert len(OEM_FIELDS) == 12
        assert list(OEMLabelData().to_dict()) == list(OEM_FIELDS)

    def test_from_dict_fills_missing(self):
        data = OEMLabelData.from_dict({"brand": "Dell", "ram": None})
        assert data.brand == "Dell"
        assert data.ram == ""
        assert data.gpu == ""

    @pytest.mark.parametrize("value", ["garbage", ["Lenovo"], 5, None])
    def test_from_dict_non_object_gives_blank_label(self, value):
        assert OEMLabelData.from_dict(value) == OEMLabelData()

    def test_merged_with_applies_only_non_empty(self):
        current = OEMLabelData(brand="Lenovo", cpu="i5")
        merged = current.merged_with({"brand": "", "cpu": "i7-8650U", "gpu": "UHD 620"})
        assert merged.brand == "Lenovo"
        assert merged.cpu == "i7-8650U"
        assert merged.gpu == "UHD 620"
        # original untouched
        assert current.cpu == "i5"


class TestProductInput:
    """Test ProductInput serialization."""

    def test_defaults(self):
        product = ProductInput()
        assert product.condition == "Refurbished"
        assert product.location == "Benoni, Gauteng"
        assert product.competitors == []
        assert product.oem_image is None

    def test_to_dict_excludes_image(self, sample_product):
        sample_product.oem_image = LabelImage(data=b"\x89PNG", mime_type="image/png")
        data = sample_product.to_dict()
        assert "oem_image" not in data
        assert "oemImage" not in data

    def test_round_trip(self, sample_product):
        restored = ProductInput.from_dict(sample_product.to_dict())
        assert restored == sample_product

    def test_competitor_order_preserved(self):
        product = ProductInput.from_dict(
            {"competitors": [{"name": "B", "price": "2"}, {"name": "A", "price": "1"}]}
        )
        assert [c.name for c in product.competitors] == ["B", "A"]

    def test_ignores_malformed_competitors(self):
        product = ProductInput.from_dict({"competitors": [{"name": "A", "price": "1"}, "junk"]})
        assert product.competitors == [CompetitorInput("A", "1")]

    def test_label_image_base64(self):
        image = LabelImage(data=b"abc", mime_type="image/png")
        assert image.base64_data == "YWJj"


class TestGeneratedContent:
    def test_from_dict_tag_list_joined(self):
        content = GeneratedContent.from_dict(
            {"productTitle": "X", "pricingAnalysis": {}, "productTags": ["Lenovo", " T480 ", ""]}
        )
        assert content.productTags == "Lenovo, T480"

    def test_pricing_competitors_without_price_dropped(self):
        analysis = PricingAnalysis.from_dict(
            {"competitors": [{"name": "Takealot", "price": "5500"}, {"name": "Ghost", "price": None}]}
        )
        assert [c.name for c in analysis.competitors] == ["Takealot"]
        assert analysis.competitors[0].price == 5500.0

    @pytest.mark.parametrize("competitors", [5, True, "Takealot", {"name": "Takealot"}])
    def test_pricing_non_list_competitors_ignored(self, competitors):
        assert PricingAnalysis.from_dict({"competitors": competitors}).competitors == []

    def test_to_dict_shape(self):
        content = GeneratedContent.from_dict({"productTitle": "X", "pricingAnalysis": {"suggestedPrice": 1}})
        data = content.to_dict()
        assert data["pricingAnalysis"]["suggestedPrice"] == 1.0
        assert data["pricingAnalysis"]["competitors"] == []
