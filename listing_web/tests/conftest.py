"""Shared test fixtures and utilities for the listing_web test suite."""

import base64
import json
import os
import tempfile
from io import BytesIO
from unittest.mock import MagicMock

import pytest

# Must be set before listing_web.app is imported (fails fast without a key)
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="listing_web_logs_"))

from listing_web.models import CompetitorInput, OEMLabelData, ProductInput  # noqa: E402
from listing_web.storage import InMemoryStore  # noqa: E402


@pytest.fixture
def sample_product():
    """A filled-in product form for a refurbished ThinkPad."""
    return ProductInput(
        oem_label_data=OEMLabelData(
            brand="Lenovo",
            model_name="ThinkPad T480",
            mtm="20L5CTO1WW",
            cpu="Intel Core i5-8350U",
            ram="8GB DDR4",
            storage="256GB SSD",
            display="14-inch FHD",
            os="Windows 11 Pro",
        ),
        condition="Grade A",
        price="5499",
        cost_price="3800",
        competitors=[
            CompetitorInput(name="Takealot", price="5500"),
            CompetitorInput(name="Evetech", price="5150"),
        ],
    )


@pytest.fixture
def valid_response_payload():
    """A well-formed generation reply as the model would send it."""
    return {
        "productTitle": "Refurbished Lenovo ThinkPad T480 Intel Core i5-8350U 8GB DDR4 256GB SSD",
        "seoKeyPhrase": "Refurbished Lenovo ThinkPad T480",
        "urlSlug": "refurbished-lenovo-thinkpad-t480",
        "longDescriptionHtml": "<h2>Business-ready</h2><p>...</p>",
        "shortDescriptionHtml": '<div class="headline">Reliable.</div>',
        "metaDescription": "Shop the Refurbished Lenovo ThinkPad T480.",
        "productAttributes": "Brand: Lenovo\nModel: ThinkPad T480\nRAM: 8GB DDR4",
        "productTags": "Lenovo, ThinkPad T480, 8GB, Refurbished, Benoni",
        "schemaMarkup": "{\"@type\": \"Product\"}",
        "pricingAnalysis": {
            "lowestCompetitorPrice": 5150,
            "highestCompetitorPrice": 5500,
            "averageCompetitorPrice": 5325,
            "marketPositioning": "Competitive",
            "suggestedPrice": 5299,
            "priceGap": -26,
            "recommendation": "Hold the current price.",
            "margin": None,
            "profit": None,
            "rationale": "Priced just under the market average with a local warranty.",
            "competitors": [
                {"name": "Takealot", "price": 5500},
                {"name": "Evetech", "price": 5150},
            ],
        },
    }


@pytest.fixture
def valid_response_text(valid_response_payload):
    return json.dumps(valid_response_payload)


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def png_base64():
    """A tiny PNG encoded as base64."""
    from PIL import Image

    buf = BytesIO()
    Image.new("RGB", (8, 8), (200, 30, 30)).save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("utf-8")


def make_openai_response(text):
    """Build a mock Responses API result whose first message holds ``text``."""
    reasoning = MagicMock()
    reasoning.content = None
    message = MagicMock()
    part = MagicMock()
    part.text = text
    message.content = [part]
    resp = MagicMock()
    resp.output = [reasoning, message]
    return resp


@pytest.fixture
def mock_openai_client():
    """Create a mock OpenAI client for testing without API calls."""
    return MagicMock()
