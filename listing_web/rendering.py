"""View helpers for displaying generated content.

Turns GeneratedContent into plain values for the template and JSON API:
formatted prices, attribute and tag lists, the pricing chart rows and a
search-result snippet preview.
"""

import math
from typing import Any, Dict, List, Optional

from .config import SITE_PRODUCT_URL
from .models import Competitor, GeneratedContent

__all__ = [
    "format_price",
    "split_attributes",
    "split_tags",
    "truncate_text",
    "seo_snippet",
    "pricing_chart_rows",
    "render_content",
]

NOT_AVAILABLE = "N/A"


def format_price(value: Optional[float]) -> str:
    """Format a rand amount, "N/A" for anything that is not a number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        return NOT_AVAILABLE
    return f"R {value:.2f}"


def split_attributes(attributes: str) -> List[Dict[str, str]]:
    """Parse the "Key: Value" lines of productAttributes."""
    rows = []
    for line in (attributes or "").splitlines():
        line = line.strip()
        if not line:
            continue
        key, sep, value = line.partition(":")
        if sep:
            rows.append({"key": key.strip(), "value": value.strip()})
        else:
            rows.append({"key": "", "value": line})
    return rows


def split_tags(tags: str) -> List[str]:
    return [t.strip() for t in (tags or "").split(",") if t.strip()]


def truncate_text(text: str, max_length: int) -> str:
    """Cut at the last space before ``max_length`` and append "..."."""
    if len(text) <= max_length:
        return text
    last_space = text[:max_length].rfind(" ")
    return text[: last_space if last_space > 0 else max_length] + "..."


def seo_snippet(title: str, slug: str, description: str) -> Dict[str, str]:
    """Approximate how the listing appears in a search result."""
    return {
        "url": f"{SITE_PRODUCT_URL}{slug}",
        "title": truncate_text(title, 60),
        "description": truncate_text(description, 160),
    }


def pricing_chart_rows(
    suggested_price: Optional[float],
    competitors: List[Competitor],
) -> List[Dict[str, Any]]:
    """Bar rows for the market comparison, highest price first.

    The suggested price is included when known. Widths are relative to the
    highest price.
    """
    entries = []
    if suggested_price is not None:
        entries.append({"name": "Our Suggested Price", "price": suggested_price, "is_suggested": True})
    entries.extend(
        {"name": c.name, "price": c.price, "is_suggested": False} for c in competitors
    )
    if not entries:
        return []

    max_price = max(e["price"] for e in entries)
    for entry in entries:
        entry["width_percent"] = round(entry["price"] / max_price * 100, 1) if max_price > 0 else 0
        entry["label"] = format_price(entry["price"])
    return sorted(entries, key=lambda e: e["price"], reverse=True)


def render_content(content: GeneratedContent) -> Dict[str, Any]:
    """Build the display model for one generated content package."""
    pricing = content.pricingAnalysis
    return {
        "attributes": split_attributes(content.productAttributes),
        "tags": split_tags(content.productTags),
        "seo_snippet": seo_snippet(content.productTitle, content.urlSlug, content.metaDescription),
        "pricing": {
            "suggested_price": format_price(pricing.suggestedPrice),
            "average_price": format_price(pricing.averageCompetitorPrice),
            "lowest_price": format_price(pricing.lowestCompetitorPrice),
            "highest_price": format_price(pricing.highestCompetitorPrice),
            "price_gap": format_price(pricing.priceGap),
            "profit": format_price(pricing.profit),
            "margin": NOT_AVAILABLE if pricing.margin is None else f"{pricing.margin:.1f}%",
            "recommendation": pricing.recommendation or NOT_AVAILABLE,
            "market_positioning": pricing.marketPositioning,
            "rationale": pricing.rationale,
            "chart": pricing_chart_rows(pricing.suggestedPrice, pricing.competitors),
        },
    }
