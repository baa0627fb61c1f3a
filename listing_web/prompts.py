"""Prompt generation for listing content and spec auto-fill.

The generation prompt is the contract with the model: it fixes the output
schema that response_parser.py validates, the formatting templates, and the
pricing rules that pricing.py mirrors locally.
"""

import json
import logging
from typing import Any, Dict, List

from .models import OEM_FIELDS, CompetitorInput, ProductInput
from .pricing import PRICE_GAP_THRESHOLD

__all__ = [
    "INTERNAL_ONLY_FIELDS",
    "format_competitor_pricing",
    "build_product_data",
    "build_generation_prompt",
    "build_generation_request",
    "build_autofill_prompt",
]

logger = logging.getLogger(__name__)

# Requested from the model for backend use, removed before display
INTERNAL_ONLY_FIELDS = ("schemaMarkup",)

SHORT_DESCRIPTION_TEMPLATE = (
    '<div class="headline">[One-sentence summary]</div>'
    "<h4>Specifications:</h4><ul>"
    '<li><div class="col-4">CPU: [CPU]</div></li>'
    "<li>Gen: [CPU Generation]</li>"
    "<li>Memory: [RAM]</li>"
    "<li>Drive: [Storage]</li>"
    "<li>Screen Size: [Display]</li>"
    "<li>OS: [OS]</li>"
    "<li>Webcam: [Webcam]</li>"
    "<li>GPU: [GPU]</li>"
    "</ul>"
)


def format_competitor_pricing(competitors: List[CompetitorInput]) -> str:
    """Join competitor rows into the "Name: Price, Name: Price" prompt string.

    Rows with a blank name or price are dropped.
    """
    pairs = [
        f"{c.name.strip()}: {c.price.strip()}"
        for c in competitors
        if c.name.strip() and c.price.strip()
    ]
    return ", ".join(pairs)


def build_product_data(product: ProductInput) -> Dict[str, Any]:
    """Product data as embedded in the prompt (no image, competitors as a string)."""
    data = product.to_dict()
    data.pop("competitors", None)
    data["competitor_pricing_data"] = format_competitor_pricing(product.competitors)
    return data


def build_generation_prompt(product: ProductInput, image_attached: bool = False) -> str:
    """Build the listing generation prompt.

    Args:
        product: Current form input.
        image_attached: Whether a label photo accompanies the prompt.

    Returns:
        Prompt string for the LLM.
    """
    product_json = json.dumps(build_product_data(product), indent=2, ensure_ascii=False)
    threshold = int(PRICE_GAP_THRESHOLD)

    if image_attached:
        source_note = (
            "An image of the OEM label IS attached. Use it as the primary source of truth "
            "for all OEM specifications (brand, model, MTM, CPU, RAM, storage, etc.). "
            "Perform OCR to extract this data."
        )
    else:
        source_note = "No label image is attached. Rely solely on the JSON product data."

    return f"""**Persona:** Act as a knowledgeable and trustworthy tech marketing specialist for TechRestored.co.za. The tone should be professional, clear, and persuasive, focusing on value, reliability, and local South African service. Emphasize quality and performance for the target audience.

**Core Instructions & Workflow:**
Based on the provided product data, generate a complete SEO-optimized content package. Your entire response MUST be a single, valid JSON object, with no markdown formatting, code fences or text outside the JSON.

**Expected JSON Structure:**
{{
  "productTitle": "string",
  "seoKeyPhrase": "string",
  "urlSlug": "string",
  "longDescriptionHtml": "string (300-500 words, clean HTML with <h2>, <h3>, <p>, <ul>, <li>, <strong> tags)",
  "shortDescriptionHtml": "string (clean HTML snippet as per instructions)",
  "metaDescription": "string (155-160 characters)",
  "productAttributes": "string (one 'Key: Value' pair per line, separated by newlines)",
  "productTags": "string (comma-separated)",
  "schemaMarkup": "string (JSON-LD Product schema)",
  "pricingAnalysis": {{
    "lowestCompetitorPrice": "number or null",
    "highestCompetitorPrice": "number or null",
    "averageCompetitorPrice": "number or null",
    "marketPositioning": "string",
    "suggestedPrice": "number or null",
    "priceGap": "number or null",
    "recommendation": "string",
    "margin": "number or null",
    "profit": "number or null",
    "rationale": "string (2-3 sentences)",
    "competitors": [{{ "name": "string", "price": "number" }}]
  }}
}}

**Detailed Content Generation Rules:**

**Content Sanitization:** When generating user-facing content (titles, descriptions, tags, meta description), never include internal condition grades (e.g., 'Grade A', 'Grade B'). Refer to the condition only as 'Refurbished' or 'Certified Refurbished' as appropriate for the context.

1.  **Analyze Input:**
    -   {source_note}
    -   The 'Product Data to Use' JSON below provides supplementary information (condition, price, audience) and is a **fallback for any OEM data you cannot find in the image**.
    -   If there is a conflict between the image and the JSON for an OEM spec, **the data from the image always wins**.
    -   If no image is provided, the JSON data is authoritative.
2.  **Product Title:** Format: "Refurbished [Brand] [Model] [CPU] [RAM] [Storage]"
3.  **SEO KeyPhrase:** Format: "Refurbished [Brand] [Model]"
4.  **URL Slug:** Generate a clean, lowercase, hyphenated slug from the KeyPhrase.
5.  **Long Description (HTML):** Write a 300-500 word description.
    -   <h2>: Engaging, benefit-oriented headline.
    -   <p>: Hook the reader, address the target audience.
    -   <h3>: "Core Performance for Everyday Success"
    -   <p>: Detail CPU, RAM, SSD and their benefits. Use <strong>.
    -   <h3>: "Quality You Can Trust"
    -   <p>: Explain "Certified Refurbished", mention meticulous testing and the 'local South African warranty'.
    -   <h3>: "Why Choose This Laptop from TechRestored?"
    -   <ul><li>: List the USPs. Weave in location and local SEO tags.
    -   <p>: Strong closing with a call-to-action.
6.  **Short Description (HTML):** Use this exact HTML structure, replacing the bracketed placeholders with the specs:
    `{SHORT_DESCRIPTION_TEMPLATE}`
7.  **Meta Description:** 155-160 characters. Must include the KeyPhrase, a key benefit, and a CTA.
8.  **Product Attributes:** One "Key: Value" line per main spec, joined with newline characters.
9.  **Product Tags:** Comma-separated list: brand, model, specs, condition, location tags, MTM.
10. **Pricing Analysis & Recommendation:**
    -   The 'competitor_pricing_data' field is a string of comma-separated pairs, e.g., "Takealot: 5500, Evetech: 5150".
    -   Parse this string into each competitor and their price and populate the 'competitors' array with the parsed pairs.
    -   Calculate the lowest, highest, and average competitor price. Use null when there are no competitors.
    -   Analyze these prices against the product's own 'price' and USPs and state in 'marketPositioning' whether our price is lower, higher, or about average.
    -   Justify a 'suggestedPrice' based on our value proposition (warranty, testing).
    -   priceGap = suggestedPrice - averageCompetitorPrice.
    -   recommendation: if priceGap < -{threshold}, advise increasing the price; if priceGap > {threshold}, advise lowering the price; otherwise advise holding the price.
    -   If 'costPrice' is supplied: profit = suggestedPrice - costPrice and margin = profit / suggestedPrice * 100. Otherwise set profit and margin to null.
    -   Provide a concise 'rationale'.
    -   Never use 0 for a value you cannot determine; use null.

**Product Data to Use:**
```json
{product_json}
```
"""


def build_generation_request(product: ProductInput) -> List[Dict[str, Any]]:
    """Build the ordered content parts for the generation call.

    The label photo, when present, goes before the text so the model treats
    it as the primary evidence.
    """
    image = product.oem_image
    parts: List[Dict[str, Any]] = []
    if image is not None:
        parts.append(
            {
                "type": "input_image",
                "image_url": f"data:{image.mime_type};base64,{image.base64_data}",
            }
        )
    parts.append(
        {
            "type": "input_text",
            "text": build_generation_prompt(product, image_attached=image is not None),
        }
    )
    return parts


def build_autofill_prompt(query: str) -> str:
    """Build the spec extraction prompt for a URL or model number.

    Args:
        query: Free text entered by the user (product URL or model/MTM).

    Returns:
        Prompt string for a search-enabled LLM call.
    """
    keys_example = ",\n".join(f'  "{key}": "string"' for key in OEM_FIELDS)
    return f"""You are a laptop specification researcher. Use web search to find the official hardware specifications for the product identified below.

PRODUCT (URL or model number):
\"\"\"{query.strip()}\"\"\"

YOUR TASK:
1. Search for the manufacturer's specification page or a reliable retailer listing.
2. Extract the specifications for this exact model / MTM.
3. If a value cannot be found with confidence, use an empty string. Do not guess.

RESPONSE FORMAT (return exactly one JSON object, no prose, no markdown):
{{
{keys_example}
}}

RULES:
- Use ONLY the keys above; every key must be present.
- All values are plain strings (e.g. "8GB DDR4", "256GB SSD", "15.6-inch").
- "model_name" is the marketing model (e.g. "ThinkPad T480"); "mtm" is the machine type model / SKU.
"""
