"""Data structures for product input and generated listing content.

ProductInput is what the form collects; GeneratedContent is what the model
returns after interpretation. Both convert to and from plain dicts using the
camelCase/snake_case names the browser form and the model schema use.
"""

import base64
import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

__all__ = [
    "OEM_FIELDS",
    "OEMLabelData",
    "CompetitorInput",
    "LabelImage",
    "ProductInput",
    "Competitor",
    "PricingAnalysis",
    "GeneratedContent",
    "to_number",
]

# Order matches the form and the auto-fill schema
OEM_FIELDS = (
    "brand",
    "model_name",
    "mtm",
    "cpu",
    "ram",
    "storage",
    "display",
    "resolution",
    "os",
    "gpu",
    "webcam",
    "color",
)

OEM_FIELD_LABELS = {
    "brand": "Brand",
    "model_name": "Model Name",
    "mtm": "MTM (SKU)",
    "cpu": "CPU",
    "ram": "RAM",
    "storage": "Storage",
    "display": "Display",
    "resolution": "Resolution",
    "os": "OS",
    "gpu": "GPU",
    "webcam": "Webcam",
    "color": "Color",
}


def to_number(value: Any) -> Optional[float]:
    """Coerce a model-supplied value to float, or None when it is not numeric.

    Accepts ints, floats and numeric strings (an optional leading "R" and
    thousands separators are tolerated). Booleans, NaN and anything else
    become None so that unknown values are never shown as zero.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace(" ", "")
        if cleaned[:1] in ("R", "r"):
            cleaned = cleaned[1:]
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass
class OEMLabelData:
    """Manufacturer label specs, each an independent free-text field."""

    brand: str = ""
    model_name: str = ""
    mtm: str = ""
    cpu: str = ""
    ram: str = ""
    storage: str = ""
    display: str = ""
    resolution: str = ""
    os: str = ""
    gpu: str = ""
    webcam: str = ""
    color: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in OEM_FIELDS}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "OEMLabelData":
        if not isinstance(data, dict):
            data = {}
        return cls(**{name: _as_text(data.get(name, "")) for name in OEM_FIELDS})

    def merged_with(self, patch: Dict[str, str]) -> "OEMLabelData":
        """Return a copy with every non-empty value from ``patch`` applied."""
        values = self.to_dict()
        for name in OEM_FIELDS:
            proposed = (patch.get(name) or "").strip()
            if proposed:
                values[name] = proposed
        return OEMLabelData(**values)


@dataclass
class CompetitorInput:
    """One competitor row as typed into the form (price not yet numeric)."""

    name: str = ""
    price: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "price": self.price}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompetitorInput":
        return cls(name=_as_text(data.get("name", "")), price=_as_text(data.get("price", "")))


@dataclass
class LabelImage:
    """An uploaded OEM label photo, ready to attach inline."""

    data: bytes
    mime_type: str

    @property
    def base64_data(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")


@dataclass
class ProductInput:
    """Everything the form collects for one product."""

    oem_label_data: OEMLabelData = field(default_factory=OEMLabelData)
    condition: str = "Refurbished"
    target_audience: str = "Professionals, Students, Small Business Owners"
    usp: str = (
        "Dependable performance, Durable build, Affordable price, "
        "Local South African warranty"
    )
    local_seo_tags: str = (
        "Benoni laptop deals, Gauteng refurbished laptops, South Africa tech store"
    )
    price: str = ""
    cost_price: str = ""
    location: str = "Benoni, Gauteng"
    competitors: List[CompetitorInput] = field(default_factory=list)
    oem_image: Optional[LabelImage] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for storage and prompts. The image is never included."""
        return {
            "oem_label_data": self.oem_label_data.to_dict(),
            "condition": self.condition,
            "target_audience": self.target_audience,
            "usp": self.usp,
            "price": self.price,
            "costPrice": self.cost_price,
            "location": self.location,
            "local_seo_tags": self.local_seo_tags,
            "competitors": [c.to_dict() for c in self.competitors],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductInput":
        """Create from a dict; missing keys take the form defaults."""
        defaults = cls()
        competitors = data.get("competitors")
        return cls(
            oem_label_data=OEMLabelData.from_dict(data.get("oem_label_data")),
            condition=_as_text(data.get("condition", defaults.condition)),
            target_audience=_as_text(data.get("target_audience", defaults.target_audience)),
            usp=_as_text(data.get("usp", defaults.usp)),
            local_seo_tags=_as_text(data.get("local_seo_tags", defaults.local_seo_tags)),
            price=_as_text(data.get("price", "")),
            cost_price=_as_text(data.get("costPrice", data.get("cost_price", ""))),
            location=_as_text(data.get("location", defaults.location)),
            competitors=[
                CompetitorInput.from_dict(c)
                for c in (competitors if isinstance(competitors, list) else [])
                if isinstance(c, dict)
            ],
        )


@dataclass
class Competitor:
    name: str
    price: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "price": self.price}


@dataclass
class PricingAnalysis:
    """Pricing intelligence returned by the model.

    Every numeric field is Optional; None means "unknown" and is rendered
    as N/A by the view layer.
    """

    lowestCompetitorPrice: Optional[float] = None
    highestCompetitorPrice: Optional[float] = None
    averageCompetitorPrice: Optional[float] = None
    marketPositioning: str = ""
    suggestedPrice: Optional[float] = None
    priceGap: Optional[float] = None
    recommendation: str = ""
    margin: Optional[float] = None
    profit: Optional[float] = None
    rationale: str = ""
    competitors: List[Competitor] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["competitors"] = [c.to_dict() for c in self.competitors]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PricingAnalysis":
        entries = data.get("competitors")
        competitors = []
        for entry in (entries if isinstance(entries, list) else []):
            if not isinstance(entry, dict):
                continue
            price = to_number(entry.get("price"))
            name = _as_text(entry.get("name")).strip()
            # Rows without a usable price cannot be charted or averaged
            if name and price is not None:
                competitors.append(Competitor(name=name, price=price))

        return cls(
            lowestCompetitorPrice=to_number(data.get("lowestCompetitorPrice")),
            highestCompetitorPrice=to_number(data.get("highestCompetitorPrice")),
            averageCompetitorPrice=to_number(data.get("averageCompetitorPrice")),
            marketPositioning=_as_text(data.get("marketPositioning")),
            suggestedPrice=to_number(data.get("suggestedPrice")),
            priceGap=to_number(data.get("priceGap")),
            recommendation=_as_text(data.get("recommendation")),
            margin=to_number(data.get("margin")),
            profit=to_number(data.get("profit")),
            rationale=_as_text(data.get("rationale")),
            competitors=competitors,
        )


def _flatten_attributes(value: Any) -> str:
    """Normalize productAttributes to one "Key: Value" line per attribute."""
    if isinstance(value, dict):
        return "\n".join(f"{k}: {v}" for k, v in value.items())
    if isinstance(value, list):
        return "\n".join(_as_text(v) for v in value)
    return _as_text(value)


def _flatten_tags(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(_as_text(v).strip() for v in value if _as_text(v).strip())
    return _as_text(value)


@dataclass
class GeneratedContent:
    """The listing content package for one product."""

    productTitle: str
    pricingAnalysis: PricingAnalysis
    seoKeyPhrase: str = ""
    urlSlug: str = ""
    longDescriptionHtml: str = ""
    shortDescriptionHtml: str = ""
    metaDescription: str = ""
    productAttributes: str = ""
    productTags: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productTitle": self.productTitle,
            "seoKeyPhrase": self.seoKeyPhrase,
            "urlSlug": self.urlSlug,
            "longDescriptionHtml": self.longDescriptionHtml,
            "shortDescriptionHtml": self.shortDescriptionHtml,
            "metaDescription": self.metaDescription,
            "productAttributes": self.productAttributes,
            "productTags": self.productTags,
            "pricingAnalysis": self.pricingAnalysis.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedContent":
        pricing = data.get("pricingAnalysis")
        return cls(
            productTitle=_as_text(data.get("productTitle")),
            pricingAnalysis=PricingAnalysis.from_dict(pricing if isinstance(pricing, dict) else {}),
            seoKeyPhrase=_as_text(data.get("seoKeyPhrase")),
            urlSlug=_as_text(data.get("urlSlug")),
            longDescriptionHtml=_as_text(data.get("longDescriptionHtml")),
            shortDescriptionHtml=_as_text(data.get("shortDescriptionHtml")),
            metaDescription=_as_text(data.get("metaDescription")),
            productAttributes=_flatten_attributes(data.get("productAttributes")),
            productTags=_flatten_tags(data.get("productTags")),
        )
