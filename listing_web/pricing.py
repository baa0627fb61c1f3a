"""Pricing intelligence helpers.

The model is asked to do the pricing analysis itself; these functions apply
the same rules locally so that derivable fields the model left empty can be
filled in, and so the legacy competitor string can be parsed.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from .models import CompetitorInput, PricingAnalysis, to_number

__all__ = [
    "PRICE_GAP_THRESHOLD",
    "RECOMMEND_INCREASE",
    "RECOMMEND_DECREASE",
    "RECOMMEND_HOLD",
    "parse_competitor_pricing",
    "competitor_statistics",
    "price_gap",
    "classify_recommendation",
    "profit_and_margin",
    "fill_derived_pricing",
]

logger = logging.getLogger(__name__)

# Gap (our price minus market average) beyond which a price change is advised
PRICE_GAP_THRESHOLD = 300.0

RECOMMEND_INCREASE = (
    "Our price is well below the market average. Consider increasing the price "
    "to capture more margin."
)
RECOMMEND_DECREASE = (
    "Our price is well above the market average. Consider lowering the price "
    "to stay competitive."
)
RECOMMEND_HOLD = "Our price is in line with the market. Hold the current price."


def _clean_legacy_price(price: str) -> str:
    """Drop spaces and a leading "R" so "R 5 150" reads as "5150"."""
    cleaned = price.replace(" ", "")
    if cleaned[:1] in ("R", "r"):
        cleaned = cleaned[1:]
    return cleaned


def parse_competitor_pricing(text: Optional[str]) -> List[CompetitorInput]:
    """Parse a "Name: Price, Name: Price" string into competitor rows.

    This is the format older saved products used. Entries without a colon
    are skipped; names may themselves contain colons, so the split is on
    the last one.

    Args:
        text: e.g. "Takealot: 5500, Evetech: 5150".

    Returns:
        Competitor rows in input order. Names are stripped; prices lose
        spaces and a leading currency "R".
    """
    if not text or not isinstance(text, str):
        return []

    competitors = []
    for chunk in text.split(","):
        chunk = chunk.strip()
        if ":" not in chunk:
            if chunk:
                logger.debug(f"Skipping competitor entry without price: {chunk!r}")
            continue
        name, price = chunk.rsplit(":", 1)
        name, price = name.strip(), _clean_legacy_price(price)
        if name or price:
            competitors.append(CompetitorInput(name=name, price=price))
    return competitors


def competitor_statistics(
    prices: Iterable[float],
) -> Tuple[Optional[float], Optional[float], Optional[float]]:
    """Return (lowest, highest, average); all None when there are no prices."""
    values = [p for p in prices if p is not None]
    if not values:
        return None, None, None
    return min(values), max(values), round(sum(values) / len(values), 2)


def price_gap(our_price: Optional[float], average: Optional[float]) -> Optional[float]:
    if our_price is None or average is None:
        return None
    return round(our_price - average, 2)


def classify_recommendation(gap: Optional[float]) -> str:
    """Map a price gap to increase / lower / hold guidance."""
    if gap is None:
        return ""
    if gap < -PRICE_GAP_THRESHOLD:
        return RECOMMEND_INCREASE
    if gap > PRICE_GAP_THRESHOLD:
        return RECOMMEND_DECREASE
    return RECOMMEND_HOLD


def profit_and_margin(
    suggested_price: Optional[float],
    cost_price: Optional[float],
) -> Tuple[Optional[float], Optional[float]]:
    """Return (profit, margin percent) or (None, None) when not computable."""
    if suggested_price is None or cost_price is None:
        return None, None
    profit = round(suggested_price - cost_price, 2)
    if suggested_price == 0:
        return profit, None
    return profit, round(profit / suggested_price * 100, 2)


def fill_derived_pricing(
    analysis: PricingAnalysis,
    cost_price: Optional[str] = None,
) -> PricingAnalysis:
    """Fill pricing fields the model left null but which can be derived.

    Values the model supplied are kept as-is. The gap is measured from the
    suggested price, matching the instructions given to the model.

    Args:
        analysis: Interpreted pricing analysis, modified in place.
        cost_price: Cost price as typed into the form, if any.

    Returns:
        The same analysis object.
    """
    lowest, highest, average = competitor_statistics(c.price for c in analysis.competitors)
    if analysis.lowestCompetitorPrice is None:
        analysis.lowestCompetitorPrice = lowest
    if analysis.highestCompetitorPrice is None:
        analysis.highestCompetitorPrice = highest
    if analysis.averageCompetitorPrice is None:
        analysis.averageCompetitorPrice = average

    if analysis.priceGap is None:
        analysis.priceGap = price_gap(analysis.suggestedPrice, analysis.averageCompetitorPrice)
    if not analysis.recommendation:
        analysis.recommendation = classify_recommendation(analysis.priceGap)

    cost = to_number(cost_price)
    if cost is not None and (analysis.profit is None or analysis.margin is None):
        profit, margin = profit_and_margin(analysis.suggestedPrice, cost)
        if analysis.profit is None:
            analysis.profit = profit
        if analysis.margin is None:
            analysis.margin = margin

    return analysis
