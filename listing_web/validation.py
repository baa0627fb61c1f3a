"""Input validation for the product form.

Errors are reported per competitor row and field so the form can show
them next to the offending input.
"""

import math
from typing import Dict, List

from .models import CompetitorInput, ProductInput

__all__ = [
    "InputValidationError",
    "is_valid_price",
    "validate_competitors",
    "validate_product_input",
]

NAME_REQUIRED = "Competitor name is required."
PRICE_REQUIRED = "Price is required."
PRICE_INVALID = "Price must be a valid number."


class InputValidationError(ValueError):
    """Raised when the product form has field errors that block generation."""

    def __init__(self, field_errors: Dict[str, Dict[str, str]]):
        super().__init__("Please fix the highlighted competitor fields.")
        self.field_errors = field_errors


def is_valid_price(value: str) -> bool:
    """True when ``value`` parses as a finite decimal number (e.g. "5150.50")."""
    try:
        number = float(value.strip())
    except (AttributeError, ValueError):
        return False
    return math.isfinite(number)


def validate_competitors(competitors: List[CompetitorInput]) -> Dict[int, Dict[str, str]]:
    """Validate competitor rows.

    Args:
        competitors: Rows in form order.

    Returns:
        Mapping of row index to {field: message}; empty when all rows are valid.
    """
    errors: Dict[int, Dict[str, str]] = {}
    for index, competitor in enumerate(competitors):
        row: Dict[str, str] = {}
        if not competitor.name.strip():
            row["name"] = NAME_REQUIRED
        if not competitor.price.strip():
            row["price"] = PRICE_REQUIRED
        elif not is_valid_price(competitor.price):
            row["price"] = PRICE_INVALID
        if row:
            errors[index] = row
    return errors


def validate_product_input(product: ProductInput) -> None:
    """Raise InputValidationError if the product cannot be submitted."""
    errors = validate_competitors(product.competitors)
    if errors:
        # JSON object keys must be strings
        raise InputValidationError({str(index): row for index, row in errors.items()})
