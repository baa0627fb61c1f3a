"""Centralized configuration for the listing generator web app."""

import os
from pathlib import Path

# Determine project root (parent of 'listing_web' directory)
_THIS_DIR = Path(__file__).parent
_PROJECT_ROOT = _THIS_DIR.parent

# LLM Configuration
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-5-mini")
# "minimal" keeps reasoning latency low; the generation prompt is fully prescriptive
LLM_REASONING_EFFORT = os.getenv("LLM_REASONING_EFFORT", "minimal")

# Flask app settings (allow env overrides; default debug off for safety)
# Render sets PORT dynamically; fall back to FLASK_PORT or 5000 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"
SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

# Saved product slots
STORAGE_DIR = Path(os.getenv("STORAGE_DIR", str(_PROJECT_ROOT / "data")))
SAVED_PRODUCT_KEY = "savedProductData"

# Label photo limit in bytes (5MB)
MAX_IMAGE_SIZE = int(os.getenv("MAX_IMAGE_SIZE", str(5 * 1024 * 1024)))

# "greedy" (first '{' to last '}') or "fenced" (prefer ```json blocks)
JSON_EXTRACTION_STRATEGY = os.getenv("JSON_EXTRACTION_STRATEGY", "greedy")

# Storefront used in the SEO snippet preview
SITE_PRODUCT_URL = os.getenv("SITE_PRODUCT_URL", "https://techrestored.co.za/product/")


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing at startup."""


def require_api_key() -> str:
    """Return the OpenAI API key or fail fast if it is not configured."""
    api_key = os.getenv("OPENAI_API_KEY", "").strip()
    if not api_key:
        raise ConfigurationError(
            "OPENAI_API_KEY environment variable not set. "
            "Add it to your environment or the .env file."
        )
    return api_key
