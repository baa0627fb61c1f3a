"""Flask web app for generating refurbished laptop listings.

Serves the product form and registers the JSON API. The OpenAI API key is
checked at import so a misconfigured deployment fails at startup rather
than on the first request.
"""

import hmac
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, Response, render_template, request
from werkzeug.datastructures import Authorization

# Load environment variables from .env file (explicitly specify path)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from .api import api  # noqa: E402
from .config import (  # noqa: E402
    FLASK_DEBUG,
    FLASK_HOST,
    FLASK_PORT,
    SECRET_KEY,
    STORAGE_DIR,
    require_api_key,
)
from .models import OEM_FIELD_LABELS, ProductInput  # noqa: E402
from .storage import JsonFileStore  # noqa: E402

logger = logging.getLogger(__name__)

require_api_key()

app = Flask(__name__)
app.config["SECRET_KEY"] = SECRET_KEY
app.config["PRODUCT_STORE"] = JsonFileStore(STORAGE_DIR / "saved_products.json")
app.register_blueprint(api)


# ---------- ACCESS CONTROL ----------


def _credentials_match(auth: Optional[Authorization], user: str, password: str) -> bool:
    if auth is None or auth.type != "basic":
        return False
    username_ok = hmac.compare_digest((auth.username or "").encode(), user.encode())
    password_ok = hmac.compare_digest((auth.password or "").encode(), password.encode())
    return username_ok and password_ok


@app.before_request
def require_login() -> Optional[Response]:
    """Gate every route behind Basic Auth when DEMO_USER and DEMO_PASS are set."""
    user, password = os.getenv("DEMO_USER"), os.getenv("DEMO_PASS")
    if not user or not password:
        return None
    if _credentials_match(request.authorization, user, password):
        return None
    return Response(
        "Login required to use the listing generator",
        401,
        {"WWW-Authenticate": 'Basic realm="Listing Generator"'},
    )


# ---------- FLASK ROUTES ----------


@app.route("/", methods=["GET"])
def index() -> str:
    """Render the product form page."""
    return render_template(
        "index.html",
        defaults=ProductInput().to_dict(),
        oem_labels=OEM_FIELD_LABELS,
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
