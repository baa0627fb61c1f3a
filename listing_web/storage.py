"""Saved product slots.

A product form can be saved to a single named slot and loaded back later.
Storage goes through a small key-value interface so tests can use the
in-memory store while the app uses a JSON file on disk.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from .config import SAVED_PRODUCT_KEY
from .logging_utils import log_interaction
from .models import ProductInput
from .pricing import parse_competitor_pricing

__all__ = [
    "CorruptStorageError",
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
    "save_product_input",
    "load_product_input",
]

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Could not load product data. It may be corrupted."


class CorruptStorageError(ValueError):
    """The saved slot exists but does not hold a readable product."""

    kind = "storage"
    user_message = LOAD_FAILED_MESSAGE


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryStore:
    """Dict-backed store, used by tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """All slots in one JSON file, rewritten atomically on every set."""

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Storage file {self.path} is not valid JSON: {e}")
            raise CorruptStorageError(str(e)) from e
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._read_all()
            except CorruptStorageError:
                # Saving is an explicit overwrite, so an unreadable file is replaced
                data = {}
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except OSError:
                os.unlink(tmp_path)
                raise


def save_product_input(
    store: KeyValueStore,
    product: ProductInput,
    key: str = SAVED_PRODUCT_KEY,
) -> None:
    """Overwrite the saved slot with ``product`` (the image is not saved)."""
    store.set(key, json.dumps(product.to_dict(), ensure_ascii=False))


def load_product_input(
    store: KeyValueStore,
    key: str = SAVED_PRODUCT_KEY,
) -> Optional[ProductInput]:
    """Load the saved product.

    Older saves kept competitors as one "Name: Price, ..." string under
    ``competitor_pricing_data``; those are converted to competitor rows.

    Returns:
        The saved product with no image, or None if nothing was saved.

    Raises:
        CorruptStorageError: If the slot cannot be parsed as a product.
    """
    raw = store.get(key)
    if raw is None:
        return None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        log_interaction("storage_error", {"error": str(e), "key": key})
        raise CorruptStorageError(str(e)) from e
    if not isinstance(data, dict):
        log_interaction("storage_error", {"error": "saved value is not an object", "key": key})
        raise CorruptStorageError("saved value is not an object")

    if not isinstance(data.get("competitors"), list) and "competitor_pricing_data" in data:
        legacy = data.pop("competitor_pricing_data")
        data["competitors"] = [c.to_dict() for c in parse_competitor_pricing(legacy)]
        logger.info("Converted legacy competitor_pricing_data to competitor list")

    return ProductInput.from_dict(data)
