from __future__ import annotations
import json
import os
from pathlib import Path
from typing import Dict


SETTINGS_PATH: Path | None = None


def init_settings(path: Path) -> None:
    global SETTINGS_PATH
    SETTINGS_PATH = path
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        save_settings(default_settings())


def default_settings() -> Dict:
    return {
        "catalog_api_base": os.getenv("CATALOG_API_BASE", ""),
        "catalog_api_token": os.getenv("CATALOG_API_TOKEN", ""),
        "catalog_api_timeout": float(os.getenv("CATALOG_API_TIMEOUT", "30")),
        "product_type": os.getenv("IMPORT_PRODUCT_TYPE", "physical"),
        "request_delay": float(os.getenv("IMPORT_REQUEST_DELAY", "0")),
        "preview_limit": 6,
    }


def get_settings() -> Dict:
    assert SETTINGS_PATH is not None
    try:
        data = json.loads(SETTINGS_PATH.read_text())
    except (OSError, ValueError):
        return default_settings()
    base = default_settings()
    base.update(data or {})
    return base


def save_settings(data: Dict) -> None:
    assert SETTINGS_PATH is not None
    SETTINGS_PATH.write_text(json.dumps(data, indent=2))
