from __future__ import annotations
import json
import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests


logger = logging.getLogger(__name__)


@dataclass
class CatalogConfig:
    base_url: str
    token: str = ""
    timeout: float = 30.0

    @property
    def api_root(self) -> str:
        return self.base_url.rstrip("/")


class CatalogApiError(requests.HTTPError):
    def __init__(self, status_code: int, detail: object, url: str = ""):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.url = url


# Anything a single catalog call can fail with once the response is in hand.
CALL_ERRORS = (requests.RequestException, KeyError, ValueError, TypeError)


def build_session(cfg: CatalogConfig) -> requests.Session:
    s = requests.Session()
    s.headers.update(
        {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": "catalog-import/1.0",
        }
    )
    if cfg.token:
        s.headers["Authorization"] = f"Bearer {cfg.token}"
    return s


def _request(session: requests.Session, cfg: CatalogConfig, method: str, path: str, payload: Optional[Dict] = None) -> requests.Response:
    url = f"{cfg.api_root}/{path.lstrip('/')}"
    data = json.dumps(payload) if payload is not None else None
    backoff = 1.0
    while True:
        resp = session.request(method, url, data=data, timeout=cfg.timeout)
        if resp.status_code == 429:
            retry_after = float(resp.headers.get("Retry-After", backoff))
            logger.debug("429 from %s %s, sleeping %ss", method, url, retry_after)
            time.sleep(retry_after)
            backoff = min(backoff * 2, 10.0)
            continue
        logger.debug("%s %s -> %s", method, url, resp.status_code)
        if not resp.ok:
            try:
                detail = resp.json()
            except ValueError:
                detail = resp.text
            raise CatalogApiError(resp.status_code, detail, url)
        return resp


def list_categories(session: requests.Session, cfg: CatalogConfig) -> List[Dict]:
    """Return every category as {id, name, slug, parent_id}.

    Accepts both the wrapped {"collections": [...]} body and a bare list.
    """
    resp = _request(session, cfg, "GET", "collections")
    data = resp.json()
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return data.get("collections") or []
    return []


def _created_id(resp: requests.Response) -> int:
    # KeyError / TypeError / ValueError when the body carries no usable id
    return int(resp.json()["id"])


def create_category(session: requests.Session, cfg: CatalogConfig, name: str, slug: str, parent_id: Optional[int]) -> int:
    resp = _request(session, cfg, "POST", "collections", {"name": name, "slug": slug, "parent_id": parent_id})
    return _created_id(resp)


def create_product(session: requests.Session, cfg: CatalogConfig, payload: Dict) -> int:
    resp = _request(session, cfg, "POST", "products", payload)
    return _created_id(resp)


def assign_product_categories(session: requests.Session, cfg: CatalogConfig, product_id: int, category_ids: List[int]) -> None:
    _request(session, cfg, "PUT", f"products/{product_id}/collections", {"collection_ids": list(category_ids)})


def create_variant(session: requests.Session, cfg: CatalogConfig, product_id: int, payload: Dict) -> None:
    _request(session, cfg, "POST", f"products/{product_id}/variants", payload)
