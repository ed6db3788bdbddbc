"""Shared fixtures: an in-memory catalog API behind a fake requests session."""

import json
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

import pytest

from catalog_import.catalog_client import CatalogConfig


BASE_URL = "https://shop.test/api/admin"


class FakeResponse:
    def __init__(self, status_code: int, body: Optional[Dict] = None, headers: Optional[Dict] = None):
        self.status_code = status_code
        self._body = body
        self.headers = headers or {}

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return json.dumps(self._body)

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeCatalogSession:
    """Stands in for requests.Session; routes calls to an in-memory catalog.

    ``fail`` is consulted for every call as ``fail(method, path, payload)``; a
    truthy return answers with that status code (or 500 for ``True``).
    """

    def __init__(self, collections: Optional[List[Dict]] = None):
        self.headers: Dict[str, str] = {}
        self.collections: List[Dict] = [dict(c) for c in (collections or [])]
        self.products: List[Dict] = []
        self.variants: List[Dict] = []
        self.assignments: Dict[int, List[int]] = {}
        self.calls: List[tuple] = []
        self.fail: Callable[[str, str, Optional[Dict]], object] = lambda method, path, payload: False
        self._next_id = 1000

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def calls_to(self, method: str, path: str) -> List[Optional[Dict]]:
        return [payload for m, p, payload in self.calls if m == method and p == path]

    def request(self, method, url, data=None, timeout=None):
        path = urlparse(url).path.replace(urlparse(BASE_URL).path, "", 1).strip("/")
        payload = json.loads(data) if data else None
        self.calls.append((method, path, payload))
        failure = self.fail(method, path, payload)
        if failure:
            status = 500 if failure is True else int(failure)
            return FakeResponse(status, {"error": "forced failure"})

        parts = path.split("/")
        if path == "collections" and method == "GET":
            return FakeResponse(200, {"collections": [dict(c) for c in self.collections]})
        if path == "collections" and method == "POST":
            if any(c["slug"] == payload["slug"] for c in self.collections):
                return FakeResponse(500, {"error": "UNIQUE constraint failed: collections.slug"})
            new = dict(payload, id=self._new_id())
            self.collections.append(new)
            return FakeResponse(201, {"id": new["id"]})
        if path == "products" and method == "POST":
            new = dict(payload, id=self._new_id())
            self.products.append(new)
            return FakeResponse(201, {"id": new["id"]})
        if len(parts) == 3 and parts[0] == "products" and parts[2] == "collections" and method == "PUT":
            self.assignments[int(parts[1])] = payload["collection_ids"]
            return FakeResponse(200, {"ok": True})
        if len(parts) == 3 and parts[0] == "products" and parts[2] == "variants" and method == "POST":
            new = dict(payload, id=self._new_id(), product_id=int(parts[1]))
            self.variants.append(new)
            return FakeResponse(201, {"id": new["id"]})
        return FakeResponse(404, {"error": "not found"})


@pytest.fixture
def catalog_cfg():
    return CatalogConfig(base_url=BASE_URL, token="secret", timeout=5)


@pytest.fixture
def fake_session():
    return FakeCatalogSession()


@pytest.fixture
def shopify_csv():
    return (
        "Handle,Title,Body (HTML),Vendor,Product Category,Type,Tags,Option1 Name,Option1 Value,"
        "Variant SKU,Variant Inventory Qty,Variant Price,Variant Compare At Price,Image Src,Status,SEO Title,SEO Description\n"
        'ring-1,Silver Ring,"<p>Hand made, <b>sterling</b></p>",Acme,Rings,Jewellery,"silver, ring",Size,S,'
        "RING-S,3,20.00,25.00,https://cdn.test/ring.jpg,active,Silver Ring | Acme,A silver ring\n"
        "ring-1,,,,,,,Size,M,RING-M,4,22.00,,,,,\n"
        "mug-1,Coffee Mug,<p>Ceramic</p>,Acme,,Kitchen,,Title,Default Title,MUG,10,9.50,,,draft,,\n"
    )


@pytest.fixture
def woocommerce_csv():
    return (
        "ID,Type,Name,Published,Short description,Description,Stock,Sale price,Regular price,Categories,Tags,Images\n"
        '1,simple,Gold Necklace,1,Short,"<p>18k <i>gold</i></p>",5,80,100,"Jewellery > Necklaces|Gifts",gold|gift,"https://cdn.test/a.jpg, https://cdn.test/b.jpg"\n'
        "2,variable,Tee,1,<p>Cotton tee</p>,,,,,Apparel,,\n"
        "3,variation,Tee - Red,1,,,2,,15,,,\n"
        "4,simple,Plain Bracelet,0,,Simple,,,40,,,\n"
    )


@pytest.fixture
def make_session():
    """Factory for sessions pre-seeded with existing collections."""
    return FakeCatalogSession
