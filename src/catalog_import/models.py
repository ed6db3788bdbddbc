from __future__ import annotations
import json
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Union


STATUS_ACTIVE = "active"
STATUS_DRAFT = "draft"


@dataclass
class Variant:
    name: str
    options: Dict[str, str]
    price: float
    stock_count: int = 0
    sku: str = ""

    @property
    def options_json(self) -> str:
        return json.dumps(self.options)

    def to_payload(self) -> Dict:
        return {
            "name": self.name,
            "options_json": self.options_json,
            "price": self.price,
            "stock_count": self.stock_count,
            "sku": self.sku,
        }


@dataclass
class ImportRecord:
    """One normalized product produced by a row mapper."""

    name: str
    price: float
    description: str = ""
    compare_price: Optional[float] = None
    image_url: str = ""
    stock_count: int = 0
    category_path: List[str] = field(default_factory=list)
    tags: str = ""
    status: str = STATUS_ACTIVE
    seo_title: str = ""
    seo_description: str = ""
    variants: List[Variant] = field(default_factory=list)

    def product_payload(self, product_type: str = "physical") -> Dict:
        return {
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "compare_price": self.compare_price,
            "image_url": self.image_url,
            "stock_count": self.stock_count,
            "tags": self.tags,
            "status": self.status,
            "seo_title": self.seo_title,
            "seo_description": self.seo_description,
            "product_type": product_type,
        }

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class ImportResult:
    imported: int = 0
    failed: int = 0
    cancelled: bool = False

    @property
    def done(self) -> int:
        return self.imported + self.failed


@dataclass
class CategoryRef:
    id: int
    slug: str


class OptionsParseError(ValueError):
    def __init__(self, raw: str, reason: str):
        super().__init__(f"invalid options_json ({reason}): {raw[:80]!r}")
        self.raw = raw
        self.reason = reason


def parse_options_json(raw: str) -> Union[Dict[str, str], OptionsParseError]:
    """Validate a stored options_json string.

    Returns the option mapping, or an OptionsParseError describing why the
    value is not a JSON object of string -> string.
    """
    try:
        data = json.loads(raw or "{}")
    except json.JSONDecodeError as e:
        return OptionsParseError(raw or "", f"not JSON: {e.msg}")
    if not isinstance(data, dict):
        return OptionsParseError(raw, f"expected object, got {type(data).__name__}")
    for k, v in data.items():
        if not isinstance(v, str):
            return OptionsParseError(raw, f"option {k!r} is not a string")
    return data
