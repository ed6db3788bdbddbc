from __future__ import annotations
import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .detect import GENERIC, SHOPIFY, WOOCOMMERCE, detect_platform
from .io import parse_csv, read_text, split_header
from .models import STATUS_ACTIVE, STATUS_DRAFT, ImportRecord, Variant
from .normalize import parse_count, parse_price, strip_html


logger = logging.getLogger(__name__)

Mapper = Callable[[List[str], List[List[str]]], List[ImportRecord]]

GENERIC_COLUMNS = {
    "name": ["name", "title", "product name", "product title"],
    "price": ["price", "regular price", "sale price", "cost"],
    "description": ["description", "body", "details"],
    "image": ["image", "image url", "image src", "photo"],
    "stock": ["stock", "quantity", "qty", "inventory"],
    "category": ["category", "type", "product type"],
    "tags": ["tags"],
}


def _cell(row: List[str], idx: int) -> str:
    if idx < 0 or idx >= len(row):
        return ""
    return row[idx]


def _column_index(headers: List[str], name: str) -> int:
    name = name.lower()
    for i, h in enumerate(headers):
        if h.lower().strip() == name:
            return i
    return -1


def _split_path(value: str) -> List[str]:
    if not value:
        return []
    return [s.strip() for s in value.split(" > ") if s.strip()]


def map_shopify(headers: List[str], rows: List[List[str]]) -> List[ImportRecord]:
    """Fold Shopify's one-row-per-variant export into one record per Handle."""
    idx: Dict[str, int] = {}

    def col(name: str) -> int:
        if name not in idx:
            idx[name] = _column_index(headers, name)
        return idx[name]

    groups: Dict[str, List[List[str]]] = defaultdict(list)
    for row in rows:
        handle = _cell(row, col("Handle"))
        if not handle:
            continue
        groups[handle].append(row)

    products: List[ImportRecord] = []
    for items in groups.values():
        first = items[0]

        def get(name: str) -> str:
            return _cell(first, col(name)).strip()

        title = get("Title")
        if not title:
            continue

        variants: List[Variant] = []
        for row in items:
            def vget(name: str) -> str:
                return _cell(row, col(name)).strip()

            v_price = parse_price(vget("Variant Price"))
            if v_price is None:
                continue
            opts: Dict[str, str] = {}
            for n in ("1", "2", "3"):
                opt_name = vget(f"Option{n} Name")
                opt_val = vget(f"Option{n} Value")
                # "Title" is Shopify's placeholder option on single-variant products
                if opt_name and opt_val and opt_name.lower() != "title":
                    opts[opt_name] = opt_val
            variants.append(
                Variant(
                    name=" / ".join(opts.values()) or title,
                    options=opts,
                    price=v_price,
                    stock_count=parse_count(vget("Variant Inventory Qty")),
                    sku=vget("Variant SKU"),
                )
            )

        if not variants:
            continue

        category = get("Product Category") or get("Type")
        products.append(
            ImportRecord(
                name=title,
                description=strip_html(get("Body (HTML)")),
                price=variants[0].price,
                compare_price=parse_price(get("Variant Compare At Price")),
                image_url=get("Image Src"),
                stock_count=sum(v.stock_count for v in variants),
                category_path=[category] if category else [],
                tags=get("Tags"),
                status=STATUS_DRAFT if get("Status").lower() == "draft" else STATUS_ACTIVE,
                seo_title=get("SEO Title"),
                seo_description=get("SEO Description"),
                variants=variants if len(variants) > 1 else [],
            )
        )
    return products


def map_woocommerce(headers: List[str], rows: List[List[str]]) -> List[ImportRecord]:
    cols = {name: _column_index(headers, name) for name in [
        "name", "type", "regular price", "sale price", "description",
        "short description", "images", "categories", "stock", "tags", "published",
    ]}
    products: List[ImportRecord] = []
    for row in rows:
        def get(name: str) -> str:
            return _cell(row, cols[name]).strip()

        name = get("name")
        if not name:
            continue
        # variations belong to a variable parent product; not reconstructed
        if get("type").lower() == "variation":
            continue

        regular = parse_price(get("regular price"))
        sale = parse_price(get("sale price"))
        on_sale = sale is not None and sale > 0
        price = sale if on_sale else regular
        if price is None:
            continue

        first_cat = get("categories").split("|")[0].strip()
        products.append(
            ImportRecord(
                name=name,
                description=strip_html(get("description") or get("short description")),
                price=price,
                compare_price=regular if on_sale and regular is not None else None,
                image_url=get("images").split(",")[0].strip(),
                stock_count=parse_count(get("stock")),
                category_path=_split_path(first_cat),
                tags=get("tags").replace("|", ","),
                status=STATUS_ACTIVE if get("published") == "1" else STATUS_DRAFT,
            )
        )
    return products


def _find_column(headers: List[str], candidates: List[str]) -> int:
    for name in candidates:
        name = name.lower()
        for i, h in enumerate(headers):
            if name in h.lower():
                return i
    return -1


def map_generic(headers: List[str], rows: List[List[str]]) -> List[ImportRecord]:
    """Best-effort mapping for exports with no recognized layout.

    Each field takes the first header containing one of its candidate
    fragments, tried in order.
    """
    cols = {field: _find_column(headers, names) for field, names in GENERIC_COLUMNS.items()}
    if cols["name"] < 0 or cols["price"] < 0:
        logger.info("generic mapper: no name or price column in %s", headers)
        return []

    products: List[ImportRecord] = []
    for row in rows:
        def get(field: str) -> str:
            return _cell(row, cols[field]).strip()

        name = get("name")
        if not name:
            continue
        price = parse_price(get("price"))
        if price is None:
            continue
        products.append(
            ImportRecord(
                name=name,
                description=strip_html(get("description")),
                price=price,
                image_url=get("image"),
                stock_count=parse_count(get("stock")),
                category_path=_split_path(get("category")),
                tags=get("tags"),
                status=STATUS_ACTIVE,
            )
        )
    return products


MAPPERS: Dict[str, Mapper] = {
    SHOPIFY: map_shopify,
    WOOCOMMERCE: map_woocommerce,
    GENERIC: map_generic,
}


@dataclass
class ParsedExport:
    platform: str
    headers: List[str]
    records: List[ImportRecord]
    row_count: int


def transform_rows(rows: List[List[str]], platform: Optional[str] = None) -> ParsedExport:
    headers, data_rows = split_header(rows)
    detected = platform or detect_platform(headers)
    records = MAPPERS[detected](headers, data_rows)
    logger.info("platform=%s rows=%s records=%s", detected, len(data_rows), len(records))
    return ParsedExport(platform=detected, headers=headers, records=records, row_count=len(data_rows))


def parse_export(text: str, platform: Optional[str] = None) -> ParsedExport:
    return transform_rows(parse_csv(text), platform=platform)


def transform(input_path: Path, platform: Optional[str] = None) -> ParsedExport:
    return parse_export(read_text(input_path), platform=platform)
