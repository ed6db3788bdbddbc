from __future__ import annotations
import logging
import time
from functools import partial
from typing import Callable, Dict, List, Optional, Tuple

import requests

from . import catalog_client as cc
from .categories import CategoryCache, resolve_category
from .models import ImportRecord, ImportResult


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def fetch_category_snapshot(session: requests.Session, cfg: cc.CatalogConfig) -> List[Dict]:
    try:
        return cc.list_categories(session, cfg)
    except cc.CatalogApiError as e:
        logger.warning("category list unavailable (%s); new categories will be created", e)
        return []


def _assign_category(session, cfg, product_id: int, record: ImportRecord, snapshot: List[Dict], cache: CategoryCache) -> None:
    create = partial(cc.create_category, session, cfg)
    try:
        category_id = resolve_category(record.category_path, snapshot, cache, create)
        if category_id is not None:
            cc.assign_product_categories(session, cfg, product_id, [category_id])
    except cc.CALL_ERRORS as e:
        logger.warning("product_id=%s %r: category assignment failed: %s", product_id, record.name, e)


def _create_variants(session, cfg, product_id: int, record: ImportRecord) -> None:
    for v in record.variants:
        try:
            cc.create_variant(session, cfg, product_id, v.to_payload())
        except cc.CALL_ERRORS as e:
            logger.warning("product_id=%s variant %r failed: %s", product_id, v.name, e)


def import_records(
    session: requests.Session,
    cfg: cc.CatalogConfig,
    records: List[ImportRecord],
    on_progress: Optional[ProgressCallback] = None,
    product_type: str = "physical",
    should_stop: Optional[Callable[[], bool]] = None,
    delay: float = 0.0,
) -> ImportResult:
    """Create every record against the catalog API, one at a time.

    A product that cannot be created is counted in ``failed`` and the run
    moves on; category and variant failures never undo a created product.
    ``on_progress(done, failed)`` fires after every record. Records are
    processed strictly in order because the category cache is not safe for
    concurrent use.
    """
    result = ImportResult()
    snapshot = fetch_category_snapshot(session, cfg)
    cache: CategoryCache = {}

    for record in records:
        if should_stop is not None and should_stop():
            result.cancelled = True
            logger.info("import cancelled after %s of %s records", result.done, len(records))
            break
        try:
            product_id = cc.create_product(session, cfg, record.product_payload(product_type))
        except cc.CALL_ERRORS as e:
            result.failed += 1
            logger.warning("product %r failed: %s", record.name, e)
        else:
            if record.category_path:
                _assign_category(session, cfg, product_id, record, snapshot, cache)
            if record.variants:
                _create_variants(session, cfg, product_id, record)
            result.imported += 1
        if on_progress is not None:
            on_progress(result.done, result.failed)
        if delay > 0:
            time.sleep(delay)

    logger.info("imported=%s failed=%s total=%s", result.imported, result.failed, len(records))
    return result


def summarize_result(result: ImportResult) -> Tuple[str, str]:
    if result.failed == 0:
        return "success", f"Imported {result.imported} products"
    return "error", f"{result.imported} imported, {result.failed} failed"


def preview_records(records: List[ImportRecord], limit: int = 6) -> Tuple[List[Dict], int]:
    rows = [
        {
            "name": r.name,
            "price": f"{r.price:.2f}",
            "stock": r.stock_count,
            "category": " > ".join(r.category_path),
            "variants": len(r.variants),
        }
        for r in records[:limit]
    ]
    return rows, max(len(records) - limit, 0)
