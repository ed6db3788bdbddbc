from __future__ import annotations
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple, Union

from .catalog_client import CALL_ERRORS
from .models import CategoryRef
from .normalize import slugify


logger = logging.getLogger(__name__)

CacheKey = Tuple[Union[int, str], str]
CategoryCache = Dict[CacheKey, CategoryRef]
CreateCategory = Callable[[str, str, Optional[int]], int]


def cache_key(parent_id: Optional[int], segment: str) -> CacheKey:
    return ("root" if parent_id is None else parent_id, segment.lower())


def _find_existing(snapshot: List[Dict], segment: str, parent_id: Optional[int]) -> Optional[Dict]:
    name = segment.lower()
    for c in snapshot:
        if (c.get("name") or "").lower() == name and c.get("parent_id") == parent_id:
            return c
    return None


def _try_create(create: CreateCategory, segment: str, slug: str, parent_id: Optional[int]) -> Optional[int]:
    try:
        return create(segment, slug, parent_id)
    except CALL_ERRORS as e:
        logger.debug("create category %r slug=%s failed: %s", segment, slug, e)
        return None


def resolve_category(
    path: List[str],
    snapshot: List[Dict],
    cache: CategoryCache,
    create: CreateCategory,
) -> Optional[int]:
    """Return the id of the leaf category for ``path``, creating what is missing.

    Lookups go cache first, then the snapshot taken before the run, then the
    API. Categories created here are only ever found again through ``cache``,
    so the same cache must be passed for the whole run. If a level cannot be
    created even with a timestamped slug, the deepest resolved ancestor is
    returned instead.
    """
    if not path:
        return None
    parent_id: Optional[int] = None
    parent_slug = ""

    for segment in path:
        key = cache_key(parent_id, segment)
        cached = cache.get(key)
        if cached is not None:
            parent_id, parent_slug = cached.id, cached.slug
            continue

        existing = _find_existing(snapshot, segment, parent_id)
        if existing is not None:
            ref = CategoryRef(id=int(existing["id"]), slug=existing.get("slug") or "")
            cache[key] = ref
            parent_id, parent_slug = ref.id, ref.slug
            continue

        seg_slug = slugify(segment)
        slug = f"{parent_slug}-{seg_slug}" if parent_slug else seg_slug
        new_id = _try_create(create, segment, slug, parent_id)
        if new_id is None:
            # slug collision most likely; retry once with a unique suffix
            slug = f"{slug}-{int(time.time() * 1000)}"
            new_id = _try_create(create, segment, slug, parent_id)
            if new_id is None:
                logger.warning("could not create category %r under parent=%s; using parent", segment, parent_id)
                return parent_id
        cache[key] = CategoryRef(id=new_id, slug=slug)
        parent_id, parent_slug = new_id, slug

    return parent_id
