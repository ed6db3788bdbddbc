from __future__ import annotations
import re
import unicodedata
from typing import Optional


_TAG_RE = re.compile(r"<[^>]+>")
_FLOAT_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX_RE = re.compile(r"^[+-]?\d+")


def strip_html(text: str) -> str:
    if not text:
        return ""
    return _TAG_RE.sub("", text).strip()


def slugify(s: str) -> str:
    if not s:
        return ""
    s = unicodedata.normalize('NFKD', s)
    s = s.encode('ascii', 'ignore').decode('ascii')
    s = re.sub(r"[^a-z0-9]+", "-", s.lower())
    return s.strip('-')


def parse_price(value: Optional[str]) -> Optional[float]:
    """Parse the numeric prefix of a cell ("12.50 USD" -> 12.5).

    Returns None when the cell has no leading number at all.
    """
    m = _FLOAT_PREFIX_RE.match((value or "").lstrip())
    if not m:
        return None
    return float(m.group(0))


def parse_count(value: Optional[str]) -> int:
    m = _INT_PREFIX_RE.match((value or "").lstrip())
    if not m:
        return 0
    return max(int(m.group(0)), 0)
