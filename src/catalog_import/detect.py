from __future__ import annotations
from typing import List


SHOPIFY = "shopify"
WOOCOMMERCE = "woocommerce"
GENERIC = "generic"

PLATFORM_LABELS = {
    SHOPIFY: "Shopify",
    WOOCOMMERCE: "WooCommerce",
    GENERIC: "Generic CSV",
}


def detect_platform(headers: List[str]) -> str:
    h = [x.lower() for x in headers]
    if "handle" in h and any("variant price" in x for x in h):
        return SHOPIFY
    if "regular price" in h or any(x == "sale price" for x in h):
        return WOOCOMMERCE
    return GENERIC
