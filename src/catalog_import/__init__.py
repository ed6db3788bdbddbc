"""
Catalog CSV import library.

This package turns a merchant's product export into catalog API calls:
- Tokenizing CSV text (quoted fields, embedded newlines)
- Detecting the export platform (Shopify, WooCommerce, generic)
- Mapping rows into normalized product/variant records
- Resolving category paths, creating missing categories once per run
- Driving sequential creation against the catalog API with progress

Public API:
- io.parse_csv, io.split_header, io.read_rows
- detect.detect_platform, detect.PLATFORM_LABELS
- transform.map_shopify, transform.map_woocommerce, transform.map_generic, transform.parse_export
- categories.resolve_category
- catalog_client.CatalogConfig, catalog_client.build_session
- importer.import_records, importer.summarize_result, importer.preview_records
"""

from . import io, detect, normalize, models, transform, categories, catalog_client, importer  # re-export modules

__all__ = [
    "io",
    "detect",
    "normalize",
    "models",
    "transform",
    "categories",
    "catalog_client",
    "importer",
]
