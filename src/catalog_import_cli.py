#!/usr/bin/env python3
import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from catalog_import.catalog_client import CatalogConfig, build_session
from catalog_import.detect import PLATFORM_LABELS
from catalog_import.io import CsvStructureError
from catalog_import.importer import import_records, preview_records, summarize_result
from catalog_import.transform import transform


def load_env(dotenv_path: Optional[str]) -> None:
    if dotenv_path is None:
        default_env = Path.cwd() / ".env"
        if default_env.exists():
            load_dotenv(default_env)
        return
    p = Path(dotenv_path)
    if p.exists():
        load_dotenv(p)


def fail(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)
    sys.exit(1)


def get_config(args: argparse.Namespace) -> CatalogConfig:
    base_url = args.api_base or os.getenv("CATALOG_API_BASE")
    if not base_url:
        fail("Missing catalog API: pass --api-base or set CATALOG_API_BASE")
    token = args.token or os.getenv("CATALOG_API_TOKEN", "")
    timeout = float(args.timeout or os.getenv("CATALOG_API_TIMEOUT", "30"))
    return CatalogConfig(base_url=base_url.strip(), token=token.strip(), timeout=timeout)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Import a Shopify, WooCommerce or generic product CSV into the catalog API.")
    p.add_argument("input", help="Path to the product export CSV")
    p.add_argument("--dotenv", default=None, help="Path to a .env file (defaults to ./.env when present)")
    p.add_argument("--api-base", help="Catalog admin API base URL (or CATALOG_API_BASE)")
    p.add_argument("--token", help="Bearer token for the catalog API (or CATALOG_API_TOKEN)")
    p.add_argument("--timeout", type=float, help="HTTP timeout seconds (or CATALOG_API_TIMEOUT)")
    p.add_argument("--platform", choices=sorted(PLATFORM_LABELS), help="Skip detection and force a platform mapping")
    p.add_argument("--product-type", default=None, help="product_type sent with every product (or IMPORT_PRODUCT_TYPE)")
    p.add_argument("--delay", type=float, default=None, help="Seconds to sleep between products (or IMPORT_REQUEST_DELAY)")
    p.add_argument("--dry-run", action="store_true", help="Parse and preview only; no API calls")
    p.add_argument("--json", action="store_true", help="With --dry-run, print every normalized record as JSON")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v for INFO, -vv for DEBUG)")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    load_env(args.dotenv)

    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        fail(f"Input file not found: {input_path}")
    try:
        parsed = transform(input_path, platform=args.platform)
    except CsvStructureError as e:
        fail(f"{input_path.name}: {e}")
    print(f"{input_path.name}: detected as {PLATFORM_LABELS[parsed.platform]}, {len(parsed.records)} product(s) found")

    if args.dry_run:
        if args.json:
            print(json.dumps([r.to_dict() for r in parsed.records], indent=2))
            return 0
        rows, hidden = preview_records(parsed.records)
        for r in rows:
            print(f"- {r['name']} | {r['price']} | stock={r['stock']} | {r['category'] or '-'} | variants={r['variants'] or '-'}")
        if hidden:
            print(f"+ {hidden} more products not shown")
        return 0

    if not parsed.records:
        print("Nothing to import.")
        return 0

    cfg = get_config(args)
    session = build_session(cfg)
    total = len(parsed.records)
    product_type = args.product_type or os.getenv("IMPORT_PRODUCT_TYPE", "physical")
    delay = args.delay if args.delay is not None else float(os.getenv("IMPORT_REQUEST_DELAY", "0"))

    def on_progress(done: int, errors: int) -> None:
        suffix = f" ({errors} errors)" if errors else ""
        print(f"\r{done} of {total} done{suffix}", end="", flush=True)

    result = import_records(session, cfg, parsed.records, on_progress=on_progress, product_type=product_type, delay=delay)
    print()
    level_name, message = summarize_result(result)
    print(message)
    return 0 if level_name == "success" else 2


def run(argv: Optional[List[str]] = None) -> None:
    """Console entry point: ``main`` with the last-resort error report."""
    try:
        code = main(argv)
    except Exception as e:
        logging.getLogger(__name__).debug("import failed", exc_info=True)
        print(f"\nImport failed unexpectedly: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    run()
