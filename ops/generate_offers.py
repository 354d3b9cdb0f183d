from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import httpx

from freight_hub.core.config import settings
from freight_hub.core.errors import CsvDataError
from freight_hub.generators.freight import generate_freight_offers
from freight_hub.generators.vehicle_space import generate_vehicle_space_offers
from freight_hub.schemas.generate import parse_count
from freight_hub.services.csv_store import CSV_FILENAMES


log = logging.getLogger("generate_offers")

DEFAULT_BASE_URL = os.getenv("HUB_BASE_URL", f"http://localhost:{settings.port}")
DEFAULT_TIMEOUT_SECONDS = 600

GENERATORS = {
    "freight": ("freight", "freight-offers", generate_freight_offers),
    "vehicle-space": ("vehicle", "vehicle-space-offers", generate_vehicle_space_offers),
}


def http_post(url: str, payload: dict[str, Any], *, transport: httpx.BaseTransport | None = None) -> dict[str, Any]:
    """POST to the hub; failures come back as an `error` entry instead of raising."""
    try:
        with httpx.Client(timeout=DEFAULT_TIMEOUT_SECONDS, transport=transport) as client:
            resp = client.post(url, json=payload)
    except httpx.HTTPError as e:
        log.error("network error for %s: %s", url, e)
        return {"error": {"reason": str(e) or type(e).__name__}}

    try:
        body = resp.json() if resp.content else {}
    except ValueError:
        body = {"raw": resp.text}
    if resp.is_error:
        log.error("hub answered %d %s for %s", resp.status_code, resp.reason_phrase, url)
        return {"error": {"status": resp.status_code, "reason": resp.reason_phrase, "body": body}}
    return body


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Generate sample freight exchange offers from CSV.")
    p.add_argument("--type", choices=sorted(GENERATORS), default="freight")
    p.add_argument("--count", default="1000", help="number of offers (1-10000)")
    p.add_argument("--csv", help="CSV input; defaults to the canonical file under DATA_DIR")
    p.add_argument("--output", help="write the generated JSON here instead of stdout")
    p.add_argument("--post", action="store_true", help="send the offers to a running hub's bulk endpoint")
    p.add_argument("--base-url", default=DEFAULT_BASE_URL)
    p.add_argument("--max-concurrent", type=int, default=settings.bulk_max_concurrent)
    args = p.parse_args(argv)

    logging.basicConfig(level=settings.log_level.upper(), stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")

    try:
        count = parse_count(args.count)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2
    if args.max_concurrent < 1:
        print("--max-concurrent must be a positive integer", file=sys.stderr)
        return 2

    csv_type, collection, generate = GENERATORS[args.type]
    csv_path = Path(args.csv) if args.csv else settings.data_dir / CSV_FILENAMES[csv_type]

    try:
        offers = [o.to_payload() for o in generate(csv_path, count)]
    except CsvDataError as e:
        print(f"Failed to generate offers: {e}", file=sys.stderr)
        return 2

    text = json.dumps(offers, indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        print(f"Wrote {len(offers)} offers to {args.output}", file=sys.stderr)
    elif not args.post:
        print(text)

    if args.post:
        endpoint = f"{args.base_url.rstrip('/')}/api/timocom/{collection}/bulk"
        resp = http_post(endpoint, {"offers": offers, "maxConcurrent": args.max_concurrent})
        print(json.dumps(resp.get("results", resp), indent=2, ensure_ascii=False))
        return 0 if "error" not in resp else 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
