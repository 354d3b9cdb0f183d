from __future__ import annotations

import csv
import json
import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from freight_hub.core.errors import UpstreamApiError, utc_now_iso
from freight_hub.generators.common import DEFAULT_VEHICLE_TYPE, loading_window, seeded_random, utc_today
from freight_hub.services.bulk import extract_offers
from freight_hub.services.exchange_client import ExchangeClient, OfferKind


log = logging.getLogger(__name__)

ExportFormat = Literal["json", "csv", "both"]

DATA_FILE = "timocom_consolidation_data.json"
CONFIG_FILE = "consolid_config.json"
VEHICLES_FILE = "vehicles.csv"
ORDERS_FILE = "orders.csv"
RUN_SCRIPT = "run_consolidation.sh"
MIXED_RUN_SCRIPT = "run_mixed_consolidation.sh"

# (weight kg, volume m3)
VEHICLE_CAPACITY = {
    "VEHICLE_UP_TO_12_T": (12000, 50),
    "VEHICLE_UP_TO_7_5_T": (7500, 35),
    "VEHICLE_UP_TO_3_5_T": (3500, 20),
}
VEHICLE_COSTS = {"base": 500, "perKm": 1.2, "perPoint": 25}

BERLIN = (52.52, 13.405)
MUNICH = (48.1351, 11.582)
DEFAULT_REVENUE = 1000

MOCK_CITIES = (
    ("Berlin", "DE"),
    ("Munich", "DE"),
    ("Hamburg", "DE"),
    ("Warszawa", "PL"),
    ("Praha", "CZ"),
    ("Vienna", "AT"),
    ("Amsterdam", "NL"),
    ("Brussels", "BE"),
)

VEHICLE_HEADER = (
    "id", "type", "weight_capacity", "volume_capacity", "base_cost", "cost_per_km", "cost_per_point",
    "lat", "lng", "city", "country",
)
ORDER_HEADER = (
    "id", "weight", "volume", "pickup_lat", "pickup_lng", "pickup_city", "pickup_country",
    "delivery_lat", "delivery_lng", "delivery_city", "delivery_country", "revenue",
)
MIXED_VEHICLE_HEADER = ("id", "type", "weight_capacity", "volume_capacity", "start_location", "destination")
MIXED_ORDER_HEADER = (
    "id", "description", "weight_kg", "volume_m3", "pickup_location", "delivery_location",
    "pickup_start", "pickup_end", "delivery_start", "delivery_end", "revenue",
)

RUN_SCRIPT_TEXT = """#!/bin/bash
# Consolidation analysis over exported freight exchange data

CONSOLID_PATH="../AssignmentProblem_Consolid/bin/AssignmentProblem_Consolid"

if [ ! -f "$CONSOLID_PATH" ]; then
    echo "AssignmentProblem_Consolid not found at $CONSOLID_PATH"
    echo "Build it first: cd ../AssignmentProblem_Consolid && ./build.sh"
    exit 1
fi

"$CONSOLID_PATH" consolid_config.json

echo "Results: consolidation_cases.csv, non_consolidated.csv"
"""

MIXED_RUN_SCRIPT_TEXT = """#!/bin/bash
# Mixed consolidation run: {vehicles} mock vehicles, {orders} freight orders
# Generated: {generated}

CONSOLID_PATH="../AssignmentProblem_Consolid/consolid"

if [ ! -f "$CONSOLID_PATH" ]; then
    echo "AssignmentProblem_Consolid not found at $CONSOLID_PATH"
    echo "Build it first: cd ../AssignmentProblem_Consolid && ./build.sh"
    exit 1
fi

"$CONSOLID_PATH" \\
    --config ./{config_name}_config.json \\
    --vehicles ./vehicles.csv \\
    --orders ./orders.csv \\
    --output ./assignments.json || exit 1

echo "Results: assignments.json"
"""

_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,63}$")


@dataclass
class ConsolidationExport:
    directory: Path
    vehicles: list[dict[str, Any]]
    orders: list[dict[str, Any]]
    metadata: dict[str, Any]
    files: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


def check_name(name: str, what: str = "output directory") -> str:
    """Export targets are single plain names below the export root."""
    if not name or ".." in name or not _NAME.match(name):
        raise ValueError(f"Invalid {what} name: use letters, digits, '.', '_' or '-'")
    return name


def export_path(base: Path, name: str) -> Path:
    return Path(base) / check_name(name)


def _number(value: Any, default: float) -> float:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    return num if num > 0 and math.isfinite(num) else default


def _stop(offer: dict[str, Any], loading_type: str) -> dict[str, Any]:
    for place in offer.get("loadingPlaces") or []:
        if isinstance(place, dict) and place.get("loadingType") == loading_type:
            return place
    return {}


def _point(place: dict[str, Any], default: tuple[float, float], city: str, country: str) -> dict[str, Any]:
    addr = place.get("address") or {}
    return {
        "lat": addr.get("latitude", default[0]),
        "lng": addr.get("longitude", default[1]),
        "city": addr.get("city") or city,
        "country": addr.get("country") or country,
    }


def _time_window(place: dict[str, Any]) -> dict[str, str] | None:
    start = place.get("earliestLoadingDate")
    if not start:
        return None
    return {"start": start, "end": place.get("latestLoadingDate") or start}


def _offer_ref(offer: dict[str, Any], fallback: str) -> str:
    return str(offer.get("id") or offer.get("publicOfferId") or fallback)


def _vehicle_type(offer: dict[str, Any]) -> str:
    types = (offer.get("vehicleProperties") or {}).get("type") or []
    return types[0] if types else DEFAULT_VEHICLE_TYPE


def vehicle_from_offer(offer: dict[str, Any], index: int) -> dict[str, Any]:
    vehicle_type = _vehicle_type(offer)
    weight, volume = VEHICLE_CAPACITY.get(vehicle_type, VEHICLE_CAPACITY[DEFAULT_VEHICLE_TYPE])
    return {
        "id": _offer_ref(offer, f"vehicle_{index}"),
        "type": vehicle_type,
        "capacity": {"weight": weight, "volume": volume},
        "costs": dict(VEHICLE_COSTS),
        "location": _point(_stop(offer, "LOADING"), BERLIN, "Berlin", "DE"),
    }


def order_from_offer(offer: dict[str, Any], index: int) -> dict[str, Any]:
    pickup = _stop(offer, "LOADING")
    delivery = _stop(offer, "UNLOADING")
    order = {
        "id": _offer_ref(offer, f"order_{index}"),
        "description": offer.get("freightDescription") or "General cargo",
        "vehicleType": _vehicle_type(offer),
        "weight": round(_number(offer.get("weight_t"), 1.0) * 1000, 2),
        # loading metres times a 2.4 x 2.4 m cross-section
        "volume": round(_number(offer.get("length_m"), 2.0) * 2.4 * 2.4, 2),
        "pickup": _point(pickup, BERLIN, "Berlin", "DE"),
        "delivery": _point(delivery, MUNICH, "Munich", "DE"),
        "revenue": _number((offer.get("price") or {}).get("amount"), DEFAULT_REVENUE),
    }
    if window := _time_window(pickup):
        order["pickup"]["timeWindow"] = window
    if window := _time_window(delivery):
        order["delivery"]["timeWindow"] = window
    return order


def mock_vehicles(count: int) -> list[dict[str, Any]]:
    """Seeded stand-ins for a fleet; the same count always yields the same vehicles."""
    types = list(VEHICLE_CAPACITY)
    vehicles = []
    for i in range(count):
        seed = (i + 1) * 7919
        start = MOCK_CITIES[math.floor(seeded_random(seed) * len(MOCK_CITIES))]
        dest = MOCK_CITIES[math.floor(seeded_random(seed + 1) * len(MOCK_CITIES))]
        vehicle_type = types[math.floor(seeded_random(seed + 2) * len(types))]
        weight, volume = VEHICLE_CAPACITY[vehicle_type]
        vehicles.append({
            "id": f"mock_vehicle_{i + 1}",
            "type": vehicle_type,
            "capacity": {"weight": weight, "volume": volume},
            "location": {"start": f"{start[0]}, {start[1]}", "destination": f"{dest[0]}, {dest[1]}"},
        })
    return vehicles


def _location(point: dict[str, Any]) -> str:
    return f"{point['city']}, {point['country']}"


def mixed_order(order: dict[str, Any], default_window: tuple[str, str]) -> dict[str, Any]:
    pickup, delivery = order["pickup"], order["delivery"]
    pickup_window = pickup.get("timeWindow") or {"start": default_window[0], "end": default_window[0]}
    delivery_window = delivery.get("timeWindow") or {"start": default_window[1], "end": default_window[1]}
    return {
        "id": order["id"],
        "description": order["description"],
        "requirements": {"weight": order["weight"], "volume": order["volume"], "vehicleType": order["vehicleType"]},
        "route": {
            "pickup": {"location": _location(pickup), "timeWindow": pickup_window},
            "delivery": {"location": _location(delivery), "timeWindow": delivery_window},
        },
        "revenue": order["revenue"],
    }


def _placeholder_order(default_window: tuple[str, str]) -> dict[str, Any]:
    return {
        "id": "mock_order_1",
        "description": "Mock freight offer (TIMOCOM unavailable)",
        "requirements": {"weight": 2500, "volume": 15, "vehicleType": DEFAULT_VEHICLE_TYPE},
        "route": {
            "pickup": {"location": "Berlin, DE", "timeWindow": {"start": default_window[0], "end": default_window[0]}},
            "delivery": {"location": "Munich, DE", "timeWindow": {"start": default_window[1], "end": default_window[1]}},
        },
        "revenue": 350,
    }


# --- file writing ---

def _write_json(path: Path, data: Any) -> str:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return str(path)


def _write_csv(path: Path, header: tuple[str, ...], rows: list[tuple]) -> str:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    return str(path)


def _write_script(path: Path, text: str) -> str:
    path.write_text(text, encoding="utf-8")
    path.chmod(0o755)
    return str(path)


async def _own_offers(client: ExchangeClient, kind: OfferKind, limit: int, warnings: list[str]) -> list[dict]:
    try:
        listing = await client.list_offers(kind)
    except UpstreamApiError as e:
        log.warning("consolidation: could not fetch %ss: %s", kind.label, e)
        warnings.append(f"Could not fetch {kind.label}s: {e}")
        return []
    return extract_offers(listing.get("data"))[:limit]


async def _require_connection(client: ExchangeClient) -> None:
    status = await client.test_connection()
    if not status.get("success"):
        raise UpstreamApiError(f"TIMOCOM connection failed: {status.get('error')}")


async def export_consolidation(
    client: ExchangeClient,
    directory: Path,
    *,
    include_vehicles: bool = True,
    include_orders: bool = True,
    max_vehicles: int = 100,
    max_orders: int = 1000,
) -> ConsolidationExport:
    """
    Own vehicle-space offers become vehicles, own freight offers become orders.

    Writes the JSON data file, a config file and a run script into `directory`;
    vehicles.csv and orders.csv only when there is something to put in them.
    A collection that cannot be fetched is exported empty and reported in
    `warnings`; an unreachable exchange fails the whole export.
    """
    await _require_connection(client)

    warnings: list[str] = []
    vehicles: list[dict[str, Any]] = []
    orders: list[dict[str, Any]] = []
    if include_vehicles:
        offers = await _own_offers(client, OfferKind.VEHICLE_SPACE, max_vehicles, warnings)
        vehicles = [vehicle_from_offer(o, i) for i, o in enumerate(offers)]
    if include_orders:
        offers = await _own_offers(client, OfferKind.FREIGHT, max_orders, warnings)
        orders = [order_from_offer(o, i) for i, o in enumerate(offers)]

    metadata = {
        "exported": utc_now_iso(),
        "source": "TIMOCOM API",
        "totalVehicles": len(vehicles),
        "totalOrders": len(orders),
    }
    result = ConsolidationExport(directory, vehicles, orders, metadata, warnings=warnings)

    directory.mkdir(parents=True, exist_ok=True)
    files = result.files
    files["json"] = _write_json(directory / DATA_FILE, {"vehicles": vehicles, "orders": orders, "metadata": metadata})
    if vehicles:
        files["vehicles"] = _write_csv(
            directory / VEHICLES_FILE,
            VEHICLE_HEADER,
            [
                (
                    v["id"], v["type"], v["capacity"]["weight"], v["capacity"]["volume"],
                    v["costs"]["base"], v["costs"]["perKm"], v["costs"]["perPoint"],
                    v["location"]["lat"], v["location"]["lng"], v["location"]["city"], v["location"]["country"],
                )
                for v in vehicles
            ],
        )
    if orders:
        files["orders"] = _write_csv(
            directory / ORDERS_FILE,
            ORDER_HEADER,
            [
                (
                    o["id"], o["weight"], o["volume"],
                    o["pickup"]["lat"], o["pickup"]["lng"], o["pickup"]["city"], o["pickup"]["country"],
                    o["delivery"]["lat"], o["delivery"]["lng"], o["delivery"]["city"], o["delivery"]["country"],
                    o["revenue"],
                )
                for o in orders
            ],
        )
    files["config"] = _write_json(
        directory / CONFIG_FILE,
        {
            "csv": str(directory / "consolidation_cases.csv"),
            "nonconsolidated": str(directory / "non_consolidated.csv"),
            "vehicles": str(directory / VEHICLES_FILE),
            "orders": str(directory / ORDERS_FILE),
            "matrix": "data/matrix.csv",
            "constraints": {"maxWeight": 12000, "maxVolume": 50, "maxConsolidations": 5},
            "optimization": {"algorithm": "cost", "iterations": 1000, "timeLimit": 300},
            "metadata": metadata,
        },
    )
    files["script"] = _write_script(directory / RUN_SCRIPT, RUN_SCRIPT_TEXT)

    log.info("consolidation: exported %d vehicles, %d orders to %s", len(vehicles), len(orders), directory)
    return result


async def export_mixed_consolidation(
    client: ExchangeClient,
    directory: Path,
    *,
    mock_vehicle_count: int = 5,
    max_orders: int = 10,
    export_format: ExportFormat = "both",
    config_name: str = "mixed_consolid",
) -> ConsolidationExport:
    """Seeded mock vehicles plus the account's real freight offers as orders."""
    check_name(config_name, "config")
    await _require_connection(client)

    window = loading_window(utc_today())
    warnings: list[str] = []
    vehicles = mock_vehicles(mock_vehicle_count)
    try:
        listing = await client.list_offers(OfferKind.FREIGHT)
    except UpstreamApiError as e:
        log.warning("consolidation: freight offers unavailable, using a placeholder order: %s", e)
        warnings.append(f"Could not fetch freight offers: {e}")
        orders = [_placeholder_order(window)]
    else:
        offers = extract_offers(listing.get("data"))[:max_orders]
        orders = [mixed_order(order_from_offer(o, i), window) for i, o in enumerate(offers)]

    metadata = {
        "exported": utc_now_iso(),
        "source": "Mixed: Mock Vehicles + TIMOCOM Freight",
        "totalVehicles": len(vehicles),
        "totalOrders": len(orders),
    }
    result = ConsolidationExport(directory, vehicles, orders, metadata, warnings=warnings)

    directory.mkdir(parents=True, exist_ok=True)
    files = result.files
    if export_format in ("json", "both"):
        files["json"] = _write_json(directory / DATA_FILE, {"vehicles": vehicles, "orders": orders, "metadata": metadata})
    if export_format in ("csv", "both"):
        files["vehicles"] = _write_csv(
            directory / VEHICLES_FILE,
            MIXED_VEHICLE_HEADER,
            [
                (
                    v["id"], v["type"], v["capacity"]["weight"], v["capacity"]["volume"],
                    v["location"]["start"], v["location"].get("destination") or "Flexible",
                )
                for v in vehicles
            ],
        )
        files["orders"] = _write_csv(
            directory / ORDERS_FILE,
            MIXED_ORDER_HEADER,
            [
                (
                    o["id"], o["description"], o["requirements"]["weight"], o["requirements"]["volume"],
                    o["route"]["pickup"]["location"], o["route"]["delivery"]["location"],
                    o["route"]["pickup"]["timeWindow"]["start"], o["route"]["pickup"]["timeWindow"]["end"],
                    o["route"]["delivery"]["timeWindow"]["start"], o["route"]["delivery"]["timeWindow"]["end"],
                    o["revenue"],
                )
                for o in orders
            ],
        )
    files["config"] = _write_json(
        directory / f"{config_name}_config.json",
        {
            "solver": "AssignmentProblem_Consolid",
            "version": "1.0",
            "algorithm": "hungarian_method",
            "objective": "maximize_revenue",
            "constraints": {"capacity": True, "time_windows": True, "vehicle_compatibility": True},
            "input_files": {"vehicles": "./vehicles.csv", "orders": "./orders.csv"},
            "output_files": {
                "assignments": "./assignments.json",
                "solution": "./solution.csv",
                "report": "./optimization_report.txt",
            },
        },
    )
    files["script"] = _write_script(
        directory / MIXED_RUN_SCRIPT,
        MIXED_RUN_SCRIPT_TEXT.format(
            vehicles=len(vehicles),
            orders=len(orders),
            generated=metadata["exported"],
            config_name=config_name,
        ),
    )

    log.info("consolidation: mixed export of %d vehicles, %d orders to %s", len(vehicles), len(orders), directory)
    return result
