from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from freight_hub.generators.common import (
    CsvRow,
    address,
    closed_exchange_setting,
    contact_person,
    expand_rows,
    loading_window,
    parse_bool,
    read_csv_rows,
    resolve_customer_id,
    seeded_random,
    shifted_places,
    utc_today,
    vehicle_properties,
)
from freight_hub.schemas.offer import CustomerRef, LoadingPlace, VehicleSpaceOffer


log = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("customer-id", "contactPerson-firstName", "vehicleProperties-type")

DEFAULT_CUSTOMER_ID = 10000

_INFO_COLUMNS = (
    ("trailerlength-m", "Trailer length: {}m"),
    ("trucklength-m", "Truck length: {}m"),
    ("trailerWeight-t", "Trailer weight: {}t"),
    ("truckWeight-t", "Truck weight: {}t"),
    ("destintationArea-SizeKm", "Destination area: {}km radius"),
)


def loading_places(row: CsvRow, *, today: date) -> list[LoadingPlace]:
    loading_day, unloading_day = loading_window(today)
    start = LoadingPlace(
        loading_type="LOADING",
        address=address(
            row.get("startObjectType") or "address",
            row.get("startCountry"),
            row.get("startCity") or "Berlin",
            row.get("startPostalCode"),
            default_country="DE",
        ),
        earliest_loading_date=loading_day,
        latest_loading_date=loading_day,
    )
    destination = LoadingPlace(
        loading_type="UNLOADING",
        address=address(
            "address",
            row.get("startCountry"),
            row.get("destintationArea-Address") or row.get("startCity") or "Warsaw",
            default_country="PL",
        ),
        earliest_loading_date=unloading_day,
        latest_loading_date=unloading_day,
    )
    return [start, destination]


def additional_information(row: CsvRow) -> list[str] | None:
    lines = [template.format(row.get(col)) for col, template in _INFO_COLUMNS if row.get(col)]
    return lines or None


def convert_vehicle_row(
    row: CsvRow, index: int, *, today: date, customer_id: int | None = None
) -> VehicleSpaceOffer:
    return VehicleSpaceOffer(
        customer=CustomerRef(id=resolve_customer_id(customer_id, row, DEFAULT_CUSTOMER_ID)),
        contact_person=contact_person(
            row,
            first_name="John",
            last_name="Doe",
            email="john.doe@example.com",
            language="en",
        ),
        vehicle_properties=vehicle_properties(row, single_type=True),
        trackable=parse_bool(row.get("trackable")),
        accept_quotes=True,
        loading_places=loading_places(row, today=today),
        additional_information=additional_information(row),
        closed_freight_exchange_setting=closed_exchange_setting(row),
    )


def vary_vehicle_offer(base: VehicleSpaceOffer, index: int, *, today: date) -> VehicleSpaceOffer:
    seed = index * 54321
    r1 = seeded_random(seed)

    variation = base.model_copy(deep=True)
    variation.trackable = r1 > 0.4
    variation.accept_quotes = seeded_random(seed + 3) > 0.3
    variation.object_type = "VehicleSpaceOffer"
    variation.loading_places = shifted_places(base.loading_places, today=today, rand=seeded_random(seed + 2))
    return variation


def generate_vehicle_space_offers(
    csv_path: Path,
    count: int,
    *,
    today: date | None = None,
    customer_id: int | None = None,
) -> list[VehicleSpaceOffer]:
    today = today or utc_today()
    rows = read_csv_rows(csv_path, required=REQUIRED_COLUMNS)
    return expand_rows(
        rows,
        count,
        convert=lambda row, i: convert_vehicle_row(row, i, today=today, customer_id=customer_id),
        vary=lambda base, i: vary_vehicle_offer(base, i, today=today),
        label="vehicle-space offers",
    )
