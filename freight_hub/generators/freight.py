from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from freight_hub.generators.common import (
    MAX_PAYMENT_DAYS,
    CsvRow,
    address,
    closed_exchange_setting,
    contact_person,
    currency_code,
    expand_rows,
    loading_window,
    optional_list,
    parse_bool,
    parse_number,
    positive_number,
    read_csv_rows,
    resolve_customer_id,
    seeded_random,
    shifted_places,
    utc_today,
    vehicle_properties,
)
from freight_hub.schemas.offer import CustomerRef, FreightOffer, LoadingPlace, Money


log = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("customer-id", "contactPerson-firstName", "freightDescription")

DEFAULT_CUSTOMER_ID = 902245
DEFAULT_LENGTH_M = 12.31
DEFAULT_WEIGHT_T = 5.55

# offsets from each `loadingPlaces-loadingType` column
_START_TIME, _END_TIME = 3, 4
_OBJECT_TYPE, _COUNTRY, _CITY, _POSTAL_CODE = 5, 6, 7, 8


def _stop_at(row: CsvRow, pos: int, *, today: date) -> LoadingPlace | None:
    loading_type = row.at(pos).upper()
    if loading_type not in ("LOADING", "UNLOADING"):
        return None

    loading_day, unloading_day = loading_window(today)
    day = loading_day if loading_type == "LOADING" else unloading_day
    return LoadingPlace(
        loading_type=loading_type,
        address=address(
            row.at(pos + _OBJECT_TYPE),
            row.at(pos + _COUNTRY),
            row.at(pos + _CITY),
            row.at(pos + _POSTAL_CODE),
            default_country="DE" if loading_type == "LOADING" else "PL",
        ),
        earliest_loading_date=day,
        latest_loading_date=day,
        start_time=row.at(pos + _START_TIME) or None,
        end_time=row.at(pos + _END_TIME) or None,
    )


def _default_stop(loading_type: str, *, today: date) -> LoadingPlace:
    loading_day, unloading_day = loading_window(today)
    if loading_type == "LOADING":
        return LoadingPlace(
            loading_type="LOADING",
            address=address("address", "DE", "Berlin"),
            earliest_loading_date=loading_day,
            latest_loading_date=loading_day,
        )
    return LoadingPlace(
        loading_type="UNLOADING",
        address=address("address", "PL", "Warsaw"),
        earliest_loading_date=unloading_day,
        latest_loading_date=unloading_day,
    )


def loading_places(row: CsvRow, *, today: date) -> list[LoadingPlace]:
    """
    The freight CSV repeats the `loadingPlaces-*` block once per stop. The first
    and the last block are used; a missing loading or unloading stop gets a default.
    """
    positions = row.positions("loadingPlaces-loadingType")
    places: list[LoadingPlace] = []
    if positions:
        for pos in dict.fromkeys((positions[0], positions[-1])):
            stop = _stop_at(row, pos, today=today)
            if stop is not None:
                places.append(stop)

    types = {p.loading_type for p in places}
    if "LOADING" not in types:
        places.insert(0, _default_stop("LOADING", today=today))
    if "UNLOADING" not in types:
        places.append(_default_stop("UNLOADING", today=today))
    return places


def convert_freight_row(row: CsvRow, index: int, *, today: date, customer_id: int | None = None) -> FreightOffer:
    offer = FreightOffer(
        customer=CustomerRef(id=resolve_customer_id(customer_id, row, DEFAULT_CUSTOMER_ID)),
        contact_person=contact_person(
            row,
            first_name="Fernández",
            last_name="Hernández",
            email="schnittstellen@timocom.com",
            language="de",
            business_phone="+49 211 88 26 88 26",
        ),
        vehicle_properties=vehicle_properties(row),
        trackable=parse_bool(row.get("trackable")),
        accept_quotes=parse_bool(row.get("acceptQuotes")),
        freight_description=row.get("freightDescription") or f"SDK generated freight {index + 1}",
        length_m=positive_number(row.get("length_m"), DEFAULT_LENGTH_M),
        weight_t=positive_number(row.get("weight_t"), DEFAULT_WEIGHT_T),
        loading_places=loading_places(row, today=today),
        additional_information=optional_list(row.get("additionalInformation")),
        public_remark=row.get("publicRemark") or None,
        internal_remark=row.get("internalRemark") or None,
        logistics_document_types=optional_list(row.get("logisticsDocumentTypes")),
        closed_freight_exchange_setting=closed_exchange_setting(row),
    )

    amount = parse_number(row.get("price-amount"))
    if amount > 0:
        offer.price = Money(amount=amount, currency=currency_code(row.get("price-currency")))

    payment_days = int(parse_number(row.get("paymentDueWithinDays")))
    if payment_days > 0:
        offer.payment_due_within_days = min(payment_days, MAX_PAYMENT_DAYS)

    return offer


def vary_freight_offer(base: FreightOffer, index: int, *, today: date) -> FreightOffer:
    seed = index * 12345
    r_weight = seeded_random(seed)
    r_length = seeded_random(seed + 1)

    variation = base.model_copy(deep=True)
    variation.weight_t = round(max(0.01, base.weight_t * (0.8 + r_weight * 0.4)), 2)
    variation.length_m = round(max(0.01, base.length_m * (0.8 + r_length * 0.4)), 2)
    variation.trackable = seeded_random(seed + 2) > 0.5
    variation.accept_quotes = seeded_random(seed + 3) > 0.6
    variation.freight_description = f"SDK generated freight {index}"
    variation.object_type = "freightOffer"
    variation.loading_places = shifted_places(base.loading_places, today=today, rand=r_weight)
    return variation


def generate_freight_offers(
    csv_path: Path,
    count: int,
    *,
    today: date | None = None,
    customer_id: int | None = None,
) -> list[FreightOffer]:
    today = today or utc_today()
    rows = read_csv_rows(csv_path, required=REQUIRED_COLUMNS)
    return expand_rows(
        rows,
        count,
        convert=lambda row, i: convert_freight_row(row, i, today=today, customer_id=customer_id),
        vary=lambda base, i: vary_freight_offer(base, i, today=today),
        label="freight offers",
    )
