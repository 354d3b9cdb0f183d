from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, Sequence, TypeVar

from freight_hub.core.errors import CsvDataError
from freight_hub.schemas.offer import (
    Address,
    ClosedFreightExchangeSetting,
    ContactPerson,
    LoadingPlace,
    VehicleProperties,
)


log = logging.getLogger(__name__)

T = TypeVar("T")

TITLE_MAPPING = {
    "Dr": "MR",
    "DR": "MR",
    "Ms": "MRS",
    "MS": "MRS",
    "Miss": "MRS",
    "Herr": "MR",
    "Prof": "MR",
    "Professor": "MR",
}

DEFAULT_BODY = "MOVING_FLOOR"
BODY_MAPPING = {
    "box van": DEFAULT_BODY,
    "flatbed trailer": DEFAULT_BODY,
    "refrigerated truck": DEFAULT_BODY,
    "tarpaulin truck": DEFAULT_BODY,
    "container chassis": DEFAULT_BODY,
    "curtain sider": DEFAULT_BODY,
    "tank trailer": DEFAULT_BODY,
    "low loader": DEFAULT_BODY,
    "bulk carrier": DEFAULT_BODY,
    "container truck": DEFAULT_BODY,
}

DEFAULT_VEHICLE_TYPE = "VEHICLE_UP_TO_12_T"
TYPE_MAPPING = {
    "refrigerated truck": DEFAULT_VEHICLE_TYPE,
    "insulated van": DEFAULT_VEHICLE_TYPE,
    "tarpaulin truck": DEFAULT_VEHICLE_TYPE,
    "flatbed truck": DEFAULT_VEHICLE_TYPE,
    "platform trailer": DEFAULT_VEHICLE_TYPE,
    "tipper truck": DEFAULT_VEHICLE_TYPE,
    "container carrier": DEFAULT_VEHICLE_TYPE,
    "tank truck": DEFAULT_VEHICLE_TYPE,
    "grain truck": DEFAULT_VEHICLE_TYPE,
}


MAX_REMARK_LENGTH = 150
MAX_PAYMENT_DAYS = 999


@dataclass(frozen=True)
class CsvRow:
    """
    One CSV data line.

    Column names may repeat (the freight file carries one `loadingPlaces-*` block per
    stop), so values are kept positionally next to the header. Lookups by name return
    the first occurrence.
    """

    columns: tuple[str, ...]
    values: tuple[str, ...]

    def get(self, name: str) -> str:
        try:
            return self.values[self.columns.index(name)]
        except ValueError:
            return ""

    def at(self, position: int) -> str:
        if 0 <= position < len(self.values):
            return self.values[position]
        return ""

    def positions(self, name: str) -> list[int]:
        return [i for i, c in enumerate(self.columns) if c == name]


def parse_csv(text: str, *, required: Sequence[str]) -> list[CsvRow]:
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=",", quotechar='"')
    header: tuple[str, ...] | None = None
    rows: list[CsvRow] = []
    skipped = 0

    for line_no, raw in enumerate(reader, start=1):
        values = tuple(v.strip() for v in raw)
        if not any(values):
            continue
        if header is None:
            header = values
            continue
        if len(values) != len(header):
            skipped += 1
            log.debug("csv: skipping line %d (%d columns, expected %d)", line_no, len(values), len(header))
            continue

        row = CsvRow(columns=header, values=values)
        if all(row.get(col) for col in required):
            rows.append(row)
        else:
            skipped += 1

    if skipped:
        log.info("csv: skipped %d unusable rows", skipped)
    return rows


def read_csv_rows(path: Path, *, required: Sequence[str]) -> list[CsvRow]:
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise CsvDataError(f"CSV file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise CsvDataError(f"CSV file could not be read: {path}: {e}") from e

    rows = parse_csv(text, required=required)
    log.info("csv: found %d valid rows in %s", len(rows), path)
    if not rows:
        raise CsvDataError("No valid data found in CSV file")
    return rows


# --- field parsing ---

def parse_string_list(value: str) -> list[str]:
    if not value:
        return []
    return [s.strip() for s in value.split(",") if s.strip()]


def parse_bool(value: str) -> bool:
    return (value or "").strip().lower() == "true"


def parse_number(value: str) -> float:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(num) or math.isinf(num):
        return 0.0
    return num


def optional_list(value: str) -> list[str] | None:
    return parse_string_list(value) or None


def normalize_title(raw: str) -> str:
    raw = (raw or "").strip() or "MR"
    return TITLE_MAPPING.get(raw, raw.upper())


def map_body(values: Iterable[str]) -> list[str]:
    mapped = [BODY_MAPPING.get(v.lower(), DEFAULT_BODY) for v in values]
    return mapped or [DEFAULT_BODY]


def map_vehicle_type(values: Iterable[str]) -> list[str]:
    mapped = [TYPE_MAPPING.get(v.lower(), DEFAULT_VEHICLE_TYPE) for v in values]
    return mapped or [DEFAULT_VEHICLE_TYPE]


def vehicle_properties(row: CsvRow, *, single_type: bool = False) -> VehicleProperties:
    types = map_vehicle_type(parse_string_list(row.get("vehicleProperties-type")))
    return VehicleProperties(
        body=map_body(parse_string_list(row.get("vehicleProperties-body"))),
        type=types[:1] if single_type else types,
        body_property=optional_list(row.get("vehicleProperties-bodyProperty")),
        equipment=optional_list(row.get("vehicleProperties-equipment")),
        load_securing=optional_list(row.get("vehicleProperties-loadSecuring")),
        swap_body=optional_list(row.get("vehicleProperties-swapBody")),
    )


def contact_person(
    row: CsvRow,
    *,
    first_name: str,
    last_name: str,
    email: str,
    language: str,
    business_phone: str | None = None,
) -> ContactPerson:
    return ContactPerson(
        title=normalize_title(row.get("contactPerson-title")),
        first_name=row.get("contactPerson-firstName") or first_name,
        last_name=row.get("contactPerson-lastName") or last_name,
        email=row.get("contactPerson-email") or email,
        languages=parse_string_list(row.get("contactPerson-languages")) or [language],
        business_phone=row.get("contactPerson-businessPhone") or business_phone,
        mobile_phone=row.get("contactPerson-mobilePhone") or None,
        fax=row.get("contactPerson-fax") or None,
    )


def country_code(value: str, default: str) -> str:
    """ISO alpha-2 or the default; names like `Germany` or `POL` are not guessed at."""
    value = (value or "").strip().upper()
    return value if len(value) == 2 and value.isalpha() else default


def currency_code(value: str, default: str = "EUR") -> str:
    value = (value or "").strip().upper()
    return value if len(value) == 3 and value.isalpha() else default


def positive_number(value: str, default: float) -> float:
    num = parse_number(value)
    return num if num > 0 else default


def address(
    object_type: str,
    country: str,
    city: str,
    postal_code: str | None = None,
    *,
    default_country: str = "DE",
) -> Address:
    return Address(
        object_type=object_type or "address",
        country=country_code(country, default_country),
        city=city or "Berlin",
        postal_code=postal_code or None,
    )


def resolve_customer_id(explicit: int | None, row: CsvRow, default: int) -> int:
    if explicit:
        return explicit
    return int(parse_number(row.get("customer-id"))) or default


def closed_exchange_setting(row: CsvRow) -> ClosedFreightExchangeSetting | None:
    prefix = "closedFreightExchangeSetting-"
    exchange_id = int(parse_number(row.get(prefix + "closedFreightExchangeId")))
    if not exchange_id:
        return None
    publication_type = row.get(prefix + "publicationType")
    if publication_type not in ("INTERNAL_ONLY", "EXTERNAL_LATER"):
        publication_type = "INTERNAL_ONLY"
    retention = int(parse_number(row.get(prefix + "retentionDurationInMinutes")))
    return ClosedFreightExchangeSetting(
        closed_freight_exchange_id=exchange_id,
        publication_type=publication_type,
        remark=row.get(prefix + "remark")[:MAX_REMARK_LENGTH] or None,
        retention_duration_in_minutes=retention if retention > 0 else None,
        publication_date_time=row.get(prefix + "publicationDateTime") or None,
    )


# --- dates & seeded randomness ---

def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def loading_window(today: date) -> tuple[str, str]:
    tomorrow = today + timedelta(days=1)
    return tomorrow.isoformat(), (tomorrow + timedelta(days=1)).isoformat()


def seeded_random(seed: float) -> float:
    x = math.sin(seed) * 10000
    return x - math.floor(x)


def shifted_places(places: Sequence[LoadingPlace], *, today: date, rand: float) -> list[LoadingPlace]:
    """Move every stop to tomorrow + floor(rand * 30) days; unloading one day later."""
    loading = today + timedelta(days=1 + math.floor(rand * 30))
    unloading = loading + timedelta(days=1)
    out = []
    for p in places:
        d = (loading if p.loading_type == "LOADING" else unloading).isoformat()
        out.append(p.model_copy(update={"earliest_loading_date": d, "latest_loading_date": d}, deep=True))
    return out


def expand_rows(
    rows: Sequence[CsvRow],
    count: int,
    *,
    convert: Callable[[CsvRow, int], T],
    vary: Callable[[T, int], T],
    label: str,
) -> list[T]:
    """
    Direct conversions for the first len(rows) indices, seeded variations of
    record[index % len(rows)] beyond that. Always returns exactly `count` records.
    """
    if not rows:
        raise CsvDataError("No valid data found in CSV file")

    log.info("generating %d %s", count, label)
    offers: list[T] = []
    step = max(1, count // 10)
    for i in range(count):
        if i < len(rows):
            offers.append(convert(rows[i], i))
        else:
            offers.append(vary(offers[i % len(rows)], i))

        if (i + 1) % step == 0 or i + 1 == count:
            log.info("generated %d/%d %s", i + 1, count, label)

    return offers
