import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from freight_hub.api.deps import ClientFactory, exchange_client_factory, get_csv_store
from freight_hub.api.endpoints.offers import run_bulk_create
from freight_hub.core.config import settings
from freight_hub.core.errors import utc_now_iso
from freight_hub.generators.freight import generate_freight_offers
from freight_hub.generators.vehicle_space import generate_vehicle_space_offers
from freight_hub.schemas.generate import GenerateAllRequest, GenerateRequest, parse_count
from freight_hub.services.csv_store import CsvDataStore
from freight_hub.services.exchange_client import ExchangeClient, OfferKind


log = logging.getLogger(__name__)

router = APIRouter(prefix="/generate")


def _count_or_400(value: Any, message: str | None = None) -> int:
    try:
        return parse_count(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=message or str(e))


def _company_customer_id() -> int | None:
    value = settings.timocom_id.strip()
    return int(value) if value.isascii() and value.isdigit() else None


def _data_size(offers: list[dict[str, Any]]) -> int:
    return len(json.dumps(offers, ensure_ascii=False, separators=(",", ":")))


def _format_mb(size: int) -> str:
    return f"{size / 1024 / 1024:.2f} MB"


async def _generate(kind: OfferKind, store: CsvDataStore, count: int) -> list[dict[str, Any]]:
    if kind is OfferKind.FREIGHT:
        offers = await run_in_threadpool(
            generate_freight_offers, store.path_for("freight"), count, customer_id=_company_customer_id()
        )
    else:
        offers = await run_in_threadpool(
            generate_vehicle_space_offers, store.path_for("vehicle"), count, customer_id=_company_customer_id()
        )
    return [o.to_payload() for o in offers]


async def _post(client: ExchangeClient, kind: OfferKind, offers: list[dict[str, Any]]) -> dict[str, Any]:
    log.info("generate: bulk posting %d %ss", len(offers), kind.label)
    results = await run_bulk_create(client, kind, offers)
    log.info("generate: posted %s created=%d failed=%d", kind.value, results.created, results.failed)
    return results.model_dump(by_alias=True)


async def _generate_one(kind: OfferKind, title: str, payload: GenerateRequest | None, factory, store) -> dict:
    payload = payload or GenerateRequest()
    count = _count_or_400(payload.count)

    # built first so missing credentials fail before any generation work
    client = factory() if payload.auto_post else None
    try:
        offers = await _generate(kind, store, count)
        timocom_results = await _post(client, kind, offers) if client is not None else None
    finally:
        if client is not None:
            await client.aclose()

    size = _data_size(offers)
    if client is not None:
        message = (
            f"{title} generated and posted to TIMOCOM ({count} generated, "
            f"{timocom_results['created']} posted successfully, {timocom_results['failed']} failed)"
        )
    else:
        message = f"{title} generated successfully ({count} records)"

    return {
        "success": True,
        "message": message,
        "count": count,
        "dataSize": size,
        "dataSizeFormatted": _format_mb(size),
        "generated": utc_now_iso(),
        "autoPost": payload.auto_post,
        "timocomResults": timocom_results,
        "data": offers,
    }


@router.post("/freight")
async def generate_freight(
    payload: GenerateRequest | None = None,
    factory: ClientFactory = Depends(exchange_client_factory),
    store: CsvDataStore = Depends(get_csv_store),
) -> dict:
    return await _generate_one(OfferKind.FREIGHT, "Freight offers", payload, factory, store)


@router.post("/vehicle-space")
async def generate_vehicle_space(
    payload: GenerateRequest | None = None,
    factory: ClientFactory = Depends(exchange_client_factory),
    store: CsvDataStore = Depends(get_csv_store),
) -> dict:
    return await _generate_one(OfferKind.VEHICLE_SPACE, "Vehicle space offers", payload, factory, store)


@router.post("/all")
async def generate_all(
    payload: GenerateAllRequest | None = None,
    factory: ClientFactory = Depends(exchange_client_factory),
    store: CsvDataStore = Depends(get_csv_store),
) -> dict:
    payload = payload or GenerateAllRequest()
    invalid = "Invalid counts. Must be positive numbers between 1 and 10000."
    default = _count_or_400(payload.count, invalid)
    freight_count = default if payload.freight_count is None else _count_or_400(payload.freight_count, invalid)
    vehicle_count = default if payload.vehicle_count is None else _count_or_400(payload.vehicle_count, invalid)

    client = factory() if payload.auto_post else None
    try:
        freight = await _generate(OfferKind.FREIGHT, store, freight_count)
        vehicle = await _generate(OfferKind.VEHICLE_SPACE, store, vehicle_count)
        freight_results = vehicle_results = None
        if client is not None:
            freight_results = await _post(client, OfferKind.FREIGHT, freight)
            vehicle_results = await _post(client, OfferKind.VEHICLE_SPACE, vehicle)
    finally:
        if client is not None:
            await client.aclose()

    total = freight_count + vehicle_count
    freight_size = _data_size(freight)
    vehicle_size = _data_size(vehicle)

    timocom_results = None
    if client is not None:
        succeeded = freight_results["created"] + vehicle_results["created"]
        failed = freight_results["failed"] + vehicle_results["failed"]
        message = (
            f"All offer types generated and posted to TIMOCOM ({total} generated, "
            f"{succeeded} posted successfully, {failed} failed)"
        )
        timocom_results = {
            "totalGenerated": total,
            "totalSuccessful": succeeded,
            "totalFailed": failed,
            "freight": freight_results,
            "vehicleSpace": vehicle_results,
        }
    else:
        message = f"All offer types generated successfully ({freight_count} freight, {vehicle_count} vehicle)"

    return {
        "success": True,
        "message": message,
        "data": {"freight": freight, "vehicleSpace": vehicle},
        "summary": {
            "freightCount": freight_count,
            "vehicleCount": vehicle_count,
            "totalRecords": total,
            "freightDataSize": freight_size,
            "vehicleDataSize": vehicle_size,
            "freightDataSizeFormatted": _format_mb(freight_size),
            "vehicleDataSizeFormatted": _format_mb(vehicle_size),
        },
        "autoPost": payload.auto_post,
        "timocomResults": timocom_results,
        "generated": utc_now_iso(),
    }
