import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from freight_hub.api.deps import ClientFactory, exchange_client_factory, get_exchange_client
from freight_hub.core.config import settings
from freight_hub.core.errors import error_body, utc_now_iso
from freight_hub.schemas.bulk import (
    BulkCreateResponse,
    BulkCreateResults,
    DeleteAllResponse,
    DeleteAllResults,
    FreightBulkRequest,
    VehicleSpaceBulkRequest,
)
from freight_hub.schemas.common import ApiResponse, ConnectionTestResponse
from freight_hub.schemas.offer import FreightOffer, OfferBase, VehicleSpaceOffer
from freight_hub.services.bulk import bulk_create, delete_all
from freight_hub.services.exchange_client import ExchangeClient, OfferKind


log = logging.getLogger(__name__)

router = APIRouter()


@router.get("/test", response_model=ConnectionTestResponse, response_model_exclude_none=True)
async def test_connection(client: ExchangeClient = Depends(get_exchange_client)) -> dict:
    return await client.test_connection()


async def run_bulk_create(
    client: ExchangeClient,
    kind: OfferKind,
    offers: list[dict[str, Any]],
    *,
    max_concurrent: int | None = None,
) -> BulkCreateResults:
    log.info("bulk: creating %d %ss", len(offers), kind.label)
    result = await bulk_create(
        lambda offer: client.create_offer(kind, offer),
        offers,
        max_concurrent=max_concurrent or settings.bulk_max_concurrent,
        retry_delay=settings.bulk_retry_delay_seconds,
        batch_delay=settings.bulk_batch_delay_seconds,
    )
    return BulkCreateResults.from_result(result)


def build_offer_router(kind: OfferKind, offer_model: type[OfferBase], bulk_model: type) -> APIRouter:
    """CRUD proxy, bulk create and delete-all for one offer collection."""
    r = APIRouter(prefix=f"/{kind.value}")
    plural = f"{kind.label}s"

    @r.get("", response_model=ApiResponse)
    async def list_offers(client: ExchangeClient = Depends(get_exchange_client)) -> dict:
        return await client.list_offers(kind)

    @r.post("/bulk", response_model=BulkCreateResponse, response_model_by_alias=True)
    async def create_offers_bulk(
        payload: bulk_model,
        client: ExchangeClient = Depends(get_exchange_client),
    ) -> BulkCreateResponse:
        offers = [o.to_payload() for o in payload.offers]
        results = await run_bulk_create(client, kind, offers, max_concurrent=payload.max_concurrent)
        return BulkCreateResponse(
            message=f"Bulk operation completed: {results.created} created, {results.failed} failed",
            results=results,
            timestamp=utc_now_iso(),
        )

    @r.post("/delete-all", response_model=DeleteAllResponse, response_model_by_alias=True)
    async def delete_all_offers(
        body: dict | None = Body(None),
        factory: ClientFactory = Depends(exchange_client_factory),
    ):
        if not body or body.get("confirm") is not True:
            return JSONResponse(
                status_code=400,
                content=error_body(
                    'This operation requires confirmation. Set "confirm": true in the request body to proceed.',
                    warning=f"This will delete ALL {plural} and cannot be undone.",
                    example={"confirm": True},
                ),
            )

        log.info("delete-all: withdrawing every %s", kind.label)
        async with factory() as client:
            result = await delete_all(
                lambda: client.list_offers(kind),
                lambda offer_id: client.delete_offer(kind, offer_id),
                delay=settings.delete_all_delay_seconds,
            )
        if result.total == 0:
            message = f"No {plural} found to delete"
        else:
            message = f"Delete all operation completed: {result.deleted} deleted, {result.failed} failed"
        return DeleteAllResponse(
            message=message,
            results=DeleteAllResults.from_result(result),
            timestamp=utc_now_iso(),
        )

    @r.get("/{offer_id}", response_model=ApiResponse)
    async def get_offer(offer_id: str, client: ExchangeClient = Depends(get_exchange_client)) -> dict:
        return await client.get_offer(kind, offer_id)

    @r.post("", status_code=201, response_model=ApiResponse)
    async def create_offer(
        offer: offer_model,
        client: ExchangeClient = Depends(get_exchange_client),
    ) -> dict:
        log.info("creating %s", kind.label)
        return await client.create_offer(kind, offer.to_payload())

    @r.delete("/{offer_id}", response_model=ApiResponse)
    async def delete_offer(offer_id: str, client: ExchangeClient = Depends(get_exchange_client)) -> dict:
        return await client.delete_offer(kind, offer_id)

    return r


router.include_router(build_offer_router(OfferKind.FREIGHT, FreightOffer, FreightBulkRequest))
router.include_router(build_offer_router(OfferKind.VEHICLE_SPACE, VehicleSpaceOffer, VehicleSpaceBulkRequest))
