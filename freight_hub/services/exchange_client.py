from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any

import httpx

from freight_hub.core.config import Settings, settings as default_settings
from freight_hub.core.errors import ConfigurationError, UpstreamApiError, utc_now_iso
from freight_hub.services.http_client import HttpResult, JsonHttpClient


log = logging.getLogger(__name__)

USER_AGENT = "freight-hub/1.0.0"


class OfferKind(str, Enum):
    FREIGHT = "freight-offers"
    VEHICLE_SPACE = "vehicle-space-offers"

    @property
    def collection_path(self) -> str:
        return f"/freight-exchange/3/my-{self.value}"

    def item_path(self, offer_id: str) -> str:
        # the exchange serves single freight offers from the public collection
        if self is OfferKind.FREIGHT:
            return f"/freight-exchange/3/freight-offers/{offer_id}"
        return f"{self.collection_path}/{offer_id}"

    def own_item_path(self, offer_id: str) -> str:
        return f"{self.collection_path}/{offer_id}"

    @property
    def label(self) -> str:
        return "freight offer" if self is OfferKind.FREIGHT else "vehicle space offer"


def _describe_body(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    return json.dumps(body, ensure_ascii=False, default=str)


class ExchangeClient:
    """
    Freight exchange REST client: one helper per (offer kind x verb).

    Every call sends basic auth and the company id as `timocom_id`. Successful calls
    return {"success": True, "data": ..., "timestamp": ...}; anything else raises
    UpstreamApiError.
    """

    def __init__(
        self,
        *,
        username: str,
        password: str,
        company_id: str,
        base_url: str,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not username or not password or not company_id:
            raise ConfigurationError(
                "Missing required TIMOCOM credentials. Please provide username, password and company id "
                "via environment variables (TIMOCOM_USERNAME, TIMOCOM_PASSWORD, TIMOCOM_ID)"
            )
        self.company_id = company_id
        self._http = JsonHttpClient(
            base_url=base_url,
            auth=(username, password),
            timeout_seconds=timeout_seconds,
            default_headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            },
            transport=transport,
        )

    @classmethod
    def from_settings(cls, cfg: Settings | None = None, *, transport: httpx.AsyncBaseTransport | None = None) -> "ExchangeClient":
        cfg = cfg or default_settings
        return cls(
            username=cfg.timocom_username,
            password=cfg.timocom_password.get_secret_value(),
            company_id=cfg.timocom_id,
            base_url=cfg.timocom_base_url,
            timeout_seconds=cfg.timocom_timeout_ms / 1000,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._http.base_url

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ExchangeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _params(self, **extra: Any) -> dict[str, str]:
        params = {"timocom_id": self.company_id}
        for key, value in extra.items():
            if value is not None:
                params[key] = str(value)
        return params

    @staticmethod
    def _unwrap(result: HttpResult) -> dict[str, Any]:
        if result.ok:
            return {"success": True, "data": result.body, "timestamp": utc_now_iso()}

        if result.status_code is None:
            raise UpstreamApiError(f"TIMOCOM API Error: {result.error_message}", body=result.body)

        detail = _describe_body(result.body)
        message = f"TIMOCOM API {result.status_code}"
        if detail:
            message = f"{message}: {detail}"
        raise UpstreamApiError(message, status_code=result.status_code, body=result.body)

    # generic operations
    async def list_offers(self, kind: OfferKind) -> dict[str, Any]:
        result = await self._http.get_json(kind.collection_path, params=self._params())
        return self._unwrap(result)

    async def get_offer(self, kind: OfferKind, offer_id: str) -> dict[str, Any]:
        result = await self._http.get_json(kind.item_path(offer_id), params=self._params())
        return self._unwrap(result)

    async def create_offer(self, kind: OfferKind, offer: dict[str, Any]) -> dict[str, Any]:
        log.debug("creating %s: %s", kind.label, offer)
        result = await self._http.post_json(kind.collection_path, offer, params=self._params())
        if not result.ok:
            log.error("create %s failed: status=%s body=%s", kind.label, result.status_code, result.body)
        return self._unwrap(result)

    async def delete_offer(self, kind: OfferKind, offer_id: str) -> dict[str, Any]:
        result = await self._http.delete(kind.own_item_path(offer_id), params=self._params())
        return self._unwrap(result)

    # freight offers
    async def list_freight_offers(self) -> dict[str, Any]:
        return await self.list_offers(OfferKind.FREIGHT)

    async def get_freight_offer(self, offer_id: str) -> dict[str, Any]:
        return await self.get_offer(OfferKind.FREIGHT, offer_id)

    async def create_freight_offer(self, offer: dict[str, Any]) -> dict[str, Any]:
        return await self.create_offer(OfferKind.FREIGHT, offer)

    async def delete_freight_offer(self, offer_id: str) -> dict[str, Any]:
        return await self.delete_offer(OfferKind.FREIGHT, offer_id)

    # vehicle space offers
    async def list_vehicle_space_offers(self) -> dict[str, Any]:
        return await self.list_offers(OfferKind.VEHICLE_SPACE)

    async def get_vehicle_space_offer(self, offer_id: str) -> dict[str, Any]:
        return await self.get_offer(OfferKind.VEHICLE_SPACE, offer_id)

    async def create_vehicle_space_offer(self, offer: dict[str, Any]) -> dict[str, Any]:
        return await self.create_offer(OfferKind.VEHICLE_SPACE, offer)

    async def delete_vehicle_space_offer(self, offer_id: str) -> dict[str, Any]:
        return await self.delete_offer(OfferKind.VEHICLE_SPACE, offer_id)

    async def test_connection(self) -> dict[str, Any]:
        try:
            await self.list_freight_offers()
        except UpstreamApiError as e:
            return {"success": False, "error": str(e), "timestamp": utc_now_iso()}
        return {"success": True, "message": "TIMOCOM API connection successful", "timestamp": utc_now_iso()}
