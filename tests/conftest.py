import os
import shutil
from pathlib import Path

# before the app module builds its telemetry
os.environ["TELEMETRY_ENABLED"] = "false"

import httpx
import pytest
import pytest_asyncio

from freight_hub.api.deps import exchange_client_factory
from freight_hub.core.config import settings
from freight_hub.core.errors import UpstreamApiError, utc_now_iso
from freight_hub.main import app
from freight_hub.services.exchange_client import OfferKind


REPO_DATA = Path(__file__).resolve().parents[1] / "data"


class FakeExchangeClient:
    """In-memory stand-in for ExchangeClient; records every call."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.offers: dict[OfferKind, list[dict]] = {OfferKind.FREIGHT: [], OfferKind.VEHICLE_SPACE: []}
        # create failures still to inject, keyed by freightDescription (or "marker")
        self.fail_creates: dict[str, int] = {}
        self.fail_deletes: set[str] = set()
        self.closed = False
        self._creates = 0

    def _ok(self, data):
        return {"success": True, "data": data, "timestamp": utc_now_iso()}

    async def list_offers(self, kind):
        self.calls.append(("list", kind))
        return self._ok({"payload": list(self.offers[kind])})

    async def get_offer(self, kind, offer_id):
        self.calls.append(("get", kind, offer_id))
        for offer in self.offers[kind]:
            if offer.get("id") == offer_id:
                return self._ok(offer)
        raise UpstreamApiError("TIMOCOM API 404: not found", status_code=404, body={"title": "not found"})

    async def create_offer(self, kind, offer):
        self.calls.append(("create", kind, offer))
        self._creates += 1
        key = offer.get("freightDescription") or offer.get("marker")
        remaining = self.fail_creates.get(key, 0)
        if remaining:
            self.fail_creates[key] = remaining - 1
            raise UpstreamApiError(f"TIMOCOM API 500: boom {self._creates}", status_code=500)
        created = {**offer, "id": f"{kind.value}-{self._creates}"}
        self.offers[kind].append(created)
        return self._ok(created)

    async def delete_offer(self, kind, offer_id):
        self.calls.append(("delete", kind, offer_id))
        if offer_id in self.fail_deletes:
            raise UpstreamApiError("TIMOCOM API 409: locked", status_code=409)
        self.offers[kind] = [o for o in self.offers[kind] if o.get("id") != offer_id]
        return self._ok(None)

    async def test_connection(self):
        self.calls.append(("test",))
        return {"success": True, "message": "TIMOCOM API connection successful", "timestamp": utc_now_iso()}

    async def aclose(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    def calls_of(self, verb: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == verb]


@pytest.fixture(autouse=True)
def hub_settings(tmp_path, monkeypatch):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    for name in ("freight_offers.csv", "vehicle_offers.csv"):
        shutil.copyfile(REPO_DATA / name, data_dir / name)

    monkeypatch.setattr(settings, "data_dir", data_dir)
    monkeypatch.setattr(settings, "export_dir", tmp_path / "exports")
    monkeypatch.setattr(settings, "timocom_id", "902245")
    monkeypatch.setattr(settings, "bulk_retry_delay_seconds", 0.0)
    monkeypatch.setattr(settings, "bulk_batch_delay_seconds", 0.0)
    monkeypatch.setattr(settings, "delete_all_delay_seconds", 0.0)
    return settings


@pytest.fixture
def fake_exchange():
    return FakeExchangeClient()


@pytest_asyncio.fixture
async def client(fake_exchange):
    """HTTP client against the app with the exchange client replaced by a fake."""
    app.dependency_overrides[exchange_client_factory] = lambda: (lambda: fake_exchange)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
