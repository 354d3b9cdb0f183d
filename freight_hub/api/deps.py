from typing import AsyncIterator, Callable

from fastapi import Depends

from freight_hub.core.config import settings
from freight_hub.services.csv_store import CsvDataStore
from freight_hub.services.exchange_client import ExchangeClient


ClientFactory = Callable[[], ExchangeClient]


def exchange_client_factory() -> ClientFactory:
    """Overridden in tests to swap the real client for a fake."""
    return ExchangeClient.from_settings


async def get_exchange_client(
    factory: ClientFactory = Depends(exchange_client_factory),
) -> AsyncIterator[ExchangeClient]:
    # raises ConfigurationError before the handler runs when credentials are missing
    client = factory()
    try:
        yield client
    finally:
        await client.aclose()


def get_csv_store() -> CsvDataStore:
    return CsvDataStore(settings.data_dir, max_bytes=settings.max_upload_bytes)
