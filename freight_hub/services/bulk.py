from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

from freight_hub.core.errors import error_message
from freight_hub.services.retry import RetryExhaustedError, call_with_single_retry


log = logging.getLogger(__name__)

SubmitFn = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]
ListFn = Callable[[], Awaitable[dict[str, Any]]]
DeleteFn = Callable[[str], Awaitable[Any]]


@dataclass(frozen=True)
class ItemOutcome:
    index: int
    ok: bool
    data: Any = None
    error: str | None = None


@dataclass(frozen=True)
class BulkFailure:
    index: int
    error: str


@dataclass
class BulkCreateResult:
    total: int
    created_offers: list[Any] = field(default_factory=list)
    failures: list[BulkFailure] = field(default_factory=list)

    @property
    def created(self) -> int:
        return len(self.created_offers)

    @property
    def failed(self) -> int:
        return len(self.failures)


@dataclass(frozen=True)
class DeleteFailure:
    offer_id: str
    error: str


@dataclass
class DeleteAllResult:
    total: int
    deleted_offers: list[str] = field(default_factory=list)
    failures: list[DeleteFailure] = field(default_factory=list)
    skipped: int = 0

    @property
    def deleted(self) -> int:
        return len(self.deleted_offers)

    @property
    def failed(self) -> int:
        return len(self.failures)


def _chunks(items: Sequence[Any], size: int):
    for start in range(0, len(items), size):
        yield start, items[start : start + size]


async def bulk_create(
    submit: SubmitFn,
    offers: Sequence[dict[str, Any]],
    *,
    max_concurrent: int = 5,
    retry_delay: float = 1.0,
    batch_delay: float = 1.0,
) -> BulkCreateResult:
    """
    Create every offer through `submit`, `max_concurrent` at a time.

    Chunks run one after another; items inside a chunk run concurrently. Each item
    gets one attempt plus exactly one retry after `retry_delay`. Item failures are
    collected, never raised. `batch_delay` throttles between chunks.
    """
    if max_concurrent < 1:
        raise ValueError("max_concurrent must be a positive integer")

    total = len(offers)
    result = BulkCreateResult(total=total)
    done = 0

    async def _one(index: int, offer: dict[str, Any]) -> ItemOutcome:
        nonlocal done

        def _warn(e: Exception) -> None:
            log.warning("bulk: first attempt failed for offer %d: %s; retrying in %ss", index, error_message(e), retry_delay)

        try:
            response = await call_with_single_retry(lambda: submit(offer), delay_seconds=retry_delay, on_first_failure=_warn)
        except RetryExhaustedError as e:
            log.error("bulk: both attempts failed for offer %d: %s", index, error_message(e.second))
            return ItemOutcome(index=index, ok=False, error=str(e))

        done += 1
        log.info("bulk: created offer %d/%d", done, total)
        data = response.get("data") if isinstance(response, dict) else response
        return ItemOutcome(index=index, ok=True, data=data)

    for start, chunk in _chunks(offers, max_concurrent):
        outcomes = await asyncio.gather(*(_one(start + i, offer) for i, offer in enumerate(chunk)))
        for outcome in outcomes:
            if outcome.ok:
                result.created_offers.append(outcome.data)
            else:
                result.failures.append(BulkFailure(index=outcome.index, error=outcome.error or ""))

        if start + max_concurrent < total:
            await asyncio.sleep(batch_delay)

    log.info("bulk: finished total=%d created=%d failed=%d", result.total, result.created, result.failed)
    return result


def extract_offers(data: Any) -> list[dict[str, Any]]:
    # list responses come as {"payload": [...]}, a bare list, or {"offers": [...]}
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        items = data.get("payload")
        if not isinstance(items, list):
            items = data.get("offers")
        if not isinstance(items, list):
            items = []
    else:
        items = []
    return [i for i in items if isinstance(i, dict)]


def _offer_id(offer: dict[str, Any]) -> str | None:
    value = offer.get("id") or offer.get("publicOfferId")
    return str(value) if value else None


async def delete_all(
    list_offers: ListFn,
    delete_offer: DeleteFn,
    *,
    delay: float = 0.5,
) -> DeleteAllResult:
    """Withdraw every listed offer, one at a time, pausing `delay` between deletions."""
    listing = await list_offers()
    offers = extract_offers(listing.get("data") if isinstance(listing, dict) else listing)
    result = DeleteAllResult(total=len(offers))

    for position, offer in enumerate(offers):
        offer_id = _offer_id(offer)
        if offer_id is None:
            log.warning("delete-all: skipping offer without id or publicOfferId (position %d)", position)
            result.skipped += 1
            continue

        try:
            await delete_offer(offer_id)
        except Exception as e:
            msg = error_message(e)
            result.failures.append(DeleteFailure(offer_id=offer_id, error=msg))
            log.warning("delete-all: failed to delete %s: %s", offer_id, msg)
        else:
            result.deleted_offers.append(offer_id)
            log.info("delete-all: deleted %d/%d: %s", result.deleted, result.total, offer_id)

        if position < len(offers) - 1:
            await asyncio.sleep(delay)

    return result
