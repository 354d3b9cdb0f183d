import asyncio

import pytest

from freight_hub.services.bulk import bulk_create, delete_all, extract_offers
from freight_hub.services.retry import RetryExhaustedError, call_with_single_retry


class Recorder:
    def __init__(self, fail_plan=None, delay=0.001):
        # fail_plan: offer index -> number of attempts that should fail
        self.fail_plan = dict(fail_plan or {})
        self.attempts: dict[int, int] = {}
        self.in_flight = 0
        self.peak = 0
        self.delay = delay

    async def submit(self, offer):
        i = offer["i"]
        self.attempts[i] = self.attempts.get(i, 0) + 1
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.fail_plan.get(i, 0) >= self.attempts[i]:
                raise RuntimeError(f"fail {i}/{self.attempts[i]}")
            return {"success": True, "data": {"id": f"offer-{i}"}}
        finally:
            self.in_flight -= 1


def _offers(n):
    return [{"i": i} for i in range(n)]


@pytest.mark.asyncio
async def test_bulk_respects_concurrency_and_counts():
    rec = Recorder()
    result = await bulk_create(rec.submit, _offers(12), max_concurrent=5, retry_delay=0, batch_delay=0)

    assert rec.peak <= 5
    assert result.total == 12
    assert result.created == 12
    assert result.failed == 0
    assert sorted(o["id"] for o in result.created_offers) == sorted(f"offer-{i}" for i in range(12))


@pytest.mark.asyncio
async def test_bulk_retry_success_records_no_failure():
    rec = Recorder(fail_plan={3: 1})
    result = await bulk_create(rec.submit, _offers(6), max_concurrent=2, retry_delay=0, batch_delay=0)

    assert rec.attempts[3] == 2
    assert result.created == 6
    assert result.failures == []


@pytest.mark.asyncio
async def test_bulk_double_failure_reports_both_attempts():
    rec = Recorder(fail_plan={1: 2, 4: 5})
    result = await bulk_create(rec.submit, _offers(5), max_concurrent=3, retry_delay=0, batch_delay=0)

    assert result.total == result.created + result.failed == 5
    assert {f.index for f in result.failures} == {1, 4}
    # exactly one retry, never a third attempt
    assert rec.attempts[4] == 2
    failure = next(f for f in result.failures if f.index == 1)
    assert failure.error == "Initial: fail 1/1, Retry: fail 1/2"


@pytest.mark.asyncio
async def test_bulk_chunks_do_not_overlap():
    order = []

    async def submit(offer):
        order.append(("start", offer["i"]))
        await asyncio.sleep(0.001 * (3 - offer["i"] % 3))
        order.append(("end", offer["i"]))
        return {"data": offer}

    await bulk_create(submit, _offers(6), max_concurrent=3, retry_delay=0, batch_delay=0)

    last_end_first_chunk = max(order.index(("end", i)) for i in range(3))
    first_start_second_chunk = min(order.index(("start", i)) for i in range(3, 6))
    assert last_end_first_chunk < first_start_second_chunk


@pytest.mark.asyncio
async def test_bulk_rejects_non_positive_concurrency():
    with pytest.raises(ValueError):
        await bulk_create(Recorder().submit, _offers(1), max_concurrent=0)


@pytest.mark.asyncio
async def test_single_retry_gives_up_after_second_failure():
    calls = 0

    async def always_fails():
        nonlocal calls
        calls += 1
        raise RuntimeError(f"attempt {calls}")

    with pytest.raises(RetryExhaustedError) as exc_info:
        await call_with_single_retry(always_fails, delay_seconds=0)

    assert calls == 2
    assert str(exc_info.value) == "Initial: attempt 1, Retry: attempt 2"


@pytest.mark.asyncio
async def test_delete_all_with_empty_list_issues_no_delete():
    deleted = []

    async def list_offers():
        return {"success": True, "data": {"payload": []}}

    async def delete_offer(offer_id):
        deleted.append(offer_id)

    result = await delete_all(list_offers, delete_offer, delay=0)

    assert deleted == []
    assert (result.total, result.deleted, result.failed, result.skipped) == (0, 0, 0, 0)


@pytest.mark.asyncio
async def test_delete_all_skips_offers_without_id_and_collects_failures():
    deleted = []

    async def list_offers():
        return {"data": {"payload": [{"id": "a"}, {"publicOfferId": "b"}, {"title": "no id"}, {"id": "c"}]}}

    async def delete_offer(offer_id):
        if offer_id == "c":
            raise RuntimeError("locked")
        deleted.append(offer_id)

    result = await delete_all(list_offers, delete_offer, delay=0)

    assert deleted == ["a", "b"]
    assert result.deleted_offers == ["a", "b"]
    assert result.skipped == 1
    assert [(f.offer_id, f.error) for f in result.failures] == [("c", "locked")]
    assert result.total == result.deleted + result.failed + result.skipped


def test_extract_offers_accepts_known_shapes():
    assert extract_offers({"payload": [{"id": 1}]}) == [{"id": 1}]
    assert extract_offers([{"id": 2}]) == [{"id": 2}]
    assert extract_offers({"offers": [{"id": 3}]}) == [{"id": 3}]
    assert extract_offers(None) == []
