# tests/services/test_rto_runner.py
import asyncio

import pytest

from rtoops.jobs import rto_runner
from rtoops.jobs.rto_runner import run_batch, run_single
from rtoops.jobs.rto_types import JobResult, JobStatus, ReturnJob

pytestmark = pytest.mark.asyncio


def _seed(fake_shop):
    fake_shop.add_order("#MA1", order_id=1)
    fake_shop.add_order("#MA2", order_id=2, financial_status="paid")
    fake_shop.add_order("#MA3", order_id=3, returnables=[])
    fake_shop.add_order("#MA4", order_id=4)


async def test_batch_keeps_input_order_and_one_result_per_job(fake_shop, shopify):
    _seed(fake_shop)
    jobs = [ReturnJob(order_name=n) for n in ("MA1", "MA2", "MA404", "MA3", "#MA4")]

    results = await run_batch(shopify, jobs, max_workers=1)

    assert [r.order_name for r in results] == ["MA1", "MA2", "MA404", "MA3", "#MA4"]
    assert [r.status for r in results] == [
        JobStatus.RETURN_CREATED,
        JobStatus.SKIPPED_PAID,
        JobStatus.NOT_FOUND,
        JobStatus.NO_RETURNABLES,
        JobStatus.RETURN_CREATED,
    ]


async def test_job_raising_does_not_abort_batch(fake_shop, shopify, monkeypatch):
    _seed(fake_shop)
    real = rto_runner.process_job

    async def flaky(client, job):
        if job.order_name == "MA2":
            raise RuntimeError("boom")
        return await real(client, job)

    monkeypatch.setattr(rto_runner, "process_job", flaky)
    jobs = [ReturnJob(order_name=n) for n in ("MA1", "MA2", "MA4")]

    results = await run_batch(shopify, jobs, max_workers=1)

    assert len(results) == 3
    assert results[1].status is JobStatus.ERROR
    assert results[1].message == "boom"
    assert results[0].status is JobStatus.RETURN_CREATED
    assert results[2].status is JobStatus.RETURN_CREATED


async def test_transport_failure_on_one_order_is_isolated(fake_shop, shopify):
    _seed(fake_shop)
    fake_shop.lookup_failures["MA1"] = "timeout"

    results = await run_batch(shopify, [ReturnJob(order_name="MA1"), ReturnJob(order_name="MA4")], max_workers=1)

    assert results[0].status is JobStatus.ERROR
    assert "timed out" in results[0].message
    assert results[1].status is JobStatus.RETURN_CREATED


async def test_pooled_batch_preserves_order(fake_shop, shopify, monkeypatch):
    _seed(fake_shop)
    real = rto_runner.process_job
    delays = {"MA1": 0.03, "MA2": 0.0, "MA3": 0.01, "MA4": 0.0}

    async def slow(client, job):
        await asyncio.sleep(delays.get(job.order_name, 0))
        if job.order_name == "MA3":
            raise ValueError("bad row")
        return await real(client, job)

    monkeypatch.setattr(rto_runner, "process_job", slow)
    jobs = [ReturnJob(order_name=n) for n in ("MA1", "MA2", "MA3", "MA4")]

    results = await run_batch(shopify, jobs, max_workers=3)

    assert [r.order_name for r in results] == ["MA1", "MA2", "MA3", "MA4"]
    assert [r.status for r in results] == [
        JobStatus.RETURN_CREATED,
        JobStatus.SKIPPED_PAID,
        JobStatus.ERROR,
        JobStatus.RETURN_CREATED,
    ]


async def test_pooled_batch_respects_worker_bound(monkeypatch):
    active = 0
    peak = 0

    async def track(client, job):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return JobResult(order_name=job.order_name, status=JobStatus.NO_RETURNABLES)

    monkeypatch.setattr(rto_runner, "process_job", track)

    results = await run_batch(None, [ReturnJob(order_name=f"MA{i}") for i in range(10)], max_workers=2)

    assert len(results) == 10
    assert peak == 2


async def test_cancelled_batch_lets_in_flight_job_finish(monkeypatch):
    started = []
    finished = []
    gate = asyncio.Event()

    async def slow(client, job):
        started.append(job.order_name)
        await gate.wait()
        finished.append(job.order_name)
        return JobResult(order_name=job.order_name, status=JobStatus.RETURN_CREATED, return_id="r1")

    monkeypatch.setattr(rto_runner, "process_job", slow)
    jobs = [ReturnJob(order_name="MA1"), ReturnJob(order_name="MA2")]

    task = asyncio.create_task(run_batch(None, jobs, max_workers=1))
    while not started:
        await asyncio.sleep(0)

    task.cancel()
    await asyncio.sleep(0)
    gate.set()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert started == ["MA1"]
    assert finished == ["MA1"]


async def test_cancelled_pooled_batch_drains_in_flight_and_skips_queued(monkeypatch):
    started = []
    finished = []
    gate = asyncio.Event()

    async def slow(client, job):
        started.append(job.order_name)
        await gate.wait()
        finished.append(job.order_name)
        return JobResult(order_name=job.order_name, status=JobStatus.NO_RETURNABLES)

    monkeypatch.setattr(rto_runner, "process_job", slow)
    jobs = [ReturnJob(order_name=f"MA{i}") for i in range(1, 5)]

    task = asyncio.create_task(run_batch(None, jobs, max_workers=2))
    while len(started) < 2:
        await asyncio.sleep(0)

    task.cancel()
    for _ in range(5):
        await asyncio.sleep(0)
    gate.set()

    with pytest.raises(asyncio.CancelledError):
        await task

    # 在途的两单跑完；排队的两单不再启动
    assert started == ["MA1", "MA2"]
    assert sorted(finished) == ["MA1", "MA2"]


async def test_run_single_reports_ok_only_for_return_created(fake_shop, shopify):
    _seed(fake_shop)

    ok, res = await run_single(shopify, ReturnJob(order_name="MA1", quantity=1))
    assert ok is True
    assert res.status is JobStatus.RETURN_CREATED

    ok, res = await run_single(shopify, ReturnJob(order_name="MA2"))
    assert ok is False
    assert res.status is JobStatus.SKIPPED_PAID
