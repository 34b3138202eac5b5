# rtoops/jobs/rto_runner.py
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from rtoops.adapters.shopify_client import ShopifyClient
from rtoops.core.config import get_settings
from rtoops.core.logging import setup_logging
from rtoops.jobs.rto_orchestrator import process_job
from rtoops.jobs.rto_types import JobResult, JobStatus, ReturnJob
from rtoops.obs.metrics import rto_jobs_total

logger = logging.getLogger("rtoops.rto")


async def _run_one(client: ShopifyClient, job: ReturnJob) -> JobResult:
    # process_job 自己就不抛；这里再兜一层，保证单个 job 不会拖垮整批
    try:
        return await process_job(client, job)
    except Exception as exc:
        logger.exception("rto job order=%s escaped orchestrator", job.order_name)
        rto_jobs_total.labels(JobStatus.ERROR.value).inc()
        return JobResult(
            order_name=job.order_name,
            status=JobStatus.ERROR,
            message=str(exc) or exc.__class__.__name__,
        )


async def _run_sequential(client: ShopifyClient, jobs: Sequence[ReturnJob]) -> List[JobResult]:
    results: List[JobResult] = []
    for job in jobs:
        task = asyncio.ensure_future(_run_one(client, job))
        try:
            results.append(await asyncio.shield(task))
        except asyncio.CancelledError:
            # 外部取消：已经对平台产生副作用的 job 必须跑到终态，后续 job 不再启动
            res = await task
            logger.warning(
                "rto batch cancelled after %d/%d jobs; in-flight order=%s finished as %s",
                len(results) + 1,
                len(jobs),
                res.order_name,
                res.status.value,
            )
            raise
    return results


async def _run_pooled(
    client: ShopifyClient, jobs: Sequence[ReturnJob], max_workers: int
) -> List[JobResult]:
    sem = asyncio.Semaphore(max_workers)
    stop = asyncio.Event()

    async def worker(job: ReturnJob) -> Optional[JobResult]:
        async with sem:
            if stop.is_set():
                return None
            return await _run_one(client, job)

    tasks = [asyncio.ensure_future(worker(job)) for job in jobs]
    try:
        done = await asyncio.shield(asyncio.gather(*tasks))
    except asyncio.CancelledError:
        stop.set()
        finished = await asyncio.gather(*tasks, return_exceptions=True)
        n = sum(1 for r in finished if isinstance(r, JobResult))
        logger.warning("rto batch cancelled; %d/%d jobs reached a terminal state", n, len(jobs))
        raise

    # gather 保证与输入同序
    return [r for r in done if r is not None]


async def run_batch(
    client: ShopifyClient,
    jobs: Sequence[ReturnJob],
    *,
    max_workers: Optional[int] = None,
) -> List[JobResult]:
    """
    批量处理 RTO job，每个输入 job 恰好对应一个 JobResult，顺序与输入一致。

    - max_workers 缺省取 RTO_MAX_WORKERS（默认 1 = 串行）；
    - >1 时用有界并发，平台限流由 ShopifyClient 上的令牌桶统一控制；
    - 被外部取消时：在途 job 跑完再退出，未开始的不再启动。
    """
    if max_workers is None:
        max_workers = get_settings().RTO_MAX_WORKERS
    max_workers = max(1, int(max_workers))

    logger.info("rto batch start: jobs=%d workers=%d", len(jobs), max_workers)
    if max_workers == 1 or len(jobs) <= 1:
        results = await _run_sequential(client, jobs)
    else:
        results = await _run_pooled(client, jobs, max_workers)

    created = sum(1 for r in results if r.ok)
    logger.info("rto batch done: jobs=%d return_created=%d", len(results), created)
    return results


async def run_single(client: ShopifyClient, job: ReturnJob) -> Tuple[bool, JobResult]:
    """人工单条提交：ok=True 仅当 return_created。"""
    results = await run_batch(client, [job], max_workers=1)
    result = results[0]
    return result.ok, result


# ============================================================
# CLI：python -m rtoops.jobs.rto orders.xlsx
# ============================================================


async def main(argv: Optional[Sequence[str]] = None) -> int:
    from rtoops.services.rto_upload_parser import parse_upload

    settings = get_settings()
    p = argparse.ArgumentParser(description="Run RTO processing for a CSV/XLSX of order names")
    p.add_argument("file", type=Path, help="CSV/XLSX：第一列订单号，第二列数量（可选）")
    p.add_argument("--reason", default=settings.RTO_DEFAULT_REASON)
    p.add_argument("--note", default=settings.RTO_DEFAULT_NOTE)
    p.add_argument("--workers", type=int, default=settings.RTO_MAX_WORKERS)
    args = p.parse_args(argv)

    jobs = parse_upload(args.file.name, args.file.read_bytes(), reason=args.reason, note=args.note)
    if not jobs:
        print("[rto] no valid orders to process")
        return 1

    async with ShopifyClient.from_settings(settings) as client:
        results = await run_batch(client, jobs, max_workers=args.workers)

    print(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2))
    return 0


def run_cli() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, log_file=settings.LOG_FILE)
    raise SystemExit(asyncio.run(main()))
