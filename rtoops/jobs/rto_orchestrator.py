# rtoops/jobs/rto_orchestrator.py
from __future__ import annotations

import enum
import logging
from typing import Optional

from opentelemetry import trace

from rtoops.adapters.shopify_client import ShopifyClient
from rtoops.jobs.rto_commit import commit_dispositions
from rtoops.jobs.rto_config import (
    MSG_NO_RETURNABLES,
    MSG_NOT_FOUND,
    MSG_SKIPPED_PAID,
    MSG_ZERO_REMAINING,
    SKIP_FINANCIAL_STATUSES,
)
from rtoops.jobs.rto_eligibility import list_returnable_units
from rtoops.jobs.rto_locator import locate_order
from rtoops.jobs.rto_open import clamp_return_qty, open_return
from rtoops.jobs.rto_reconcile import build_dispositions, load_reconciliation
from rtoops.jobs.rto_types import JobResult, JobStatus, ReturnJob
from rtoops.obs.metrics import rto_jobs_total

logger = logging.getLogger("rtoops.rto")
Tracer = trace.get_tracer(__name__)


class RtoState(str, enum.Enum):
    START = "START"
    LOCATED = "LOCATED"
    ELIGIBLE = "ELIGIBLE"
    OPENED = "OPENED"
    RECONCILED = "RECONCILED"
    COMMITTED = "COMMITTED"


def _error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def _finish(
    job: ReturnJob,
    state: RtoState,
    status: JobStatus,
    message: Optional[str] = None,
    return_id: Optional[str] = None,
) -> JobResult:
    rto_jobs_total.labels(status.value).inc()
    level = logging.WARNING if status is JobStatus.ERROR else logging.INFO
    logger.log(
        level,
        "rto job order=%s state=%s status=%s return_id=%s message=%s",
        job.order_name,
        state.value,
        status.value,
        return_id,
        message,
    )
    return JobResult(
        order_name=job.order_name,
        status=status,
        message=message,
        return_id=return_id,
    )


async def _process(client: ShopifyClient, job: ReturnJob) -> JobResult:
    """
    单个 RTO job 的状态机：

      START → LOCATED → ELIGIBLE → OPENED → RECONCILED → COMMITTED(return_created)

    提前终止：
      - START      查不到订单         → not_found
      - LOCATED    已付款订单         → skipped_paid（之后不再调用平台）
      - ELIGIBLE   无可退行 / 剩余为 0 → no_returnables / zero_remaining
      - OPENED 之后 无库存地点 / 对账失败 → error

    任何异常都在这里转成 error，不向批处理层抛出。
    """
    state = RtoState.START
    try:
        order = await locate_order(client, job.order_name)
        if order is None:
            return _finish(job, state, JobStatus.NOT_FOUND, MSG_NOT_FOUND)

        state = RtoState.LOCATED
        logger.debug("rto job order=%s -> %s (%s)", job.order_name, state.value, order.order_gid)
        if order.financial_status in SKIP_FINANCIAL_STATUSES:
            return _finish(job, state, JobStatus.SKIPPED_PAID, MSG_SKIPPED_PAID)

        units = await list_returnable_units(client, order.order_gid)
        if not units:
            return _finish(job, state, JobStatus.NO_RETURNABLES, MSG_NO_RETURNABLES)

        state = RtoState.ELIGIBLE
        # 只用第一个可退行（单行退货口径）
        unit = units[0]
        qty = clamp_return_qty(job.quantity, unit.remaining_quantity)
        logger.debug(
            "rto job order=%s -> %s unit=%s remaining=%s requested=%s qty=%s",
            job.order_name,
            state.value,
            unit.fulfillment_line_item_id,
            unit.remaining_quantity,
            job.quantity,
            qty,
        )
        if qty == 0:
            return _finish(job, state, JobStatus.ZERO_REMAINING, MSG_ZERO_REMAINING)

        opened = await open_return(
            client,
            order_gid=order.order_gid,
            unit=unit,
            quantity=qty,
            reason=job.reason,
            note=job.note,
        )
        state = RtoState.OPENED
        logger.debug("rto job order=%s -> %s return=%s", job.order_name, state.value, opened.return_id)

        reconciled = await load_reconciliation(
            client, return_id=opened.return_id, order_gid=order.order_gid
        )
        entries = build_dispositions(reconciled, opened, max_quantity=qty)
        state = RtoState.RECONCILED
        logger.debug("rto job order=%s -> %s entries=%d", job.order_name, state.value, len(entries))

        return_id = await commit_dispositions(client, return_id=opened.return_id, entries=entries)
        state = RtoState.COMMITTED
        return _finish(job, state, JobStatus.RETURN_CREATED, return_id=return_id)

    except Exception as exc:
        return _finish(job, state, JobStatus.ERROR, _error_message(exc))


async def process_job(client: ShopifyClient, job: ReturnJob) -> JobResult:
    with Tracer.start_as_current_span(
        "rto.job",
        attributes={"rto.order_name": job.order_name, "rto.quantity": job.quantity},
    ) as span:
        result = await _process(client, job)
        span.set_attribute("rto.status", result.status.value)
        if result.return_id:
            span.set_attribute("rto.return_id", result.return_id)
        return result
