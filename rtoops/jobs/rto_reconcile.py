# rtoops/jobs/rto_reconcile.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from rtoops.adapters import shopify_queries as q
from rtoops.adapters.shopify_client import ShopifyClient
from rtoops.jobs.rto_errors import LocationNotFound, ReconciliationError
from rtoops.jobs.rto_types import (
    DispositionEntry,
    OpenedReturn,
    ReconciledReturn,
    ReverseFulfillmentLine,
    parse_reconciliation,
)

logger = logging.getLogger("rtoops.rto")


async def load_reconciliation(
    client: ShopifyClient, *, return_id: str, order_gid: str
) -> ReconciledReturn:
    """
    一次组合查询拿齐入库所需的三样东西：
      - return 自己的行（return_line_item_id ↔ fulfillment_line_item_id）
      - 建退货后平台生成的 reverse fulfillment order 行（rfo_line_id ↔ fulfillment_line_item_id）
      - 订单 fulfillment order 上分配的库存地点
    """
    data = await client.graphql(
        "return_load",
        q.RETURN_FOR_PROCESSING,
        {"rid": return_id, "oid": order_gid},
    )
    return parse_reconciliation(data)


def _first_match(
    fli_id: str,
    reverse_lines: List[ReverseFulfillmentLine],
    *,
    return_line_item_id: str,
) -> Optional[ReverseFulfillmentLine]:
    candidates = [r for r in reverse_lines if r.fulfillment_line_item_id == fli_id]
    if not candidates:
        return None
    if len(candidates) > 1:
        # 平台侧同一 fulfillment line 对应多条 RFO 行：取第一条，留痕待查
        logger.warning(
            "rto reconcile: %d reverse lines share fulfillment line %s (return line %s); using %s",
            len(candidates),
            fli_id,
            return_line_item_id,
            candidates[0].id,
        )
    return candidates[0]


def build_dispositions(
    reconciled: ReconciledReturn,
    opened: OpenedReturn,
    *,
    max_quantity: int,
) -> List[DispositionEntry]:
    """
    按 fulfillment_line_item_id 把 return 行和 RFO 行 join 起来，生成入库处置明细。

    数量取保守值：min(退货行数量, RFO 行数量, 建单时数量, max_quantity)。
    只处理本次建单返回的 return 行（建单没回行 = 一行都不处理）；
    部分匹配允许继续，全部匹配失败抛 ReconciliationError。
    """
    if reconciled.location is None:
        raise LocationNotFound()
    location_id = reconciled.location.id

    opened_qty: Dict[str, int] = {ln.return_line_item_id: ln.quantity for ln in opened.lines}
    reverse_lines = list(reconciled.reverse_lines)

    out: List[DispositionEntry] = []
    for line in reconciled.return_lines:
        if not line.fulfillment_line_item_id:
            continue
        if line.return_line_item_id not in opened_qty:
            logger.warning(
                "rto reconcile: return line %s not part of opened return %s; skipped",
                line.return_line_item_id,
                opened.return_id,
            )
            continue

        match = _first_match(
            line.fulfillment_line_item_id,
            reverse_lines,
            return_line_item_id=line.return_line_item_id,
        )
        if match is None:
            continue

        qty = min(line.quantity, match.total_quantity, max_quantity, opened_qty[line.return_line_item_id])
        if qty <= 0:
            continue

        out.append(
            DispositionEntry(
                return_line_item_id=line.return_line_item_id,
                reverse_fulfillment_line_id=match.id,
                quantity=qty,
                location_id=location_id,
            )
        )

    if not out:
        raise ReconciliationError()
    return out
