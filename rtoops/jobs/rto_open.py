# rtoops/jobs/rto_open.py
from __future__ import annotations

from typing import Optional

from rtoops.adapters import shopify_queries as q
from rtoops.adapters.shopify_client import ShopifyClient
from rtoops.jobs.rto_errors import PlatformPayloadError, PlatformUserError
from rtoops.jobs.rto_types import (
    OpenedReturn,
    ReturnableUnit,
    parse_opened_return,
    user_error_messages,
)


def clamp_return_qty(requested: Optional[int], remaining: Optional[int]) -> int:
    """
    实际退货数量 = min(max(1, requested), remaining)

    requested 缺省/非正数按 1 计；remaining 缺省按 0 计。
    结果为 0 时调用方不能建退货单（zero_remaining）。
    """
    want = max(1, int(requested or 1))
    left = max(0, int(remaining or 0))
    return min(want, left)


async def open_return(
    client: ShopifyClient,
    *,
    order_gid: str,
    unit: ReturnableUnit,
    quantity: int,
    reason: str,
    note: str,
) -> OpenedReturn:
    """
    returnCreate：单行退货（只用第一个可退行，由编排层保证）。

    ⚠️ 非幂等：每调一次平台就多一张退货单，失败后不要自动重试。
    """
    if quantity < 1:
        raise ValueError(f"return quantity must be >= 1, got {quantity}")

    variables = {
        "input": {
            "orderId": order_gid,
            "notifyCustomer": False,
            "returnLineItems": [
                {
                    "fulfillmentLineItemId": unit.fulfillment_line_item_id,
                    "quantity": int(quantity),
                    "returnReason": reason,
                    "returnReasonNote": note,
                }
            ],
        }
    }
    data = await client.graphql("return_create", q.RETURN_CREATE, variables)

    payload = data.get("returnCreate")
    if payload is None:
        raise PlatformPayloadError("returnCreate")
    errs = user_error_messages(payload)
    if errs:
        raise PlatformUserError("returnCreate", errs)
    return parse_opened_return(payload.get("return"))
