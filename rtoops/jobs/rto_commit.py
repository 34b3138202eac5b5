# rtoops/jobs/rto_commit.py
from __future__ import annotations

from typing import Any, Dict, List, Sequence

from rtoops.adapters import shopify_queries as q
from rtoops.adapters.shopify_client import ShopifyClient
from rtoops.jobs.rto_config import DISPOSITION_TYPE
from rtoops.jobs.rto_errors import PlatformPayloadError, PlatformUserError
from rtoops.jobs.rto_types import DispositionEntry, user_error_messages


def build_process_input(return_id: str, entries: Sequence[DispositionEntry]) -> Dict[str, Any]:
    lines: List[Dict[str, Any]] = [
        {
            "id": e.return_line_item_id,
            "quantity": e.quantity,
            "dispositions": [
                {
                    "reverseFulfillmentOrderLineItemId": e.reverse_fulfillment_line_id,
                    "dispositionType": DISPOSITION_TYPE,
                    "quantity": e.quantity,
                    "locationId": e.location_id,
                }
            ],
        }
        for e in entries
    ]
    return {"returnId": return_id, "notifyCustomer": False, "returnLineItems": lines}


async def commit_dispositions(
    client: ShopifyClient,
    *,
    return_id: str,
    entries: Sequence[DispositionEntry],
) -> str:
    """
    returnProcess：按处置明细完成退货并回库（RESTOCKED）。

    非幂等，不重试。返回平台给的 return id。
    """
    if not entries:
        raise ValueError("no disposition entries to commit")

    data = await client.graphql(
        "return_process",
        q.RETURN_PROCESS,
        {"input": build_process_input(return_id, entries)},
    )
    payload = data.get("returnProcess")
    if payload is None:
        raise PlatformPayloadError("returnProcess")
    errs = user_error_messages(payload)
    if errs:
        raise PlatformUserError("returnProcess", errs)

    ret = payload.get("return") or {}
    return str(ret.get("id") or return_id)
