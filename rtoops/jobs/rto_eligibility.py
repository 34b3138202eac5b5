# rtoops/jobs/rto_eligibility.py
from __future__ import annotations

from typing import List

from rtoops.adapters import shopify_queries as q
from rtoops.adapters.shopify_client import ShopifyClient
from rtoops.jobs.rto_types import ReturnableUnit, parse_returnable_units


async def list_returnable_units(client: ShopifyClient, order_gid: str) -> List[ReturnableUnit]:
    """
    退货前阶段：平台按 fulfillment 分组返回仍可退的行（带剩余可退数量），
    这里摊平成一个有序列表。没有可退行 → []。
    """
    data = await client.graphql("returnable", q.RETURNABLE_FULFILLMENTS, {"orderId": order_gid})
    return parse_returnable_units(data)
