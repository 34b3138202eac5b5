# rtoops/jobs/rto_locator.py
from __future__ import annotations

from typing import Optional

from rtoops.adapters.shopify_client import ShopifyClient
from rtoops.jobs.rto_config import ORDER_NAME_MARKER
from rtoops.jobs.rto_types import OrderSnapshot, parse_order


def toggle_marker(order_name: str) -> str:
    """'#MA1001' ↔ 'MA1001'"""
    if order_name.startswith(ORDER_NAME_MARKER):
        return order_name[len(ORDER_NAME_MARKER):]
    return f"{ORDER_NAME_MARKER}{order_name}"


async def _lookup_once(client: ShopifyClient, name: str) -> Optional[OrderSnapshot]:
    orders = await client.find_orders_by_name(name)
    if not orders:
        return None
    return parse_order(orders[0])


async def locate_order(client: ShopifyClient, order_name: str) -> Optional[OrderSnapshot]:
    """
    按订单号取完整订单（下游需要 financial_status）：
      1) 原样查一次；
      2) 查不到则切换 '#' 前缀再查一次；
      3) 仍查不到 → None（not_found）。

    传输异常不在这里吞，交给编排层转成 error。
    """
    name = (order_name or "").strip()
    if not name or name == ORDER_NAME_MARKER:
        return None

    order = await _lookup_once(client, name)
    if order is not None:
        return order
    return await _lookup_once(client, toggle_marker(name))
