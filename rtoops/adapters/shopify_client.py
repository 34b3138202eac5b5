# rtoops/adapters/shopify_client.py
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional

import httpx

from rtoops.core.config import AppSettings
from rtoops.jobs.rto_errors import (
    PlatformConfigError,
    PlatformGraphQLError,
    PlatformPayloadError,
    PlatformTransportError,
)
from rtoops.limits import AsyncRateLimiter
from rtoops.obs.metrics import shopify_call_duration, shopify_calls_total

logger = logging.getLogger("rtoops.shopify")


class ShopifyClient:
    """
    Shopify Admin API 薄封装（REST + GraphQL 共用一个 httpx.AsyncClient）

    - 每个请求都带显式超时；超时 / 连接失败 / HTTP>=400 统一包成 PlatformTransportError；
    - GraphQL 顶层 errors → PlatformGraphQLError；
    - 不做任何重试：returnCreate / returnProcess 不幂等，重试会重复建退货单。
    """

    def __init__(
        self,
        *,
        store_name: str,
        access_token: str,
        api_version: str = "2025-07",
        timeout: float = 20.0,
        rate_limiter: Optional[AsyncRateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not (store_name and access_token):
            raise PlatformConfigError("SHOPIFY_STORE_NAME / SHOPIFY_ACCESS_TOKEN 未配置")

        self.base_url = f"https://{store_name}.myshopify.com/admin/api/{api_version}"
        self._limiter = rate_limiter
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ShopifyClient":
        return cls(
            store_name=settings.SHOPIFY_STORE_NAME,
            access_token=settings.SHOPIFY_ACCESS_TOKEN,
            api_version=settings.SHOPIFY_API_VERSION,
            timeout=settings.SHOPIFY_TIMEOUT_SECONDS,
            rate_limiter=AsyncRateLimiter(settings.SHOPIFY_RATE_LIMIT_QPS),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ShopifyClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---------- 底层请求 ----------

    async def _send(self, op: str, method: str, url: str, **kwargs: Any) -> Any:
        if self._limiter is not None:
            await self._limiter.acquire()

        start = time.perf_counter()
        outcome = "ok"
        try:
            try:
                resp = await self._http.request(method, url, **kwargs)
            except httpx.TimeoutException as exc:
                outcome = "timeout"
                raise PlatformTransportError(f"Shopify {op} timed out") from exc
            except httpx.HTTPError as exc:
                outcome = "transport"
                raise PlatformTransportError(f"Shopify {op} failed: {exc}") from exc

            if resp.status_code >= 400:
                outcome = f"http_{resp.status_code}"
                raise PlatformTransportError(
                    f"Shopify {op} HTTP {resp.status_code}: {resp.text[:200]}",
                    status_code=resp.status_code,
                )

            try:
                return resp.json()
            except ValueError as exc:
                outcome = "bad_json"
                raise PlatformPayloadError(f"{op} response body (not JSON)") from exc
        finally:
            shopify_calls_total.labels(op, outcome).inc()
            shopify_call_duration.labels(op).observe(time.perf_counter() - start)
            logger.debug("shopify %s %s %s -> %s", op, method, url, outcome)

    # ---------- REST ----------

    async def find_orders_by_name(self, name: str) -> List[Dict[str, Any]]:
        """GET /orders.json?name=...；status=any 否则平台只查 open 订单。"""
        data = await self._send(
            "order_lookup",
            "GET",
            "/orders.json",
            params={"name": name, "status": "any"},
        )
        orders = data.get("orders") if isinstance(data, Mapping) else None
        return list(orders or [])

    # ---------- GraphQL ----------

    async def graphql(
        self,
        op: str,
        query: str,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        body = await self._send(
            op,
            "POST",
            "/graphql.json",
            json={"query": query, "variables": dict(variables or {})},
        )
        if not isinstance(body, Mapping):
            raise PlatformPayloadError(f"{op} response body")

        errors = body.get("errors")
        if errors:
            if isinstance(errors, list):
                msgs = [str(e.get("message") if isinstance(e, Mapping) else e) for e in errors]
            else:
                msgs = [str(errors)]
            raise PlatformGraphQLError(msgs)

        data = body.get("data")
        if not isinstance(data, Mapping):
            raise PlatformPayloadError(f"{op}.data")
        return dict(data)
