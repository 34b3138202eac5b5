# rtoops/limits.py
from __future__ import annotations

import asyncio
import time


class TokenBucket:
    """简单令牌桶：capacity=fill_rate（QPS），按秒补充"""

    def __init__(self, capacity: int, fill_rate: float):
        self.capacity = max(1, int(capacity))
        self.fill_rate = float(fill_rate)
        self.tokens = float(self.capacity)
        self.ts = time.monotonic()

    def _refill(self) -> None:
        now = time.monotonic()
        self.tokens = min(self.capacity, self.tokens + (now - self.ts) * self.fill_rate)
        self.ts = now

    def allow(self, n: int = 1) -> bool:
        self._refill()
        if self.tokens >= n:
            self.tokens -= n
            return True
        return False

    def wait_time(self, n: int = 1) -> float:
        """还差多少秒才能拿到 n 个令牌（0 表示现在就够）。"""
        self._refill()
        missing = n - self.tokens
        if missing <= 0:
            return 0.0
        return missing / self.fill_rate


class AsyncRateLimiter:
    """
    协程版限流：同一个 ShopifyClient 上的所有调用共享一个桶。

    - 串行跑批时几乎不触发等待；
    - 并发 worker 时保证整体 QPS 不超过平台配额。
    """

    def __init__(self, qps: float, burst: int | None = None):
        qps = float(qps)
        if qps <= 0:
            raise ValueError("qps must be > 0")
        self._bucket = TokenBucket(capacity=burst or max(1, int(qps)), fill_rate=qps)
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            while not self._bucket.allow():
                await asyncio.sleep(self._bucket.wait_time())
