# tests/unit/test_limits.py
import asyncio

import pytest

from rtoops.limits import AsyncRateLimiter, TokenBucket


def test_token_bucket_allows_capacity_then_blocks():
    b = TokenBucket(capacity=2, fill_rate=0.001)
    assert b.allow()
    assert b.allow()
    assert not b.allow()
    assert b.wait_time() > 0


def test_rate_limiter_rejects_non_positive_qps():
    with pytest.raises(ValueError):
        AsyncRateLimiter(0)


@pytest.mark.asyncio
async def test_rate_limiter_spaces_out_calls():
    limiter = AsyncRateLimiter(qps=50, burst=1)
    loop = asyncio.get_running_loop()

    start = loop.time()
    for _ in range(4):
        await limiter.acquire()
    elapsed = loop.time() - start

    # 首个令牌现成，后 3 个各需 ~20ms
    assert elapsed >= 0.05
