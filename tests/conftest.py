# tests/conftest.py
from __future__ import annotations

import pytest
import pytest_asyncio

from tests.helpers.fake_shopify import FakeShopify, make_client


@pytest.fixture
def fake_shop() -> FakeShopify:
    return FakeShopify()


@pytest_asyncio.fixture
async def shopify(fake_shop: FakeShopify):
    client = make_client(fake_shop)
    try:
        yield client
    finally:
        await client.aclose()
