"""Shared test fixtures: in-process ASGI client and pool payload builder."""
from collections.abc import Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pm_common.fixed_point import SCALE


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client bound to the preview API, no network."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def pool_json() -> Callable[..., dict[str, Any]]:
    """Build a JSON pool snapshot (fresh 1000-share pool unless overridden)."""

    def build(**overrides: Any) -> dict[str, Any]:
        pool: dict[str, Any] = {"market_id": 1, "q_yes": "0", "q_no": "0", "b": str(1000 * SCALE)}
        pool.update(overrides)
        return pool

    return build
