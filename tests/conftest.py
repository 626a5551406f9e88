"""Shared fixtures."""
from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
import respx

from campaignpulse.config import Settings

BASE_URL = "https://api.test"
BACKEND_URL = "https://backend.test"
TOKEN = "tok-location"
LOCATION_ID = "loc1"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        base_url=BASE_URL,
        backend_base_url=BACKEND_URL,
        api_token=TOKEN,
        location_id=LOCATION_ID,
    )


def mock_api(handler: Callable[[httpx.Request], httpx.Response]) -> respx.MockRouter:
    """Route every request through ``handler``; endpoint probing hits many URLs."""
    router = respx.mock(assert_all_called=False)
    router.route().mock(side_effect=handler)
    return router


def not_found(_: httpx.Request) -> httpx.Response:
    return httpx.Response(404, json={"message": "Not Found"})
