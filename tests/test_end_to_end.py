"""Caller → ApiService → relay app → fake identity + completion API."""

import httpx
import pytest

from app.client.api_client import ApiService, ApiServiceError
from app.core.config import ClientSettings
from conftest import PHOTOSYNTHESIS_MAP, VALID_TOKEN


@pytest.fixture
def service(relay_app):
    settings = ClientSettings(_env_file=None, MINDMAP_FUNCTION_URL="http://relay.test/")
    return ApiService(lambda: VALID_TOKEN, settings=settings, transport=httpx.ASGITransport(app=relay_app))


@pytest.mark.asyncio
async def test_photosynthesis_round_trip(service, upstream):
    mind_map = await service.generate_mind_map("Photosynthesis")

    assert mind_map.model_dump() == PHOTOSYNTHESIS_MAP
    assert len(mind_map.nodes) == 6
    assert len(mind_map.edges) == 5
    assert len(upstream.auth_requests) == 1
    assert len(upstream.completion_requests) == 1


@pytest.mark.asyncio
async def test_empty_topic_stops_at_relay(service, upstream):
    with pytest.raises(ApiServiceError, match="Topic is required"):
        await service.generate_mind_map("")
    assert upstream.completion_requests == []


@pytest.mark.asyncio
async def test_upstream_failure_surfaces_relay_message(service, upstream):
    upstream.completion_status = 500
    upstream.completion_body = "boom"
    with pytest.raises(ApiServiceError, match="API request failed: Internal Server Error"):
        await service.generate_mind_map("Photosynthesis")
