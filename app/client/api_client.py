"""
Caller-side client for the mind-map relay.

ApiService.generate_mind_map() returns MindMapData or raises
ApiServiceError with a human-readable message. Nothing else escapes.
"""

import asyncio
import inspect
import json
import logging
from typing import Awaitable, Callable, Optional, Union

import httpx
from pydantic import ValidationError

from app.core.config import ClientSettings
from app.schemas.mindmap import MindMapData

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]

SERVICE_UNAVAILABLE = "Service unavailable - please try again later"
DEFAULT_FAILURE = "Failed to generate mind map"


class ApiServiceError(Exception):
    """Any failure calling the relay, carrying a display message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ApiTimeoutError(ApiServiceError):
    """The relay did not answer before the deadline."""


def env_token_provider(settings: Optional[ClientSettings] = None) -> TokenProvider:
    """Token provider backed by MINDMAP_ACCESS_TOKEN."""
    settings = settings or ClientSettings()
    return lambda: settings.MINDMAP_ACCESS_TOKEN


def _error_from_response(response: httpx.Response) -> str:
    """Turn a non-2xx relay response into a single message."""
    if response.status_code == 404:
        return SERVICE_UNAVAILABLE

    body = response.text
    try:
        error_data = json.loads(body)
    except ValueError:
        return f"Server responded with {response.status_code}: {body}"

    if isinstance(error_data, dict) and error_data.get("error"):
        return str(error_data["error"])
    return f"HTTP {response.status_code} Error"


class ApiService:
    def __init__(
        self,
        token_provider: TokenProvider,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token_provider = token_provider
        self._settings = settings or ClientSettings()
        self._transport = transport

    async def _access_token(self) -> Optional[str]:
        try:
            token = self._token_provider()
            if inspect.isawaitable(token):
                token = await token
        except Exception as e:
            logger.error(f"[CLIENT] ✗ Token provider failed: {e}")
            raise ApiServiceError(str(e) or f"{DEFAULT_FAILURE}: Unknown error occurred") from e
        return token

    async def _post(self, topic: str, headers: dict) -> httpx.Response:
        timeout = self._settings.REQUEST_TIMEOUT_SECONDS
        async with httpx.AsyncClient(transport=self._transport, timeout=timeout) as client:
            return await asyncio.wait_for(
                client.post(self._settings.MINDMAP_FUNCTION_URL, json={"topic": topic}, headers=headers),
                timeout=timeout,
            )

    async def generate_mind_map(self, topic: str) -> MindMapData:
        logger.info(f"[CLIENT] Generating mind map for topic: {topic!r}")

        token = await self._access_token()
        if not token:
            logger.error("[CLIENT] ✗ No access token available")
            raise ApiServiceError("Not authenticated - please sign in")

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        redacted = {**headers, "Authorization": "Bearer [REDACTED]"}
        logger.debug(f"[CLIENT] POST {self._settings.MINDMAP_FUNCTION_URL} headers={redacted}")

        try:
            response = await self._post(topic, headers)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.error(
                f"[CLIENT] ✗ Request aborted after {self._settings.REQUEST_TIMEOUT_SECONDS}s"
            )
            raise ApiTimeoutError(
                f"Request timed out after {self._settings.REQUEST_TIMEOUT_SECONDS:g} seconds"
            )
        except httpx.HTTPError as e:
            logger.error(f"[CLIENT] ✗ Transport error: {e}")
            raise ApiServiceError(str(e) or f"{DEFAULT_FAILURE}: Unknown error occurred")

        if not response.is_success:
            logger.error(
                f"[CLIENT] ✗ Relay responded {response.status_code} "
                f"{response.reason_phrase}: {response.text[:500]}"
            )
            raise ApiServiceError(_error_from_response(response))

        try:
            result = response.json()
        except ValueError:
            raise ApiServiceError("Invalid response format from server")

        if not isinstance(result, dict) or not result.get("success") or result.get("data") is None:
            error = result.get("error") if isinstance(result, dict) else None
            raise ApiServiceError(error or DEFAULT_FAILURE)

        try:
            mind_map = MindMapData.model_validate(result["data"])
        except ValidationError as e:
            logger.error(f"[CLIENT] ✗ Relay data is not a mind map: {e}")
            raise ApiServiceError("Invalid response format from server")

        logger.info(
            f"[CLIENT] ✓ Received {len(mind_map.nodes)} nodes, {len(mind_map.edges)} edges"
        )
        return mind_map
