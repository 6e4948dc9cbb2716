import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Identity service could not be reached or answered garbage."""


def extract_bearer_token(auth_header: str) -> str:
    """Strip a leading 'Bearer ' scheme. Returns '' when no token remains."""
    value = auth_header.strip()
    if value == "Bearer":
        return ""
    if value.startswith("Bearer "):
        value = value[len("Bearer "):]
    return value.strip()


class IdentityClient:
    """Looks up the user behind an access token on the Supabase auth API."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._user_url = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/user"
        self._api_key = settings.SUPABASE_ANON_KEY
        self._transport = transport

    async def get_user(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Return the user record for ``token``, or None when the service
        rejects it. Raises AuthenticationError on transport failures.
        """
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {token}",
        }
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(self._user_url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"[AUTH] ✗ Identity service unreachable: {e}")
            raise AuthenticationError(str(e)) from e

        if not response.is_success:
            logger.warning(f"[AUTH] ✗ Token rejected ({response.status_code})")
            return None

        try:
            user = response.json()
        except ValueError as e:
            raise AuthenticationError("Identity service returned invalid JSON") from e

        if not isinstance(user, dict) or not user.get("id"):
            logger.warning("[AUTH] ✗ Identity service returned no user")
            return None

        logger.info(f"[AUTH] ✓ Authenticated user {user['id']}")
        return user
