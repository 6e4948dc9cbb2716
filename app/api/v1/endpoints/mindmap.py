import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.api.v1.cors import CORS_HEADERS
from app.schemas.envelope import ApiResponse, ErrorResponse
from app.schemas.mindmap import MindMapRequest
from app.services.auth_service import AuthenticationError, IdentityClient, extract_bearer_token
from app.services.completion_service import CompletionClient

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Helpers ───────────────────────────────────────────────────────────────────

def _json(status_code: int, body: ApiResponse | ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.to_json(), headers=CORS_HEADERS)


def _unauthorized(message: str) -> JSONResponse:
    return _json(401, ErrorResponse(error=message))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CORS PREFLIGHT
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.options("/")
async def preflight() -> Response:
    """Empty body, permissive cross-origin headers."""
    return Response(status_code=200, headers=CORS_HEADERS)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MIND MAP RELAY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/")
async def create_mindmap(request: Request) -> JSONResponse:
    """
    1. Authenticate the bearer token against the identity service
    2. Validate the body carries a topic
    3. Relay to the completion API and return its envelope
    """
    identity: IdentityClient = request.app.state.identity
    completion: CompletionClient = request.app.state.completion

    try:
        # ── 1. Authenticate ──────────────────────────────────────────────────
        auth_header = request.headers.get("authorization")
        if not auth_header:
            return _unauthorized("Missing authorization header")

        token = extract_bearer_token(auth_header)
        if not token:
            return _unauthorized("Invalid authorization header format")

        try:
            user = await identity.get_user(token)
        except AuthenticationError:
            return _unauthorized("Authentication failed")
        if user is None:
            return _unauthorized("Unauthorized")

        # ── 2. Validate body ─────────────────────────────────────────────────
        payload = await request.json()
        try:
            body = MindMapRequest.model_validate(payload)
        except ValidationError:
            return _json(400, ApiResponse(success=False, error="Topic is required"))

        # ── 3. Relay ─────────────────────────────────────────────────────────
        logger.info(f"[RELAY] Generating mind map for topic: {body.topic!r}")
        result = await completion.generate_mind_map(body.topic)
        return _json(200 if result.success else 500, result)

    except Exception as e:
        logger.error(f"[RELAY] ✗ Unhandled error: {e}", exc_info=True)
        return _json(500, ApiResponse(success=False, error=str(e) or "Internal server error"))
