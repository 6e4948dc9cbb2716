import json
import re
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import Settings
from app.schemas.envelope import ApiResponse
from app.schemas.mindmap import find_integrity_issues

logger = logging.getLogger(__name__)


# ── System Prompt ─────────────────────────────────────────────────────────────

MINDMAP_SYSTEM_PROMPT = (
    "Create a mind map structure for studying. "
    "Format the response as JSON with the following structure:\n"
    "{\n"
    '  "nodes": [\n'
    '    { "id": "string", "label": "string" }\n'
    "  ],\n"
    '  "edges": [\n'
    '    { "id": "string", "source": "string", "target": "string" }\n'
    "  ]\n"
    "}\n"
    "Follow these guidelines:\n"
    "1. Keep node labels concise and clear\n"
    "2. Create a hierarchical structure\n"
    "3. Use meaningful relationships\n"
    "4. Include 5-10 key concepts\n"
    "5. Ensure all node IDs are unique\n"
    "6. Ensure all edges connect existing nodes"
)

INVALID_FORMAT_ERROR = "Invalid response format from API"
TEMPERATURE = 0.7


def build_messages(topic: str) -> List[Dict[str, str]]:
    """System instruction plus the user's topic, embedded as-is."""
    return [
        {"role": "system", "content": MINDMAP_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": (
                f"Create a mind map for studying {topic}. "
                "Include main concepts and their relationships."
            ),
        },
    ]


# ── Helper: JSON Recovery ─────────────────────────────────────────────────────

def clean_and_parse_json(raw_text: str) -> Any:
    """
    Parse the model's reply. A ```json ... ``` fence around the payload is
    tolerated; anything else that is not JSON raises ValueError.
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise ValueError("Empty AI response received")

    cleaned = raw_text.strip()

    fence_match = re.search(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", cleaned, re.DOTALL)
    if fence_match:
        cleaned = fence_match.group(1).strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse failed. Raw (first 500 chars): {raw_text[:500]}")
        raise ValueError(f"AI returned invalid JSON: {e}")


def extract_content(body: Any) -> str:
    """Pull choices[0].message.content out of a chat-completions reply."""
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise ValueError("Completion reply has no choices[0].message.content")
    if not isinstance(content, str):
        raise ValueError("Completion content is not a string")
    return content


# ── Completion Client ─────────────────────────────────────────────────────────

class CompletionClient:
    """
    Single-shot caller for the upstream chat-completions API.

    generate_mind_map() never raises: every failure comes back as
    ApiResponse(success=False, error=...).
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    def _payload(self, topic: str) -> Dict[str, Any]:
        return {
            "model": self._settings.DEEPSEEK_MODEL,
            "messages": build_messages(topic),
            "temperature": TEMPERATURE,
        }

    async def generate_mind_map(self, topic: str) -> ApiResponse[Any]:
        logger.info(f"[MINDMAP] Calling {self._settings.DEEPSEEK_MODEL}...")
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._settings.DEEPSEEK_API_KEY}",
        }

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._settings.COMPLETION_TIMEOUT_SECONDS,
            ) as client:
                response = await client.post(
                    self._settings.DEEPSEEK_API_URL,
                    json=self._payload(topic),
                    headers=headers,
                )

            if not response.is_success:
                logger.error(
                    f"[MINDMAP] ✗ Upstream returned {response.status_code}: {response.text[:500]}"
                )
                return ApiResponse(
                    success=False, error=f"API request failed: {response.reason_phrase}"
                )

            try:
                data = clean_and_parse_json(extract_content(response.json()))
            except ValueError as e:
                logger.error(f"[MINDMAP] ✗ Failed to parse API response: {e}")
                return ApiResponse(success=False, error=INVALID_FORMAT_ERROR)

        except Exception as e:
            logger.error(f"[MINDMAP] ✗ Error generating mind map: {e}", exc_info=True)
            return ApiResponse(success=False, error=str(e) or "Internal server error")

        issues = find_integrity_issues(data)
        if issues:
            logger.warning(
                f"[MINDMAP] Model output has {len(issues)} integrity issue(s), "
                f"returning as-is: {'; '.join(issues[:5])}"
            )

        logger.info("[MINDMAP] ✓ Mind map generated")
        return ApiResponse(success=True, data=data)
