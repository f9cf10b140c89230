"""Backends for the semantic similarity service.

Two interchangeable implementations of :class:`SemanticSimilarityClient`:

1. **HTTP service**: POSTs both condensed profiles to
   ``{base_url}/api/find-path`` with a bearer token.  The response may be
   the result object itself or wrapped as ``{"data": {...}}``.

2. **Claude**: asks the Anthropic messages API for the same JSON object.

Every failure mode (transport, status, timeout, malformed payload) is
raised as :class:`SemanticServiceError`; the semantic stage decides what
to do about it.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Protocol

import anthropic
import httpx
from pydantic import ValidationError

from pathfinder.config import PathfinderConfig
from pathfinder.models import CondensedProfile, SemanticSimilarityResult

logger = logging.getLogger(__name__)


class SemanticServiceError(Exception):
    """The semantic similarity backend could not produce a usable answer."""


class SemanticSimilarityClient(Protocol):
    async def compare(
        self, source: CondensedProfile, target: CondensedProfile
    ) -> SemanticSimilarityResult: ...


def parse_result(payload: object) -> SemanticSimilarityResult:
    """Validate a service payload, unwrapping a ``data`` envelope if present."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        payload = payload["data"]
    try:
        return SemanticSimilarityResult.model_validate(payload)
    except ValidationError as exc:
        raise SemanticServiceError(f"Malformed similarity response: {exc}") from exc


# ---------------------------------------------------------------------------
# HTTP service
# ---------------------------------------------------------------------------


class HttpSemanticSimilarityClient:
    """Talk to a deployed similarity service over HTTP."""

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = base_url.rstrip("/") + "/api/find-path"
        self.api_token = api_token
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def compare(
        self, source: CondensedProfile, target: CondensedProfile
    ) -> SemanticSimilarityResult:
        body = {
            "userId": source.id,
            "sourceProfile": source.model_dump(exclude_none=True),
            "targetProfile": target.model_dump(exclude_none=True),
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                resp = await client.post(self.endpoint, json=body, headers=self._headers())
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                raise SemanticServiceError(f"Similarity service request failed: {exc}") from exc

        try:
            payload = resp.json()
        except ValueError as exc:
            raise SemanticServiceError("Similarity service returned non-JSON body") from exc
        return parse_result(payload)


# ---------------------------------------------------------------------------
# Claude
# ---------------------------------------------------------------------------

SIMILARITY_SYSTEM = """\
You compare two professional profiles and judge how much common ground they share
for a connection request.  Respond with a single JSON object and nothing else.
No markdown fences, no extra text.

JSON schema:
{
  "similarity": <0.0-1.0>,
  "sharedContext": ["<short phrase>", ...],
  "reasoning": "<one or two sentences>",
  "talkingPoints": ["<concrete opener or next step>", ...]
}

Guidelines:
- 0.8-1.0: same school or employer and closely related work.
- 0.5-0.79: same industry with overlapping skills.
- 0.2-0.49: some adjacent interests.
- 0.0-0.19: little in common.
Give three to five talking points the sender could actually use.
"""


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        first_nl = text.index("\n") if "\n" in text else len(text)
        last_fence = text.rfind("```")
        text = text[first_nl + 1 : last_fence].strip()
    return text


class AnthropicSemanticSimilarityClient:
    """Uses Claude to judge semantic similarity between two profiles."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-sonnet-4-20250514",
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def compare(
        self, source: CondensedProfile, target: CondensedProfile
    ) -> SemanticSimilarityResult:
        user_msg = (
            "## Sender\n\n"
            f"{source.model_dump_json(indent=2, exclude_none=True)}\n\n"
            "## Recipient\n\n"
            f"{target.model_dump_json(indent=2, exclude_none=True)}\n\n"
            "Return the JSON object."
        )
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=1024,
                system=SIMILARITY_SYSTEM,
                messages=[{"role": "user", "content": user_msg}],
            )
        except anthropic.APIError as exc:
            raise SemanticServiceError(f"Claude request failed: {exc}") from exc

        text = _strip_fences(message.content[0].text)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse similarity response as JSON")
            raise SemanticServiceError("Claude returned non-JSON output") from exc
        return parse_result(payload)


def build_semantic_client(config: PathfinderConfig) -> Optional[SemanticSimilarityClient]:
    """HTTP service if configured, else Claude if a key is set, else nothing."""
    if config.semantic_service_url:
        logger.debug("Using semantic service at %s", config.semantic_service_url)
        return HttpSemanticSimilarityClient(
            config.semantic_service_url,
            api_token=config.semantic_api_token,
            timeout=config.semantic_timeout_seconds,
        )
    if config.anthropic_api_key:
        logger.debug("Using Claude (%s) for semantic similarity", config.anthropic_model)
        return AnthropicSemanticSimilarityClient(
            api_key=config.anthropic_api_key, model=config.anthropic_model
        )
    return None
