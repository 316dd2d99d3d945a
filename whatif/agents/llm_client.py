"""Chat-completion gateway for scenario analysis.

Talks to an OpenAI-compatible chat-completion endpoint (Groq by default):

- Builds the two-message exchange (system preamble + instruction, scenario)
- Extracts JSON from free-form replies (fenced blocks, prose wrapping)
- Validates credentials with a minimal completion request

Single-shot: failures are raised, never retried.
"""

import json
import logging
import re
from typing import Any

import httpx

from whatif.agents.prompts import SYSTEM_PREAMBLE, VALIDATION_PROMPT
from whatif.errors import ParseError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

COMPLETION_TEMPERATURE = 0.7
COMPLETION_MAX_TOKENS = 2000
VALIDATION_MAX_TOKENS = 5

# Raw model text is truncated to this many characters in logs
_RAW_LOG_LIMIT = 2000


# ---------------------------------------------------------------------------
# JSON extraction helpers
# ---------------------------------------------------------------------------

_JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)
_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_JSON_OPENER_RE = re.compile(r"[\[{]")
_NOT_FOUND = object()


def _extract_json(raw: str) -> str:
    """Extract JSON text from raw LLM output, stripping markdown fences."""
    match = _JSON_BLOCK_RE.search(raw)
    if match:
        return match.group(1).strip()
    return _FENCE_RE.sub("", raw).strip()


def _embedded_json(text: str) -> Any:
    """Decode the first [...] or {...} value embedded in text.

    Each opener is tried in order, so bracketed prose before the payload
    is skipped. Returns _NOT_FOUND when no position decodes.
    """
    decoder = json.JSONDecoder()
    for match in _JSON_OPENER_RE.finditer(text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        return value
    return _NOT_FOUND


def parse_model_json(raw: str) -> Any:
    """Recover a JSON value from a model reply.

    Tries the fenced/trimmed text first, then the first bracketed value in
    prose that decodes. Raises ParseError if neither parses; the raw text
    is logged, not attached to the error.
    """
    cleaned = _extract_json(raw)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    embedded = _embedded_json(cleaned)
    if embedded is not _NOT_FOUND:
        return embedded

    logger.warning(
        "Failed to parse JSON from model reply (%d chars): %s",
        len(raw), raw[:_RAW_LOG_LIMIT],
    )
    raise ParseError("Invalid JSON response from completion API")


# ---------------------------------------------------------------------------
# Request builders
# ---------------------------------------------------------------------------


def _auth_headers(credential: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {credential}",
    }


def build_completion_payload(
    model_id: str,
    scenario_text: str,
    instruction_text: str,
) -> dict:
    """Chat-completion body: system = preamble + instruction, user = scenario."""
    return {
        "model": model_id,
        "messages": [
            {"role": "system", "content": SYSTEM_PREAMBLE + instruction_text},
            {"role": "user", "content": scenario_text},
        ],
        "temperature": COMPLETION_TEMPERATURE,
        "max_tokens": COMPLETION_MAX_TOKENS,
    }


def _message_content(resp: httpx.Response) -> str:
    """Pull choices[0].message.content out of a completion response."""
    try:
        content = resp.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise UpstreamError(
            "Completion API returned an unexpected response shape",
            upstream_status=resp.status_code,
        ) from exc
    if not isinstance(content, str):
        raise UpstreamError(
            "Completion API returned non-text message content",
            upstream_status=resp.status_code,
        )
    return content.strip()


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class ModelGateway:
    """Chat-completion client returning parsed JSON payloads."""

    def __init__(
        self,
        *,
        api_url: str,
        timeout: float = 30.0,
        validation_model: str = "llama-3.3-70b-versatile",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._timeout = timeout
        self._validation_model = validation_model
        self._transport = transport

    async def _post(self, credential: str, payload: dict) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport,
        ) as client:
            return await client.post(
                self._api_url,
                headers=_auth_headers(credential),
                json=payload,
            )

    async def complete(
        self,
        credential: str,
        model_id: str,
        scenario_text: str,
        instruction_text: str,
    ) -> Any:
        """Run one completion and return the JSON value parsed from the reply.

        Raises:
            UpstreamError: non-2xx status, transport failure or malformed body.
            ParseError: reply text is not recoverable as JSON.
            ValidationError: credential cannot be sent in a header.
        """
        payload = build_completion_payload(model_id, scenario_text, instruction_text)
        try:
            resp = await self._post(credential, payload)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Completion API request failed: {exc}") from exc
        except ValueError as exc:
            # Header encoding rejects non-ASCII credentials
            raise ValidationError("apiKey contains characters that cannot be sent") from exc

        if not resp.is_success:
            raise UpstreamError(
                f"Completion API request failed: {resp.status_code}",
                upstream_status=resp.status_code,
            )

        content = _message_content(resp)
        logger.debug("Completion reply from %s: %d chars", model_id, len(content))
        return parse_model_json(content)

    async def validate_credential(self, credential: str) -> bool:
        """Check a credential with a minimal 5-token completion.

        Returns True only for a 2xx response. Never raises.
        """
        payload = {
            "model": self._validation_model,
            "messages": [{"role": "user", "content": VALIDATION_PROMPT}],
            "max_tokens": VALIDATION_MAX_TOKENS,
        }
        try:
            resp = await self._post(credential, payload)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.info("Credential validation transport failure: %s", exc)
            return False
        return resp.is_success
