"""Client for the budget coach endpoint.

The coach is an external service fronting a language model. It receives
the chat history and a snapshot of the budget document, and answers with
``{"reply": str, "summary": str?, "updates": {...}?}``. Everything it
returns is untrusted: ``updates`` must go through
:func:`budget_planner.normalizer.apply_update` before it touches state.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from . import config
from .errors import AssistantError

logger = logging.getLogger(__name__)

CHAT_ROLES = ('system', 'user', 'assistant')
FENCE_PATTERN = re.compile(r'```(?:json)?\s*([\s\S]*?)```', re.IGNORECASE)
DEFAULT_REPLY = 'I am ready to help.'


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {'role': self.role, 'content': self.content}


@dataclass(frozen=True)
class AssistantReply:
    reply: str
    summary: Optional[str] = None
    updates: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def has_updates(self) -> bool:
        return bool(self.updates)


def extract_json_object(text: Any) -> Optional[Dict[str, Any]]:
    """Recover a JSON object from text that may be wrapped in prose or fences.

    Looks inside the first fenced block when there is one, then takes the
    span from the first ``{`` to the last ``}``.
    """
    if not isinstance(text, str) or not text.strip():
        return None
    trimmed = text.strip()
    fence = FENCE_PATTERN.search(trimmed)
    candidate = fence.group(1).strip() if fence else trimmed
    start = candidate.find('{')
    end = candidate.rfind('}')
    if start == -1 or end <= start:
        return None
    try:
        parsed = json.loads(candidate[start:end + 1])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _text_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_assistant_response(payload: Any) -> AssistantReply:
    """Turn a decoded response body into an :class:`AssistantReply`.

    A ``reply`` that itself contains a JSON object (the model ignored the
    response format) is unpacked. Updates are kept only when they are a
    non-empty mapping.
    """
    if isinstance(payload, str):
        recovered = extract_json_object(payload)
        if recovered is None:
            return AssistantReply(reply=payload.strip() or DEFAULT_REPLY)
        payload = recovered
    if not isinstance(payload, Mapping):
        return AssistantReply(reply=DEFAULT_REPLY)

    error = _text_or_none(payload.get('error'))
    if error:
        return AssistantReply(reply=f"Copilot error: {error}", error=error)

    reply = _text_or_none(payload.get('reply'))
    summary = _text_or_none(payload.get('summary'))
    updates = payload.get('updates')

    nested = extract_json_object(reply) if reply and '{' in reply else None
    if nested and isinstance(nested.get('reply'), str):
        reply = _text_or_none(nested.get('reply'))
        summary = summary or _text_or_none(nested.get('summary'))
        if updates is None:
            updates = nested.get('updates')

    if not isinstance(updates, Mapping) or not updates:
        updates = None
    return AssistantReply(
        reply=reply or DEFAULT_REPLY,
        summary=summary,
        updates=dict(updates) if updates else None,
    )


def build_request(
    messages: Sequence[ChatMessage], budget_snapshot: Mapping[str, Any]
) -> Dict[str, Any]:
    """Request body; the snapshot travels under the ``budget`` key."""
    return {
        'messages': [
            m.to_dict() for m in messages
            if m.role in CHAT_ROLES and m.content.strip()
        ],
        'budget': dict(budget_snapshot),
    }


class AssistantClient:
    """Synchronous client for the budget coach.

    Exactly one request is made per call; failures are raised as
    :class:`AssistantError` and never retried.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url or config.ASSISTANT_URL
        if not self.url:
            raise ValueError("Budget coach URL is not configured")
        self.api_key = api_key if api_key is not None else config.ASSISTANT_API_KEY
        self.timeout = timeout if timeout is not None else config.ASSISTANT_TIMEOUT
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f"Bearer {self.api_key}"
        return headers

    def ask(
        self,
        messages: Sequence[ChatMessage],
        budget_snapshot: Mapping[str, Any],
    ) -> AssistantReply:
        body = build_request(messages, budget_snapshot)
        if not body['messages']:
            raise AssistantError("Missing chat messages.")
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Budget coach request failed: %s", exc)
            raise AssistantError("Budget Copilot is unavailable.") from exc

        if response.is_error:
            logger.warning(
                "Budget coach returned %s: %s", response.status_code, response.text[:200]
            )
            raise AssistantError(
                f"Budget Copilot request failed ({response.status_code}).",
                status_code=response.status_code,
            )

        try:
            payload: Any = response.json()
        except ValueError:
            logger.info("Budget coach sent a non-JSON body; treating it as plain text")
            payload = response.text
        return parse_assistant_response(payload)


def history_from_dicts(items: Sequence[Mapping[str, Any]]) -> List[ChatMessage]:
    messages = []
    for item in items:
        role = item.get('role')
        content = item.get('content')
        if role in CHAT_ROLES and isinstance(content, str) and content.strip():
            messages.append(ChatMessage(role, content.strip()))
    return messages
