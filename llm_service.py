import logging
from typing import Any, Dict, List, Optional

import httpx

from config import Settings
from errors import ConfigurationError, UpstreamServiceError
from Models.ChatRequest import ChatRequest
from Models.ConversationMessage import ConversationMessage

logger = logging.getLogger("voice-relay")

GENERIC_ERROR = "Internal Server Error"


class XAIChatClient:
    """Chat-completions client for the xAI API.

    One POST per call, bearer auth, fixed timeout. No retries: every failure is
    turned into an UpstreamServiceError carrying the status and message the
    caller should see.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    async def complete(self, payload: Dict[str, Any]) -> Any:
        api_key = self._settings.XAI_API_KEY
        if not api_key:
            raise ConfigurationError("XAI_API_KEY is not set")

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self._settings.XAI_TIMEOUT, transport=self._transport) as client:
            try:
                response = await client.post(self._settings.completions_url, json=payload, headers=headers)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPError as e:
                raise upstream_error(e) from e
            except ValueError as e:
                # 2xx with a body that is not JSON
                raise UpstreamServiceError(GENERIC_ERROR) from e


def upstream_error(exc: Exception) -> UpstreamServiceError:
    """Maps an httpx failure to the status/message pair returned to the client."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        message = _provider_error_message(exc.response) or f"Request failed with status code {status}"
        return UpstreamServiceError(message, status_code=status)
    return UpstreamServiceError(str(exc) or GENERIC_ERROR)


def _provider_error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    error = body.get("error") if isinstance(body, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    if isinstance(message, str) and message:
        return message
    return None


def extract_message_content(data: Any, default: str = "") -> str:
    """Returns ``choices[0].message.content``, or ``default`` when any step is missing."""
    if not isinstance(data, dict):
        return default
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return default
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    return default if content is None else content


def build_chat_payload(request: ChatRequest, settings: Settings) -> Dict[str, Any]:
    persona = ConversationMessage(role="system", content=settings.SYSTEM_PROMPT)
    messages: List[Any] = [persona.model_dump(), *request.messages]
    return {
        "model": request.model or settings.CHAT_MODEL,
        "messages": messages,
        "temperature": request.temperature if request.temperature is not None else settings.CHAT_TEMPERATURE,
        "max_tokens": request.max_tokens if request.max_tokens is not None else settings.CHAT_MAX_TOKENS,
    }


def build_summary_payload(transcript: str, settings: Settings) -> Dict[str, Any]:
    messages = [
        ConversationMessage(role="system", content=settings.SUMMARY_PROMPT),
        ConversationMessage(role="user", content=transcript),
    ]
    return {
        "model": settings.CHAT_MODEL,
        "messages": [m.model_dump() for m in messages],
        "temperature": settings.SUMMARY_TEMPERATURE,
        "max_tokens": settings.SUMMARY_MAX_TOKENS,
    }
