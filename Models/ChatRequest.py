from numbers import Real
from typing import Any, List, Optional
from pydantic import BaseModel, field_validator

class ChatRequest(BaseModel):
    """Body of /api/chat. Messages are forwarded to the provider exactly as received."""
    messages: List[Any] = []
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    @field_validator("messages", mode="before")
    @classmethod
    def _messages_as_list(cls, value):
        return value if isinstance(value, list) else []

    @field_validator("model", mode="before")
    @classmethod
    def _model_or_default(cls, value):
        return value if isinstance(value, str) and value else None

    @field_validator("temperature", mode="before")
    @classmethod
    def _temperature_or_default(cls, value):
        if isinstance(value, bool) or not isinstance(value, Real):
            return None
        return value

    @field_validator("max_tokens", mode="before")
    @classmethod
    def _max_tokens_or_default(cls, value):
        if isinstance(value, bool) or not isinstance(value, Real):
            return None
        if isinstance(value, float) and not value.is_integer():
            return None
        return int(value)
