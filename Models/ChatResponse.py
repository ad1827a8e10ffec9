from typing import Any
from pydantic import BaseModel, Field

class ChatResponse(BaseModel):
    """Response of /api/chat."""
    assistant: str = Field(..., description="The assistant's latest message.")
    raw: Any = Field(None, description="Provider payload, passed through untouched.")
