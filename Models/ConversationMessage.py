from typing import Literal
from pydantic import BaseModel

class ConversationMessage(BaseModel):
    """A single turn of a conversation sent to the LLM provider."""
    role: Literal["system", "user", "assistant"]
    content: str
