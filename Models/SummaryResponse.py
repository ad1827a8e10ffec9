from typing import Any
from pydantic import BaseModel, Field

class SummaryResponse(BaseModel):
    """Response of /api/summary."""
    summary: str = Field(..., description="Bullet summary of the call.")
    raw: Any = Field(None, description="Provider payload, passed through untouched.")
