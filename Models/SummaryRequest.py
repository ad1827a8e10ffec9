from typing import Optional
from pydantic import BaseModel

class SummaryRequest(BaseModel):
    """Body of /api/summary."""
    transcript: Optional[str] = None
