from pydantic import BaseModel

class EmailResponse(BaseModel):
    ok: bool = True
    messageId: str
