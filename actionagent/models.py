from pydantic import BaseModel, Field


class ActionExecuteRequest(BaseModel):
    text: str = Field(min_length=1, max_length=6000)
    action: str | None = Field(default=None, max_length=32)


class ActionExecuteResponse(BaseModel):
    success: bool
    message: str
    error: str | None = None
