"""Response envelopes shared by all endpoints."""
from pydantic import BaseModel


class OkResponse(BaseModel):
    """Plain success response."""
    ok: bool = True


class ErrorResponse(BaseModel):
    """Error response body."""
    ok: bool = False
    error: str


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = True
    name: str
    version: str
    time: str
