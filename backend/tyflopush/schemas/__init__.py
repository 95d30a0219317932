"""Pydantic schemas for API request/response models."""
from .common import OkResponse, ErrorResponse, HealthResponse
from .registration import RegisterRequest, UpdateRequest, UnregisterRequest
from .events import LiveStartEvent, ScheduleUpdatedEvent

__all__ = [
    "OkResponse",
    "ErrorResponse",
    "HealthResponse",
    "RegisterRequest",
    "UpdateRequest",
    "UnregisterRequest",
    "LiveStartEvent",
    "ScheduleUpdatedEvent",
]
