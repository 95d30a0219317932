"""Webhook event schemas."""
from typing import Any

from pydantic import BaseModel, Field


class LiveStartEvent(BaseModel):
    """A live broadcast has started."""
    title: Any = None
    started_at: Any = Field(None, alias="startedAt")


class ScheduleUpdatedEvent(BaseModel):
    """The broadcast schedule has changed."""
    updated_at: Any = Field(None, alias="updatedAt")
