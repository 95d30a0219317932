"""Subscriber model - one registered device/installation token."""
import logging
from datetime import datetime
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..utils.push_utils import token_fingerprint, utcnow

logger = logging.getLogger(__name__)

Category = Literal["podcast", "article", "live", "schedule"]
CATEGORIES = get_args(Category)


class Preferences(BaseModel):
    """Per-category notification switches."""
    podcast: bool = True
    article: bool = True
    live: bool = True
    schedule: bool = True

    @classmethod
    def normalize(cls, raw: Any) -> "Preferences":
        """Build preferences from an untrusted payload.

        Any field that is missing or not a strict boolean is taken as True, so
        a malformed payload never silently turns a category off.
        """
        if isinstance(raw, Preferences):
            return raw.model_copy()
        data = raw if isinstance(raw, dict) else {}
        return cls(**{
            name: data[name] if isinstance(data.get(name), bool) else True
            for name in CATEGORIES
        })

    def enabled(self, category: str) -> bool:
        return getattr(self, category) is True


class SubscriberEntry(BaseModel):
    """Registered subscriber, keyed by token in the persisted state."""
    token: str
    env: str = "unknown"  # apns, installation-fallback, ...
    prefs: Preferences = Field(default_factory=Preferences)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")
    last_seen_at: datetime = Field(default_factory=utcnow, alias="lastSeenAt")
    last_notified_at: Optional[datetime] = Field(None, alias="lastNotifiedAt")

    class Config:
        populate_by_name = True
        extra = "allow"

    @field_validator("env", "created_at", "updated_at", "last_seen_at", "last_notified_at", mode="wrap")
    @classmethod
    def _default_invalid_field(cls, value: Any, handler, info) -> Any:
        # A bad field falls back to its default; the subscriber is kept
        try:
            return handler(value)
        except PydanticValidationError:
            logger.warning(
                f"Ignoring invalid {info.field_name} of subscriber "
                f"{token_fingerprint(str(info.data.get('token', '')))}"
            )
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)

    @field_validator("prefs", mode="before")
    @classmethod
    def _normalize_prefs(cls, value: Any) -> Preferences:
        return Preferences.normalize(value)
