"""Persisted state document - subscribers plus dedup history."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..utils.push_utils import bounded_unshift, token_fingerprint, utcnow
from .subscriber import SubscriberEntry

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class SentHistory(BaseModel):
    """Most-recent-first identifiers already notified, per category.

    ``tyflopodcast`` and ``tyfloswiat`` hold WordPress post ids; ``live`` and
    ``schedule`` hold ISO timestamps of received webhook events.
    """
    tyflopodcast: List[int] = Field(default_factory=list)
    tyfloswiat: List[int] = Field(default_factory=list)
    live: List[str] = Field(default_factory=list)
    schedule: List[str] = Field(default_factory=list)

    class Config:
        extra = "allow"

    @field_validator("tyflopodcast", "tyfloswiat", mode="before")
    @classmethod
    def _keep_post_ids(cls, value: Any) -> List[int]:
        if not isinstance(value, list):
            return []
        return [x for x in value if isinstance(x, int) and not isinstance(x, bool)]

    @field_validator("live", "schedule", mode="before")
    @classmethod
    def _keep_timestamps(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [x for x in value if isinstance(x, str)]

    def contains(self, key: str, item: Union[int, str]) -> bool:
        return item in getattr(self, key)

    def push(self, key: str, item: Union[int, str]):
        """Record ``item`` at the front of the ``key`` history (bounded)."""
        setattr(self, key, bounded_unshift(getattr(self, key), item))


class PersistedState(BaseModel):
    """The whole state file."""
    schema_version: int = Field(SCHEMA_VERSION, alias="schemaVersion")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")
    tokens: Dict[str, SubscriberEntry] = Field(default_factory=dict)
    sent: SentHistory = Field(default_factory=SentHistory)

    class Config:
        populate_by_name = True
        extra = "allow"

    @classmethod
    def default(cls) -> "PersistedState":
        """Fresh document: no subscribers, empty histories, current timestamps."""
        return cls()

    @field_validator("schema_version", "created_at", "updated_at", mode="wrap")
    @classmethod
    def _default_invalid_field(cls, value: Any, handler, info) -> Any:
        # Keep subscribers and history when a header field is damaged
        try:
            return handler(value)
        except PydanticValidationError:
            logger.warning(f"Ignoring invalid state field {info.field_name}")
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)

    @field_validator("tokens", mode="before")
    @classmethod
    def _drop_malformed_entries(cls, value: Any) -> Dict[str, SubscriberEntry]:
        """Load every well-formed entry; skip the rest instead of failing the file."""
        if not isinstance(value, dict):
            return {}
        entries = {}
        for token, raw in value.items():
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed subscriber entry {token_fingerprint(token)}")
                continue
            try:
                entries[token] = SubscriberEntry.model_validate({**raw, "token": token})
            except PydanticValidationError as e:
                logger.warning(
                    f"Skipping invalid subscriber entry {token_fingerprint(token)}: "
                    f"{e.error_count()} error(s)"
                )
        return entries

    @field_validator("sent", mode="before")
    @classmethod
    def _default_sent(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    def to_document(self) -> dict:
        """JSON-ready dict using the persisted camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
