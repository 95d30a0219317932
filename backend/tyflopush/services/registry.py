"""Subscriber registry - CRUD over subscriber entries in the state file."""
import logging
from typing import Any, Optional

from ..exceptions import NotFoundError, ValidationError
from ..models.subscriber import Preferences, SubscriberEntry
from ..storage import StateStore
from ..utils.push_utils import token_fingerprint, utcnow

logger = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 16
MAX_TOKEN_LENGTH = 256


def validate_token(token: Any) -> str:
    """Return the trimmed token, or raise if it isn't an acceptable token.

    APNs tokens are hex, installation fallbacks are UUIDs; neither format is
    enforced, only the length.

    Raises:
        ValidationError: If token is not a string of 16-256 characters after trimming
    """
    if not isinstance(token, str):
        raise ValidationError("Invalid token")
    trimmed = token.strip()
    if not MIN_TOKEN_LENGTH <= len(trimmed) <= MAX_TOKEN_LENGTH:
        raise ValidationError("Invalid token")
    return trimmed


class SubscriberRegistry:
    """Registers, updates and removes subscribers.

    Each call is a complete load -> mutate -> save cycle against the store.
    """

    def __init__(self, store: StateStore):
        self.store = store

    async def register(
        self,
        token: Any,
        env: Any = None,
        prefs: Any = None,
    ) -> SubscriberEntry:
        """Create or refresh a subscriber.

        An existing entry keeps its ``createdAt``; env and preferences are
        replaced and ``updatedAt``/``lastSeenAt`` refreshed.
        """
        token = validate_token(token)
        env = env if isinstance(env, str) else "unknown"
        preferences = Preferences.normalize(prefs)

        state = await self.store.load()
        now = utcnow()
        existing = state.tokens.get(token)

        if existing:
            entry = existing.model_copy(update={
                "env": env,
                "prefs": preferences,
                "updated_at": now,
                "last_seen_at": now,
            })
            logger.info(f"Subscriber updated: {token_fingerprint(token)} env={env}")
        else:
            entry = SubscriberEntry(
                token=token,
                env=env,
                prefs=preferences,
                created_at=now,
                updated_at=now,
                last_seen_at=now,
            )
            logger.info(f"New subscriber registered: {token_fingerprint(token)} env={env}")

        state.tokens[token] = entry
        await self.store.save(state)
        return entry

    async def update_preferences(self, token: Any, prefs: Any = None) -> SubscriberEntry:
        """Replace the preferences of an already registered subscriber.

        Raises:
            ValidationError: If the token is malformed
            NotFoundError: If the token is not registered
        """
        token = validate_token(token)
        state = await self.store.load()
        existing = state.tokens.get(token)
        if not existing:
            raise NotFoundError("Unknown token")

        now = utcnow()
        entry = existing.model_copy(update={
            "prefs": Preferences.normalize(prefs),
            "updated_at": now,
            "last_seen_at": now,
        })
        state.tokens[token] = entry
        await self.store.save(state)

        logger.info(f"Subscriber preferences updated: {token_fingerprint(token)}")
        return entry

    async def unregister(self, token: Any) -> bool:
        """Remove a subscriber. Unknown tokens are not an error.

        Returns:
            True if an entry was removed
        """
        token = validate_token(token)
        state = await self.store.load()
        removed = state.tokens.pop(token, None) is not None
        await self.store.save(state)

        if removed:
            logger.info(f"Subscriber unregistered: {token_fingerprint(token)}")
        return removed

    async def get(self, token: str) -> Optional[SubscriberEntry]:
        state = await self.store.load()
        return state.tokens.get(token.strip())

    async def count(self) -> int:
        state = await self.store.load()
        return len(state.tokens)
