"""Notification fan-out - match subscribers to a category and deliver."""
import logging
from typing import Optional

from ..models.state import PersistedState
from ..models.subscriber import CATEGORIES, Category
from ..storage import StateStore
from ..utils.push_utils import token_fingerprint, utcnow
from .push_sender import PushSender

logger = logging.getLogger(__name__)


class NotificationService:
    """Fans a categorized notification out to every subscriber who wants it."""

    def __init__(self, store: StateStore, sender: PushSender):
        self.store = store
        self.sender = sender

    async def dispatch(self, state: PersistedState, category: Category, payload: dict) -> int:
        """Deliver to matching subscribers of an already loaded state.

        Stamps ``lastNotifiedAt`` on every matched entry of ``state``; the
        caller is responsible for saving it. Delivery failures are logged and
        do not stop the fan-out.

        Args:
            state: Loaded state, mutated in place
            category: One of podcast, article, live, schedule
            payload: Notification body

        Returns:
            Number of matched subscribers
        """
        if category not in CATEGORIES:
            raise ValueError(f"Unknown notification category: {category}")

        now = utcnow()
        matched = 0

        for token, entry in list(state.tokens.items()):
            if not entry.prefs.enabled(category):
                continue
            matched += 1

            try:
                await self.sender.send(token, category, payload)
            except Exception as e:
                logger.warning(
                    f"[push] delivery failed for token={token_fingerprint(token)} "
                    f"({category}): {e}"
                )

            state.tokens[token] = entry.model_copy(update={"last_notified_at": now})

        logger.info(f"[push] category={category} matchedTokens={matched}")
        return matched

    async def notify(self, category: Category, payload: dict) -> int:
        """Load the state, fan out, and save the delivery stamps once."""
        state = await self.store.load()
        matched = await self.dispatch(state, category, payload)
        await self.store.save(state)
        return matched

    async def record_event(
        self,
        log: str,
        category: Optional[Category] = None,
        payload: Optional[dict] = None,
    ) -> int:
        """Record a webhook event in the ``log`` history, fanning out if asked.

        Args:
            log: History list receiving the event timestamp (live, schedule)
            category: Category to notify, or None to only record the event
            payload: Notification body for the fan-out

        Returns:
            Number of matched subscribers (0 when nothing was sent)
        """
        state = await self.store.load()
        matched = 0
        if category is not None:
            matched = await self.dispatch(state, category, payload or {})
        state.sent.push(log, utcnow().isoformat())
        await self.store.save(state)
        return matched
