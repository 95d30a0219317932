"""Push delivery seam.

The notifier hands every matched subscriber to a ``PushSender``. Only the
logging sender exists today; a real gateway client (APNs) plugs in by
implementing ``send`` without touching the fan-out logic.
"""
import json
import logging

from ..utils.push_utils import token_fingerprint

logger = logging.getLogger(__name__)


class PushSender:
    """Delivers one notification to one subscriber token."""

    async def send(self, token: str, category: str, payload: dict):
        """Deliver ``payload`` to ``token``.

        Args:
            token: Raw subscriber token
            category: Notification category (podcast, article, live, schedule)
            payload: JSON-serializable notification body

        Raises:
            Exception: Delivery failures may propagate; the notifier logs them
        """
        raise NotImplementedError


class LoggingPushSender(PushSender):
    """Records the delivery in the log instead of contacting a gateway."""

    def __init__(self, salt: str = ""):
        self.salt = salt

    async def send(self, token: str, category: str, payload: dict):
        logger.info(
            f"[push] ({category}) -> token={token_fingerprint(token, self.salt)} "
            f"payload={json.dumps(payload, ensure_ascii=False, default=str)}"
        )
