"""Webhook authentication - bearer token against the shared secret."""
import logging
import re
import secrets
from typing import Optional

from ..exceptions import AuthError

logger = logging.getLogger(__name__)

BEARER_PATTERN = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    """Get the token from an ``Authorization: Bearer <token>`` header value."""
    if not header or not isinstance(header, str):
        return None
    match = BEARER_PATTERN.match(header)
    return match.group(1) if match else None


class WebhookAuthenticator:
    """Checks webhook requests against the configured shared secret.

    An empty secret locks the webhook endpoints; there is no open fallback.
    """

    def __init__(self, secret: Optional[str]):
        self._secret = (secret or "").strip()

    @property
    def configured(self) -> bool:
        return bool(self._secret)

    def verify(self, header: Optional[str]):
        """Raise ``AuthError`` unless ``header`` carries the shared secret."""
        if not self._secret:
            logger.warning("Webhook rejected - no webhook secret configured")
            raise AuthError()

        token = extract_bearer_token(header)
        if token is None or not secrets.compare_digest(token.encode(), self._secret.encode()):
            logger.warning("Webhook rejected - invalid bearer token")
            raise AuthError()
