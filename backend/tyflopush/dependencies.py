"""FastAPI dependencies - request body parsing and access to app services."""
import json
import logging
from typing import Optional

from fastapi import Header, Request

from .exceptions import PayloadTooLargeError, ValidationError
from .services.notifier import NotificationService
from .services.registry import SubscriberRegistry
from .services.webhook_auth import WebhookAuthenticator

logger = logging.getLogger(__name__)

# Request bodies larger than this are rejected with 413
MAX_BODY_BYTES = 1024 * 1024


async def read_json_body(request: Request) -> dict:
    """Read the request body as a JSON object.

    The body is streamed and rejected as soon as it exceeds MAX_BODY_BYTES.
    An empty body or a JSON value that isn't an object yields ``{}``.

    Raises:
        PayloadTooLargeError: If the body exceeds MAX_BODY_BYTES
        ValidationError: If the body is not valid UTF-8 JSON
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > MAX_BODY_BYTES:
        raise PayloadTooLargeError()

    size = 0
    chunks = []
    async for chunk in request.stream():
        size += len(chunk)
        if size > MAX_BODY_BYTES:
            raise PayloadTooLargeError()
        chunks.append(chunk)

    try:
        raw = b"".join(chunks).decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("Invalid JSON body")

    if not raw.strip():
        return {}

    try:
        body = json.loads(raw)
    except ValueError:
        raise ValidationError("Invalid JSON body")

    return body if isinstance(body, dict) else {}


def get_registry(request: Request) -> SubscriberRegistry:
    """Dependency to get the subscriber registry."""
    return request.app.state.registry


def get_notifier(request: Request) -> NotificationService:
    """Dependency to get the notification service."""
    return request.app.state.notifier


async def require_webhook_auth(
    request: Request,
    authorization: Optional[str] = Header(None),
):
    """Reject webhook requests that don't carry the shared secret."""
    authenticator: WebhookAuthenticator = request.app.state.authenticator
    authenticator.verify(authorization)
