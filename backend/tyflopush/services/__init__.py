"""Services for registration, fan-out, polling and webhook auth."""
from .registry import SubscriberRegistry
from .notifier import NotificationService
from .poller import PollerService
from .push_sender import PushSender, LoggingPushSender
from .webhook_auth import WebhookAuthenticator

__all__ = [
    "SubscriberRegistry",
    "NotificationService",
    "PollerService",
    "PushSender",
    "LoggingPushSender",
    "WebhookAuthenticator",
]
