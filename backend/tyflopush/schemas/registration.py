"""Registration request/response schemas.

Fields accept any JSON value. Token validation and preference normalization
happen in the registry, which reports bad input as 400.
"""
from typing import Any

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    """Register (or refresh) a device/installation token."""
    token: Any = None
    env: Any = None  # apns, installation-fallback, ...
    prefs: Any = None  # {podcast, article, live, schedule} booleans


class UpdateRequest(BaseModel):
    """Replace the preferences of a registered token."""
    token: Any = None
    prefs: Any = None


class UnregisterRequest(BaseModel):
    """Remove a token."""
    token: Any = None
