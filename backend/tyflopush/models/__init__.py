"""Persisted state models."""
from .subscriber import Category, CATEGORIES, Preferences, SubscriberEntry
from .state import SCHEMA_VERSION, SentHistory, PersistedState

__all__ = [
    "Category",
    "CATEGORIES",
    "Preferences",
    "SubscriberEntry",
    "SCHEMA_VERSION",
    "SentHistory",
    "PersistedState",
]
