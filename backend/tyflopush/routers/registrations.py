"""Subscriber registration API endpoints."""
from fastapi import APIRouter, Depends

from ..dependencies import get_registry, read_json_body
from ..schemas import OkResponse, RegisterRequest, UnregisterRequest, UpdateRequest
from ..services.registry import SubscriberRegistry

router = APIRouter(prefix="/api/v1", tags=["registrations"])


@router.post("/register", response_model=OkResponse)
async def register(
    body: dict = Depends(read_json_body),
    registry: SubscriberRegistry = Depends(get_registry),
):
    """Register a token for push notifications.

    The app calls this on every launch; registering an existing token refreshes
    it and replaces its env tag and preferences.
    """
    data = RegisterRequest.model_validate(body)
    await registry.register(data.token, data.env, data.prefs)
    return OkResponse()


@router.post("/update", response_model=OkResponse)
async def update(
    body: dict = Depends(read_json_body),
    registry: SubscriberRegistry = Depends(get_registry),
):
    """Update the preferences of a registered token (404 if unknown)."""
    data = UpdateRequest.model_validate(body)
    await registry.update_preferences(data.token, data.prefs)
    return OkResponse()


@router.post("/unregister", response_model=OkResponse)
async def unregister(
    body: dict = Depends(read_json_body),
    registry: SubscriberRegistry = Depends(get_registry),
):
    """Remove a token. Unknown tokens succeed as well."""
    data = UnregisterRequest.model_validate(body)
    await registry.unregister(data.token)
    return OkResponse()
