"""Webhook event endpoints - live broadcast and schedule changes."""
import logging

from fastapi import APIRouter, Depends

from ..dependencies import get_notifier, read_json_body, require_webhook_auth
from ..schemas import LiveStartEvent, OkResponse, ScheduleUpdatedEvent
from ..services.notifier import NotificationService

logger = logging.getLogger(__name__)

# Authentication runs before the body is read
router = APIRouter(
    prefix="/api/v1/events",
    tags=["events"],
    dependencies=[Depends(require_webhook_auth)],
)

DEFAULT_LIVE_TITLE = "Audycja na żywo"
SCHEDULE_TITLE = "Zaktualizowano ramówkę"


@router.post("/live-start", response_model=OkResponse)
async def live_start(
    body: dict = Depends(read_json_body),
    notifier: NotificationService = Depends(get_notifier),
):
    """Notify live-broadcast subscribers that a broadcast has started."""
    event = LiveStartEvent.model_validate(body)
    payload = {
        "kind": "live",
        "title": str(event.title) if event.title else DEFAULT_LIVE_TITLE,
        "startedAt": event.started_at,
    }
    matched = await notifier.record_event("live", category="live", payload=payload)
    logger.info(f"Live start event handled, matched={matched}")
    return OkResponse()


@router.post("/live-end", response_model=OkResponse, dependencies=[Depends(read_json_body)])
async def live_end(
    notifier: NotificationService = Depends(get_notifier),
):
    """Record the end of a live broadcast. Nothing is sent."""
    await notifier.record_event("live")
    logger.info("Live end event recorded")
    return OkResponse()


@router.post("/schedule-updated", response_model=OkResponse)
async def schedule_updated(
    body: dict = Depends(read_json_body),
    notifier: NotificationService = Depends(get_notifier),
):
    """Notify schedule subscribers that the broadcast schedule changed."""
    event = ScheduleUpdatedEvent.model_validate(body)
    payload = {
        "kind": "schedule",
        "title": SCHEDULE_TITLE,
        "updatedAt": event.updated_at,
    }
    matched = await notifier.record_event("schedule", category="schedule", payload=payload)
    logger.info(f"Schedule update event handled, matched={matched}")
    return OkResponse()
