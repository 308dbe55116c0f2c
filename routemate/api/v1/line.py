from typing import List
import json
import logging
from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from routemate.api.dependencies import get_notification_service
from routemate.api.v1.models import NotificationRequest, SuccessResponse
from routemate.core.exceptions import NotFoundError, NotificationError
from routemate.core.settings import Settings, get_settings
from routemate.models.recipient import Recipient
from routemate.repositories.messaging.line import verify_signature
from routemate.services.notification import NotificationService


logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/send-line-notification", response_model=SuccessResponse)
async def send_line_notification(
    request: NotificationRequest,
    notification_service: NotificationService = Depends(get_notification_service),
):
    """Push a route summary (or custom text) to a LINE recipient."""
    try:
        await notification_service.send_route_notification(
            route_id=request.route_id,
            recipient_id=request.recipient_id,
            message=request.message,
        )
        return SuccessResponse(message="LINE notification sent")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotificationError as e:
        logger.error(f"LINE notification for route {request.route_id} failed: {e}")
        raise HTTPException(status_code=502, detail=f"LINE notification failed: {e}")
    except Exception as e:
        logger.error(f"Unexpected error sending LINE notification: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="LINE notification failed.")


@router.get("/line-settings", response_model=List[Recipient])
async def list_line_settings(notification_service: NotificationService = Depends(get_notification_service)):
    """Recipients that notifications can be sent to."""
    return await notification_service.list_recipients()


@router.get("/line-webhook")
async def line_webhook_status():
    return {"status": "LINE Webhook endpoint is working"}


@router.post("/line-webhook")
async def line_webhook(
    request: Request,
    x_line_signature: str | None = Header(None),
    settings: Settings = Depends(get_settings),
):
    """Receive LINE platform events; LINE expects a 200 answer."""
    body = await request.body()
    if settings.LINE_CHANNEL_SECRET and not verify_signature(settings.LINE_CHANNEL_SECRET, body, x_line_signature):
        logger.warning("Rejected LINE webhook call with invalid signature")
        raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        events = json.loads(body or b"{}").get("events") or []
    except (ValueError, AttributeError):
        raise HTTPException(status_code=400, detail="Invalid webhook payload")
    if not isinstance(events, list):
        raise HTTPException(status_code=400, detail="Invalid webhook payload")
    for event in events:
        if not isinstance(event, dict):
            logger.warning(f"Skipping malformed LINE webhook event: {event!r}")
            continue
        source = event.get("source") or {}
        if not isinstance(source, dict):
            source = {}
        logger.info(
            f"LINE webhook event type={event.get('type')} "
            f"source={source.get('groupId') or source.get('userId')}"
        )
    return Response(status_code=200)
