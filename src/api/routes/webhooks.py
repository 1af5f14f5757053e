"""Email provider webhook receiver.

Endpoints:
    POST /api/webhooks/resend  Inbound email events from Resend

Every outcome except a failed signature check is acknowledged with HTTP
200 and a status token, so the provider does not retry events that can
never succeed (wrong type, unknown order) or that already failed in a way
a retry would only duplicate.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from src.api.dependencies import get_email_client, get_email_settings
from src.api.schemas_webhooks import WebhookAck, parse_webhook_event
from src.db.connection import get_db
from src.errors.domain import WebhookSignatureError
from src.services.email_client import ResendClient
from src.services.email_settings import EmailSettings
from src.services.inbound_email_service import InboundEmailService, IngestStatus
from src.services.webhook_signature import verify_signature
from src.utils.redaction import redact_for_logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/resend", response_model=WebhookAck)
async def resend_webhook(
    request: Request,
    db: Session = Depends(get_db),
    settings: EmailSettings = Depends(get_email_settings),
    email_client: ResendClient | None = Depends(get_email_client),
):
    """Receive a Resend webhook event.

    Returns:
        200 with a status token, or 401 ``invalid_signature``.
    """
    body = await request.body()
    logger.debug("Webhook delivery headers: %s", redact_for_logging(dict(request.headers)))

    if settings.webhook_verification_enabled:
        try:
            verify_signature(
                settings.webhook_secret,
                request.headers.get("svix-id"),
                request.headers.get("svix-timestamp"),
                request.headers.get("svix-signature"),
                body,
                tolerance_seconds=settings.webhook_tolerance_seconds,
            )
        except WebhookSignatureError as e:
            logger.warning("Rejected webhook delivery: %s", e)
            return JSONResponse(
                status_code=401,
                content=WebhookAck(status="invalid_signature").model_dump(),
            )

    try:
        event = parse_webhook_event(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError, PydanticValidationError) as e:
        logger.warning("Unparseable webhook envelope: %s", e)
        return WebhookAck(status=IngestStatus.ignored.value)

    service = InboundEmailService(db, settings, email_client)
    result = await service.ingest(event)
    return WebhookAck(
        status=result.status.value,
        order_id=result.order_id,
        message_id=result.message_id,
    )
