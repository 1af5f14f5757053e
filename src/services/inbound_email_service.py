"""Ingestion of inbound customer replies from the email provider.

Turns an authenticated ``email.received`` webhook event into a
customer-authored message on the right order:

    event type -> email id -> order (reply address) -> dedupe
    -> fetch body -> extract reply -> persist

Expected "not applicable" outcomes (wrong event type, no reply address,
unknown order, duplicate delivery) are reported as status tokens, not
errors. Unexpected failures are logged and reported as ``error``; the
webhook route acknowledges every outcome with HTTP 200 so the provider does
not retry.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.api.schemas_webhooks import EmailReceivedData, EmailReceivedEvent, IgnoredEvent
from src.db.models import MessageSender, MessageSource, Order
from src.errors.domain import EmailProviderError
from src.services.email_client import ResendClient
from src.services.email_settings import EmailSettings
from src.services.message_service import MessageService
from src.services.reply_address import order_id_from_recipients
from src.services.reply_extraction import extract_reply, html_to_text

logger = logging.getLogger(__name__)


class IngestStatus(str, Enum):
    """Outcome tokens returned to the webhook sender."""

    saved = "saved"
    ignored = "ignored"
    no_email_id = "no_email_id"
    no_order_id = "no_order_id"
    order_not_found = "order_not_found"
    duplicate = "duplicate"
    error = "error"


@dataclass
class IngestResult:
    """Outcome of one webhook event."""

    status: IngestStatus
    order_id: str | None = None
    message_id: int | None = None


def body_from_provider_email(email: dict) -> str:
    """Pick the body text of a provider email, preferring plain text."""
    text = email.get("text")
    if isinstance(text, str) and text.strip():
        return text
    markup = email.get("html")
    if isinstance(markup, str) and markup.strip():
        return html_to_text(markup)
    return ""


class InboundEmailService:
    """Pipeline from webhook event to persisted customer message.

    Args:
        db: SQLAlchemy session (sync).
        settings: Email settings (reply domain).
        email_client: Provider client used to fetch the full email body.
    """

    def __init__(
        self,
        db: Session,
        settings: EmailSettings,
        email_client: ResendClient | None,
    ) -> None:
        self._db = db
        self._settings = settings
        self._email_client = email_client
        self._messages = MessageService(db)

    async def ingest(self, event: EmailReceivedEvent | IgnoredEvent) -> IngestResult:
        """Process one webhook event. Never raises.

        Args:
            event: Parsed webhook envelope.

        Returns:
            IngestResult with the outcome token.
        """
        if not isinstance(event, EmailReceivedEvent):
            logger.debug("Ignoring webhook event type %r", event.type)
            return IngestResult(IngestStatus.ignored)

        data = event.data
        if not data.email_id:
            logger.warning("email.received event without email_id; dropping")
            return IngestResult(IngestStatus.no_email_id)

        try:
            return await self._ingest_received(data)
        except Exception:
            self._db.rollback()
            logger.exception("Failed to ingest inbound email %s", data.email_id)
            return IngestResult(IngestStatus.error)

    async def _ingest_received(self, data: EmailReceivedData) -> IngestResult:
        order_id = order_id_from_recipients(data.recipients, self._settings.reply_domain)
        if order_id is None:
            logger.info(
                "Inbound email %s has no reply address for %s; dropping",
                data.email_id,
                self._settings.reply_domain,
            )
            return IngestResult(IngestStatus.no_order_id)

        if self._db.get(Order, order_id) is None:
            logger.info("Inbound email %s targets unknown order %s", data.email_id, order_id)
            return IngestResult(IngestStatus.order_not_found, order_id=order_id)

        existing = self._messages.find_by_inbound_email_id(data.email_id)
        if existing is not None:
            logger.info(
                "Inbound email %s already stored as message %s", data.email_id, existing.id
            )
            return IngestResult(
                IngestStatus.duplicate, order_id=order_id, message_id=existing.id
            )

        raw_body = await self._fetch_body(data)
        content = extract_reply(raw_body, data.subject)

        try:
            msg = self._messages.append(
                order_id,
                MessageSender.customer.value,
                content,
                source=MessageSource.email.value,
                inbound_email_id=data.email_id,
            )
        except IntegrityError:
            # A concurrent delivery of the same email won the insert.
            self._db.rollback()
            logger.info("Inbound email %s stored concurrently; treating as duplicate", data.email_id)
            return IngestResult(IngestStatus.duplicate, order_id=order_id)

        logger.info("Inbound email %s saved as message %s on order %s", data.email_id, msg.id, order_id)
        return IngestResult(IngestStatus.saved, order_id=order_id, message_id=msg.id)

    async def _fetch_body(self, data: EmailReceivedData) -> str:
        """Retrieve the email body, falling back to the webhook payload.

        Raises:
            EmailProviderError: Provider lookup failed and the webhook payload
                carries no body to fall back to.
        """
        payload_body = body_from_provider_email({"text": data.text, "html": data.html})

        if self._email_client is None or not self._email_client.configured:
            return payload_body

        try:
            email = await self._email_client.get_received_email(data.email_id)
        except EmailProviderError:
            if payload_body:
                logger.warning(
                    "Provider lookup for %s failed; using webhook payload body",
                    data.email_id,
                )
                return payload_body
            raise
        return body_from_provider_email(email) or payload_body
