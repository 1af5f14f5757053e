"""Customer notifications for admin messages.

When an admin posts to an order thread, the customer gets an email with
the new message and recent thread history. The email's Reply-To is the
order's reply address, which routes the customer's answer back through
the inbound webhook.

Templates are rendered with a Jinja2 environment with autoescaping on,
since message text is user-supplied.
"""

import logging

from jinja2 import Environment

from src.db.models import MessageSender, Order, OrderMessage
from src.errors.domain import EmailProviderError
from src.services.email_client import ResendClient
from src.services.email_settings import EmailSettings
from src.services.reply_address import address_for
from src.utils.redaction import mask_email

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10

_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)

_HTML_TEMPLATE = _env.from_string(
    """<div style="font-family: 'Inter', sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #333; background: #000; color: #fff;">
  <h1 style="color: #a855f7; text-transform: uppercase; letter-spacing: 2px;">New message about your order</h1>
  <p>Hi {{ order.customer_name }},</p>
  <p>Order: <strong>{{ order.id }}</strong></p>
  <div style="margin: 20px 0; padding: 15px; background: #111; border-radius: 10px;">
    {% if message.content %}
    <p style="white-space: pre-wrap;">{{ message.content }}</p>
    {% endif %}
    {% if message.image_url %}
    <img src="{{ message.image_url }}" alt="Attached image" style="max-width: 100%; border-radius: 8px;">
    {% endif %}
  </div>
  {% if history %}
  <h2 style="font-size: 14px; color: #71717a; text-transform: uppercase;">Earlier in this conversation</h2>
  {% for past in history %}
  <div style="margin-bottom: 10px; padding: 10px; border-left: 3px solid {{ '#a855f7' if past.sender == 'admin' else '#71717a' }};">
    <p style="font-size: 12px; color: #71717a;">{{ 'PrintPalooza' if past.sender == 'admin' else 'You' }} &middot; {{ past.created_at[:16] | replace('T', ' ') }}</p>
    {% if past.content %}<p style="white-space: pre-wrap;">{{ past.content }}</p>{% endif %}
    {% if past.image_url %}<p><a href="{{ past.image_url }}">Image</a></p>{% endif %}
  </div>
  {% endfor %}
  {% endif %}
  <p style="color: #71717a; font-size: 12px;">Reply to this email to answer. Your reply goes straight to our lab team.</p>
</div>
"""
)

_TEXT_TEMPLATE = _env.from_string(
    """Hi {{ order.customer_name }},

{% if message.content %}{{ message.content }}
{% endif %}{% if message.image_url %}Image: {{ message.image_url }}
{% endif %}
Reply to this email to answer.
"""
)


def render_admin_message_email(
    order: Order, message: OrderMessage, history: list[OrderMessage]
) -> tuple[str, str, str]:
    """Render subject, HTML body and text body for an admin message.

    Args:
        order: The order the message belongs to.
        message: The new admin message.
        history: Earlier messages, oldest first. The most recent
            HISTORY_LIMIT are rendered, newest first.

    Returns:
        Tuple of (subject, html, text).
    """
    earlier = [m for m in history if m.id != message.id][-HISTORY_LIMIT:]
    earlier.reverse()
    subject = f"Update on your order {order.id}"
    html = _HTML_TEMPLATE.render(order=order, message=message, history=earlier)
    text = _TEXT_TEMPLATE.render(order=order, message=message)
    return subject, html, text


class NotificationService:
    """Sends customer notifications through the email provider.

    Args:
        settings: Email settings (reply domain).
        email_client: Provider client; None disables sending.
    """

    def __init__(self, settings: EmailSettings, email_client: ResendClient | None) -> None:
        self._settings = settings
        self._email_client = email_client

    async def notify_customer(
        self, order: Order, message: OrderMessage, history: list[OrderMessage]
    ) -> bool:
        """Email the customer about a new admin message.

        Failures are logged, never raised: the message is already persisted
        and the admin UI should not show a send error for a mail hiccup.

        Returns:
            True if the provider accepted the email.
        """
        if message.sender != MessageSender.admin.value:
            return False
        if self._email_client is None or not self._email_client.configured:
            logger.info("Email provider not configured; skipping notification for %s", order.id)
            return False

        reply_to = address_for(order.id, self._settings.reply_domain)
        subject, html, text = render_admin_message_email(order, message, history)
        try:
            await self._email_client.send_email(
                to=order.email,
                subject=subject,
                html=html,
                text=text,
                reply_to=reply_to,
            )
        except EmailProviderError as e:
            logger.error(
                "Failed to notify %s about message %s on order %s: %s",
                mask_email(order.email),
                message.id,
                order.id,
                e,
            )
            return False
        return True
