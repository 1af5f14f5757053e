"""Tests for customer notifications."""

import pytest

from src.errors.domain import EmailProviderError
from src.services.message_service import MessageService
from src.services.notification_service import (
    HISTORY_LIMIT,
    NotificationService,
    render_admin_message_email,
)


@pytest.fixture
def messages(db_session):
    return MessageService(db_session)


class TestRender:
    def test_subject_and_bodies(self, make_order, messages):
        order = make_order()
        msg = messages.append("quote_1001", "admin", "Your order ships tomorrow!")
        subject, html, text = render_admin_message_email(order, msg, [msg])
        assert subject == "Update on your order quote_1001"
        assert "Your order ships tomorrow!" in html
        assert "Hi Jane Doe" in text
        assert "Your order ships tomorrow!" in text
        assert "Earlier in this conversation" not in html

    def test_escapes_message_text(self, make_order, messages):
        order = make_order()
        msg = messages.append("quote_1001", "admin", "<script>alert(1)</script>")
        _, html, _ = render_admin_message_email(order, msg, [msg])
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_history_newest_first_and_capped(self, make_order, messages):
        order = make_order()
        for i in range(HISTORY_LIMIT + 3):
            messages.append("quote_1001", "customer", f"history {i:02d}")
        msg = messages.append("quote_1001", "admin", "latest")
        history = messages.list_by_order("quote_1001")

        _, html, _ = render_admin_message_email(order, msg, history)
        assert "history 00" not in html
        assert "history 02" not in html
        assert html.index(f"history {HISTORY_LIMIT + 2:02d}") < html.index("history 03")
        assert html.count("latest") == 1


class TestNotifyCustomer:
    @pytest.mark.asyncio
    async def test_sends_with_reply_address(self, make_order, messages, email_settings, email_client):
        order = make_order()
        msg = messages.append("quote_1001", "admin", "Your order ships tomorrow!")

        sent = await NotificationService(email_settings, email_client).notify_customer(
            order, msg, [msg]
        )

        assert sent is True
        email_client.send_email.assert_awaited_once()
        kwargs = email_client.send_email.await_args.kwargs
        assert kwargs["to"] == "jane@example.com"
        assert kwargs["reply_to"] == "order-quote_1001@reply.printpalooza.com"
        assert kwargs["subject"] == "Update on your order quote_1001"

    @pytest.mark.asyncio
    async def test_customer_messages_not_sent(self, make_order, messages, email_settings, email_client):
        order = make_order()
        msg = messages.append("quote_1001", "customer", "logged by admin")
        sent = await NotificationService(email_settings, email_client).notify_customer(
            order, msg, [msg]
        )
        assert sent is False
        email_client.send_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unconfigured_provider(self, make_order, messages, email_settings, email_client):
        email_client.configured = False
        order = make_order()
        msg = messages.append("quote_1001", "admin", "hi")
        assert await NotificationService(email_settings, email_client).notify_customer(
            order, msg, [msg]
        ) is False
        assert await NotificationService(email_settings, None).notify_customer(
            order, msg, [msg]
        ) is False
        email_client.send_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_error_is_swallowed(self, make_order, messages, email_settings, email_client):
        email_client.send_email.side_effect = EmailProviderError("boom", status_code=500)
        order = make_order()
        msg = messages.append("quote_1001", "admin", "hi")
        assert await NotificationService(email_settings, email_client).notify_customer(
            order, msg, [msg]
        ) is False
