"""Tests for MessageService."""

from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import IntegrityError

from src.db.models import OrderMessage
from src.errors.domain import NotFoundError, ValidationError
from src.services.message_service import MessageService


@pytest.fixture
def svc(db_session):
    """Service under test."""
    return MessageService(db_session)


class TestAppend:
    def test_appends_admin_text(self, svc, make_order):
        make_order()
        msg = svc.append("quote_1001", "admin", "Your order ships tomorrow!")
        assert msg.id is not None
        assert msg.sender == "admin"
        assert msg.content == "Your order ships tomorrow!"
        assert msg.image_url is None
        assert msg.source == "admin_ui"
        assert msg.created_at

    def test_image_only_message(self, svc, make_order):
        make_order()
        msg = svc.append("quote_1001", "admin", "", "https://cdn.example.com/proof.png")
        assert msg.content is None
        assert msg.image_url == "https://cdn.example.com/proof.png"

    def test_strips_whitespace(self, svc, make_order):
        make_order()
        msg = svc.append("quote_1001", "customer", "  hi  \n")
        assert msg.content == "hi"

    @pytest.mark.parametrize("content,image_url", [(None, None), ("", ""), ("  ", None)])
    def test_empty_message_rejected_without_persisting(
        self, svc, make_order, db_session, content, image_url
    ):
        make_order()
        with pytest.raises(ValidationError):
            svc.append("quote_1001", "admin", content, image_url)
        assert db_session.query(OrderMessage).count() == 0

    def test_unknown_sender_rejected(self, svc, make_order):
        make_order()
        with pytest.raises(ValidationError, match="Unknown sender"):
            svc.append("quote_1001", "robot", "beep")

    def test_unknown_order(self, svc):
        with pytest.raises(NotFoundError):
            svc.append("quote_missing", "admin", "hello")

    def test_inbound_email_id_is_unique(self, svc, make_order, db_session):
        make_order()
        svc.append("quote_1001", "customer", "first", source="email", inbound_email_id="em_1")
        with pytest.raises(IntegrityError):
            svc.append("quote_1001", "customer", "again", source="email", inbound_email_id="em_1")
        db_session.rollback()


class TestListByOrder:
    def test_chronological_order(self, svc, make_order):
        make_order()
        first = svc.append("quote_1001", "admin", "one")
        second = svc.append("quote_1001", "customer", "two")
        third = svc.append("quote_1001", "admin", "three")
        assert [m.id for m in svc.list_by_order("quote_1001")] == [first.id, second.id, third.id]

    def test_scoped_to_order(self, svc, make_order):
        make_order("quote_1")
        make_order("quote_2")
        svc.append("quote_1", "admin", "for one")
        svc.append("quote_2", "admin", "for two")
        assert [m.content for m in svc.list_by_order("quote_2")] == ["for two"]

    def test_empty_thread(self, svc, make_order):
        make_order()
        assert svc.list_by_order("quote_1001") == []
        assert svc.list_by_order("quote_unknown") == []


class TestFindByInboundEmailId:
    def test_found_and_missing(self, svc, make_order):
        make_order()
        msg = svc.append("quote_1001", "customer", "hi", source="email", inbound_email_id="em_9")
        assert svc.find_by_inbound_email_id("em_9").id == msg.id
        assert svc.find_by_inbound_email_id("em_0") is None


class TestMarkRead:
    def test_sets_read_marker(self, svc, make_order):
        order = make_order()
        assert order.last_admin_read_at is None
        updated = svc.mark_read("quote_1001")
        assert updated.last_admin_read_at is not None

    def test_explicit_timestamp(self, svc, make_order):
        make_order()
        updated = svc.mark_read("quote_1001", as_of=datetime(2026, 1, 5, 15, 0, tzinfo=UTC))
        assert updated.last_admin_read_at == "2026-01-05T15:00:00.000000+00:00"

    def test_does_not_touch_messages(self, svc, make_order):
        make_order()
        msg = svc.append("quote_1001", "customer", "hello")
        svc.mark_read("quote_1001")
        assert [m.content for m in svc.list_by_order("quote_1001")] == ["hello"]
        assert svc.list_by_order("quote_1001")[0].id == msg.id

    def test_unknown_order(self, svc):
        with pytest.raises(NotFoundError):
            svc.mark_read("quote_missing")
