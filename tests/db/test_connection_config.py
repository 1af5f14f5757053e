"""Tests for database URL configuration and schema creation."""

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.db.connection import get_database_url
from src.db.models import Base, Order, OrderMessage


def test_get_database_url_prefers_database_url(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./preferred.db")
    monkeypatch.setenv("PRINTPALOOZA_DB_PATH", "/tmp/fallback.db")

    assert get_database_url() == "sqlite:///./preferred.db"


def test_get_database_url_uses_db_path_fallback(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("PRINTPALOOZA_DB_PATH", "/tmp/printpalooza.db")

    assert get_database_url() == "sqlite:////tmp/printpalooza.db"


def test_get_database_url_defaults_to_data_dir(monkeypatch, tmp_path):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("PRINTPALOOZA_DB_PATH", raising=False)
    monkeypatch.setenv("PRINTPALOOZA_DATA_DIR", str(tmp_path))

    assert get_database_url() == f"sqlite:///{tmp_path / 'printpalooza.db'}"


def test_schema_enforces_one_message_per_inbound_email():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    # Idempotent
    Base.metadata.create_all(engine)

    indexes = {i["name"]: i for i in inspect(engine).get_indexes("order_messages")}
    assert indexes["uq_order_messages_inbound_email_id"]["unique"]

    with Session(engine) as session:
        session.add(Order(id="quote_1", customer_name="Jane", email="jane@example.com"))
        session.add_all(
            [
                OrderMessage(order_id="quote_1", sender="customer", content="a", inbound_email_id="em_1"),
                OrderMessage(order_id="quote_1", sender="admin", content="b"),
                OrderMessage(order_id="quote_1", sender="admin", content="c"),
            ]
        )
        session.commit()

        session.add(
            OrderMessage(order_id="quote_1", sender="customer", content="d", inbound_email_id="em_1")
        )
        with pytest.raises(IntegrityError):
            session.commit()
