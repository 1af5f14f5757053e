"""Tests for order and order-thread API routes."""

from fastapi.testclient import TestClient

from src.db.models import OrderMessage
from src.errors.domain import EmailProviderError


def _create(client: TestClient, order_id: str = "quote_1001", **overrides) -> dict:
    payload = {"customer_name": "Jane Doe", "email": "jane@example.com", "order_id": order_id}
    payload.update(overrides)
    response = client.post("/api/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestOrders:
    def test_create_and_get(self, client: TestClient):
        created = _create(client, notes="Two A3 posters")
        assert created["status"] == "quote_request"
        assert created["notes"] == "Two A3 posters"

        response = client.get("/api/orders/quote_1001")
        assert response.status_code == 200
        assert response.json()["customer_name"] == "Jane Doe"

    def test_create_generates_id(self, client: TestClient):
        response = client.post(
            "/api/orders", json={"customer_name": "Jim", "email": "jim@example.com"}
        )
        assert response.status_code == 201
        assert response.json()["id"].startswith("quote_")

    def test_duplicate_id_conflict(self, client: TestClient):
        _create(client)
        response = client.post(
            "/api/orders",
            json={"customer_name": "Jim", "email": "jim@example.com", "order_id": "quote_1001"},
        )
        assert response.status_code == 409

    def test_invalid_order_id_rejected(self, client: TestClient):
        response = client.post(
            "/api/orders",
            json={"customer_name": "Jim", "email": "jim@example.com", "order_id": "bad-id"},
        )
        assert response.status_code == 422

    def test_invalid_email_rejected(self, client: TestClient):
        response = client.post(
            "/api/orders", json={"customer_name": "Jim", "email": "nope"}
        )
        assert response.status_code == 400

    def test_get_missing(self, client: TestClient):
        assert client.get("/api/orders/quote_404").status_code == 404

    def test_list_and_filter(self, client: TestClient):
        _create(client, "quote_1")
        _create(client, "quote_2")
        client.patch("/api/orders/quote_2/status", json={"status": "in_production"})

        all_orders = client.get("/api/orders").json()
        assert all_orders["total"] == 2

        filtered = client.get("/api/orders", params={"status": "in_production"}).json()
        assert [o["id"] for o in filtered["orders"]] == ["quote_2"]

    def test_update_status(self, client: TestClient):
        _create(client)
        response = client.patch("/api/orders/quote_1001/status", json={"status": "shipped_delivered"})
        assert response.status_code == 200
        assert response.json()["status"] == "shipped_delivered"

    def test_update_status_unknown_value(self, client: TestClient):
        _create(client)
        response = client.patch("/api/orders/quote_1001/status", json={"status": "teleported"})
        assert response.status_code == 400

    def test_update_status_missing_order(self, client: TestClient):
        response = client.patch("/api/orders/quote_404/status", json={"status": "cancelled"})
        assert response.status_code == 404


class TestMessages:
    def test_admin_message_persists_and_notifies(self, client: TestClient, db_session, email_client):
        _create(client)

        response = client.post(
            "/api/orders/quote_1001/messages", json={"message": "Your order ships tomorrow!"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["sender"] == "admin"
        assert body["message"] == "Your order ships tomorrow!"
        assert body["image_url"] is None
        assert body["source"] == "admin_ui"

        rows = db_session.query(OrderMessage).filter_by(order_id="quote_1001").all()
        assert len(rows) == 1
        assert rows[0].sender == "admin"

        email_client.send_email.assert_awaited_once()
        kwargs = email_client.send_email.await_args.kwargs
        assert kwargs["to"] == "jane@example.com"
        assert kwargs["reply_to"] == "order-quote_1001@reply.printpalooza.com"

    def test_image_only_message(self, client: TestClient):
        _create(client)
        response = client.post(
            "/api/orders/quote_1001/messages",
            json={"image_url": "https://cdn.example.com/proof.png"},
        )
        assert response.status_code == 201
        assert response.json()["message"] is None

    def test_empty_message_rejected(self, client: TestClient, db_session, email_client):
        _create(client)
        response = client.post("/api/orders/quote_1001/messages", json={"message": "  "})
        assert response.status_code == 400
        assert db_session.query(OrderMessage).count() == 0
        email_client.send_email.assert_not_awaited()

    def test_customer_message_not_emailed(self, client: TestClient, email_client):
        _create(client)
        response = client.post(
            "/api/orders/quote_1001/messages",
            json={"message": "Called to say yes", "sender": "customer"},
        )
        assert response.status_code == 201
        assert response.json()["sender"] == "customer"
        email_client.send_email.assert_not_awaited()

    def test_send_failure_still_returns_created(self, client: TestClient, db_session, email_client):
        email_client.send_email.side_effect = EmailProviderError("down", status_code=503)
        _create(client)
        response = client.post("/api/orders/quote_1001/messages", json={"message": "hello"})
        assert response.status_code == 201
        assert db_session.query(OrderMessage).count() == 1

    def test_message_to_missing_order(self, client: TestClient):
        response = client.post("/api/orders/quote_404/messages", json={"message": "hi"})
        assert response.status_code == 404

    def test_thread_is_chronological(self, client: TestClient):
        _create(client)
        for text in ("one", "two", "three"):
            client.post("/api/orders/quote_1001/messages", json={"message": text})

        response = client.get("/api/orders/quote_1001/messages")
        assert response.status_code == 200
        assert [m["message"] for m in response.json()["messages"]] == ["one", "two", "three"]

    def test_thread_of_missing_order(self, client: TestClient):
        assert client.get("/api/orders/quote_404/messages").status_code == 404


class TestMarkRead:
    def test_marks_read(self, client: TestClient):
        _create(client)
        response = client.patch("/api/orders/quote_1001/read")
        assert response.status_code == 200
        body = response.json()
        assert body["order_id"] == "quote_1001"
        assert body["last_admin_read_at"]

    def test_missing_order(self, client: TestClient):
        assert client.patch("/api/orders/quote_404/read").status_code == 404
