import uuid

from dabba.constants import order_status
from dabba.models import Order
from tests.helpers import all_orders, bearer, cart_json, flip_bit, payables, sign


def place(client, headers, menu, method="cash", **extra):
    body = {"items": [cart_json(menu[0], 2)], "payment_method": method, **extra}
    return client.post("/checkout/place-order", json=body, headers=headers)


def test_summary_shows_tax_inclusive_total(client, menu):
    response = client.post("/checkout/summary", json={"items": [cart_json(menu[0], 2)]})

    assert response.status_code == 200
    data = response.json()
    assert data["subtotal"] == 200.0
    assert data["tax"] == 36.0
    assert data["total"] == 236.0
    assert data["tax_percentage"] == 18.0


def test_anonymous_checkout_redirects_to_login(client, session, menu):
    response = place(client, {}, menu)

    assert response.status_code == 401
    assert response.json()["code"] == "not_authenticated"
    assert response.json()["redirect"] == "/login?redirect=/checkout"
    assert all_orders(session) == []


def test_incomplete_profile_redirects_to_profile(client, session, customer, customer_headers, menu):
    customer.phone = ""
    session.add(customer)
    session.commit()

    response = place(client, customer_headers, menu)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "incomplete_profile"
    assert body["redirect"] == "/profile"
    assert body["missing"] == ["phone"]
    assert all_orders(session) == []


def test_empty_cart_is_rejected(client, session, customer_headers, menu):
    response = client.post(
        "/checkout/place-order",
        json={"items": [], "payment_method": "cash"},
        headers=customer_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "empty_cart"
    assert all_orders(session) == []


def test_tainted_catalog_id_is_rejected(client, session, customer_headers, menu):
    line = cart_json(menu[0], 1)
    line["catalog_item_id"] = "1; DROP TABLE orders"

    response = client.post(
        "/checkout/place-order",
        json={"items": [line], "payment_method": "cash"},
        headers=customer_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_catalog_reference"
    assert all_orders(session) == []


def test_cash_checkout(client, session, customer_headers, menu, order_api):
    response = place(client, customer_headers, menu, "cash")

    assert response.status_code == 200
    data = response.json()
    assert data["razorpay"] is None
    assert data["order"]["total"] == 236.0
    assert data["order"]["status"] == order_status.PENDING
    assert data["order"]["payment_status"] == order_status.PAYMENT_PENDING
    assert data["redirect"] == f"/orders/{data['order_id']}"
    assert order_api.calls == []
    assert payables(session) == []


def test_online_checkout_then_verify(client, session, customer_headers, menu):
    placed = place(client, customer_headers, menu, "online").json()
    gid = placed["razorpay"]["id"]

    assert placed["razorpay"]["amount"] == 23600
    assert placed["razorpay"]["currency"] == "INR"
    assert placed["razorpay"]["prefill"] == {
        "name": "Asha Kulkarni",
        "email": "asha@example.com",
        "contact": "9876543210",
    }

    response = client.post(
        f"/checkout/orders/{placed['order_id']}/verify",
        json={
            "razorpay_payment_id": "pay_1",
            "razorpay_order_id": gid,
            "razorpay_signature": sign(gid, "pay_1"),
        },
        headers=customer_headers,
    )

    assert response.status_code == 200
    assert response.json()["order"]["status"] == order_status.PAID
    [payable] = payables(session)
    assert float(payable.amount) == 236.0


def test_tampered_verify_fails_order(client, session, customer_headers, menu):
    placed = place(client, customer_headers, menu, "online").json()
    gid = placed["razorpay"]["id"]

    response = client.post(
        f"/checkout/orders/{placed['order_id']}/verify",
        json={
            "razorpay_payment_id": "pay_1",
            "razorpay_order_id": gid,
            "razorpay_signature": flip_bit(sign(gid, "pay_1")),
        },
        headers=customer_headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "signature_verification_failed"
    order = session.get(Order, uuid.UUID(placed["order_id"]))
    assert order.status == order_status.PAYMENT_FAILED
    assert payables(session) == []


def test_dismissed_widget_cancels_payment(client, session, customer_headers, menu):
    placed = place(client, customer_headers, menu, "online").json()

    response = client.post(
        f"/checkout/orders/{placed['order_id']}/cancel",
        json={"reason": "modal dismissed"},
        headers=customer_headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "payment_cancelled"
    order = session.get(Order, uuid.UUID(placed["order_id"]))
    assert order.status == order_status.PAYMENT_FAILED
    assert order.payment_status == order_status.PAYMENT_FAILED_STATUS
    assert payables(session) == []


def test_gateway_failure_report(client, session, customer_headers, menu):
    placed = place(client, customer_headers, menu, "online").json()

    response = client.post(
        f"/checkout/orders/{placed['order_id']}/failed",
        headers=customer_headers,
    )

    assert response.status_code == 502
    assert session.get(Order, uuid.UUID(placed["order_id"])).status == order_status.PAYMENT_FAILED


def test_gateway_down_keeps_failed_order(client, session, customer_headers, menu, order_api):
    order_api.error = ConnectionError("gateway unreachable")

    response = place(client, customer_headers, menu, "online")

    assert response.status_code == 502
    assert response.json()["code"] == "payment_failed"
    [order] = all_orders(session)
    assert order.status == order_status.PAYMENT_FAILED


def test_double_submit_with_same_key_creates_one_order(client, session, customer_headers, menu, order_api):
    first = place(client, customer_headers, menu, "online", idempotency_key="cart-1")
    second = place(client, customer_headers, menu, "online", idempotency_key="cart-1")

    assert first.status_code == second.status_code == 200
    assert first.json()["order_id"] == second.json()["order_id"]
    assert second.json()["replayed"] is True
    assert second.json()["razorpay"]["id"] == first.json()["razorpay"]["id"]
    assert len(all_orders(session)) == 1
    assert len(order_api.calls) == 1


def test_cannot_verify_someone_elses_order(client, session, customer_headers, cook_user, menu):
    placed = place(client, customer_headers, menu, "online").json()
    gid = placed["razorpay"]["id"]

    response = client.post(
        f"/checkout/orders/{placed['order_id']}/verify",
        json={
            "razorpay_payment_id": "pay_1",
            "razorpay_order_id": gid,
            "razorpay_signature": sign(gid, "pay_1"),
        },
        headers=bearer(cook_user),
    )

    assert response.status_code == 404
    assert payables(session) == []


def test_order_detail_has_items_and_timeline(client, customer_headers, menu):
    placed = place(client, customer_headers, menu, "online").json()

    response = client.get(f"/orders/{placed['order_id']}", headers=customer_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["items"] == [
        {"menu_id": str(menu[0].id), "quantity": 2, "price_at_time": 100.0, "total": 200.0}
    ]
    assert [e["event_type"] for e in data["timeline"]] == ["order_placed", "payment_started"]


def test_order_history_is_paginated(client, customer_headers, menu):
    for _ in range(3):
        place(client, customer_headers, menu, "cash")

    response = client.get("/orders?page=1&limit=2", headers=customer_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_items"] == 3
    assert data["total_pages"] == 2
    assert len(data["results"]) == 2


def test_key_of_a_cancelled_checkout_is_spent(client, session, customer_headers, menu, order_api):
    first = place(client, customer_headers, menu, "online", idempotency_key="cart-abc").json()
    client.post(f"/checkout/orders/{first['order_id']}/cancel", headers=customer_headers)

    again = place(client, customer_headers, menu, "online", idempotency_key="cart-abc")

    assert again.status_code == 409
    assert again.json()["code"] == "order_state_conflict"
    assert "razorpay" not in again.json()
    [order] = all_orders(session)
    assert order.status == order_status.PAYMENT_FAILED
    assert len(order_api.calls) == 1


def test_resubmitting_a_paid_checkout_offers_no_new_payment(client, session, customer_headers, menu):
    first = place(client, customer_headers, menu, "online", idempotency_key="cart-abc").json()
    gid = first["razorpay"]["id"]
    client.post(
        f"/checkout/orders/{first['order_id']}/verify",
        json={
            "razorpay_payment_id": "pay_1",
            "razorpay_order_id": gid,
            "razorpay_signature": sign(gid, "pay_1"),
        },
        headers=customer_headers,
    )

    again = place(client, customer_headers, menu, "online", idempotency_key="cart-abc")

    assert again.status_code == 200
    data = again.json()
    assert data["replayed"] is True
    assert data["razorpay"] is None
    assert data["order"]["status"] == order_status.PAID
    assert data["message"] == "This order has already been placed."
    assert len(payables(session)) == 1
