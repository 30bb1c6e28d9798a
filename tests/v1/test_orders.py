# tests/v1/test_orders.py
"""Tests for customer order endpoints."""

from __future__ import annotations

import re
from datetime import timedelta

from fastapi import status

from selective_trading.models import Order


def _payload(products, laban: int = 2, milk: int = 1, message: str | None = None) -> dict:
    return {
        "items": [
            {"product_id": products["laban-1l"].id, "quantity": laban, "unit_type": "carton"},
            {"product_id": products["fresh-milk-2l"].id, "quantity": milk, "unit_type": "piece"},
        ],
        "message": message,
    }


def test_create_order_assigns_order_number(client, auth_headers, products) -> None:
    first = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers)
    second = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers)

    assert first.status_code == status.HTTP_201_CREATED
    data = first.json()
    assert re.fullmatch(r"ST\d{6}-0001", data["order_number"])
    assert second.json()["order_number"] == data["order_number"][:-4] + "0002"
    assert data["total_items"] == 3
    assert data["status"] == "new"
    assert data["can_edit"] is True
    assert data["items"][0]["product_name_ar"] == "لبن ١ لتر"


def test_create_order_requires_login(client, products) -> None:
    response = client.post("/api/v1/orders", json=_payload(products))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_order_below_minimum(client, auth_headers, products) -> None:
    payload = {"items": [{"product_id": products["laban-1l"].id, "quantity": 1}]}
    response = client.post("/api/v1/orders", json=payload, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Minimum order is 2 items"


def test_create_order_with_unavailable_product(client, auth_headers, products) -> None:
    payload = {"items": [{"product_id": products["ghee-500g"].id, "quantity": 4}]}
    response = client.post("/api/v1/orders", json=payload, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_message_length_is_limited(client, auth_headers, products) -> None:
    response = client.post(
        "/api/v1/orders", json=_payload(products, message="x" * 501), headers=auth_headers
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_customers_only_see_their_orders(
    client, auth_headers, other_headers, admin_headers, products
) -> None:
    mine = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers).json()
    client.post("/api/v1/orders", json=_payload(products), headers=other_headers)

    listed = client.get("/api/v1/orders", headers=auth_headers).json()["orders"]
    assert [o["id"] for o in listed] == [mine["id"]]

    assert client.get(f"/api/v1/orders/{mine['id']}", headers=other_headers).status_code == 404
    assert client.get(f"/api/v1/orders/{mine['id']}", headers=auth_headers).status_code == 200

    everything = client.get("/api/v1/orders", headers=admin_headers).json()["orders"]
    assert len(everything) == 2


def test_list_orders_filters_by_status(client, auth_headers, products) -> None:
    client.post("/api/v1/orders", json=_payload(products), headers=auth_headers)
    received = client.get("/api/v1/orders?status=received", headers=auth_headers).json()
    assert received["orders"] == []
    new = client.get("/api/v1/orders?status=new", headers=auth_headers).json()
    assert len(new["orders"]) == 1


def test_update_order_within_window(client, auth_headers, products) -> None:
    order = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers).json()
    response = client.put(
        f"/api/v1/orders/{order['id']}",
        json=_payload(products, laban=6, message="Deliver before 9"),
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["order_number"] == order["order_number"]
    assert data["total_items"] == 7
    assert data["message"] == "Deliver before 9"
    assert [entry["action"] for entry in data["history"]] == ["created", "updated"]


def test_update_order_after_deadline(client, auth_headers, products, db_session) -> None:
    order = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers).json()
    stored = db_session.get(Order, order["id"])
    stored.edit_deadline = stored.edit_deadline - timedelta(hours=3)
    db_session.commit()

    response = client.put(
        f"/api/v1/orders/{order['id']}", json=_payload(products), headers=auth_headers
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Order can no longer be edited"


def test_other_customer_cannot_edit(client, auth_headers, other_headers, products) -> None:
    order = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers).json()
    response = client.put(
        f"/api/v1/orders/{order['id']}", json=_payload(products), headers=other_headers
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_customer_deletes_own_new_order(client, auth_headers, other_headers, products) -> None:
    order = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers).json()

    assert client.delete(f"/api/v1/orders/{order['id']}", headers=other_headers).status_code == 404
    response = client.delete(f"/api/v1/orders/{order['id']}", headers=auth_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/v1/orders/{order['id']}", headers=auth_headers).status_code == 404

    # Deleted orders do not free their number.
    again = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers).json()
    assert again["order_number"].endswith("-0002")


def test_received_order_can_only_be_deleted_by_admin(
    client, auth_headers, admin_headers, products
) -> None:
    order = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers).json()
    client.post(f"/api/v1/admin/orders/{order['id']}/receive", headers=admin_headers)

    refused = client.delete(f"/api/v1/orders/{order['id']}", headers=auth_headers)
    assert refused.status_code == status.HTTP_400_BAD_REQUEST
    assert refused.json()["detail"] == "Cannot delete order after it has been received"

    deleted = client.delete(f"/api/v1/orders/{order['id']}", headers=admin_headers)
    assert deleted.status_code == status.HTTP_204_NO_CONTENT


def test_admin_edits_any_order_after_deadline(
    client, auth_headers, admin_headers, products, db_session
) -> None:
    order = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers).json()
    stored = db_session.get(Order, order["id"])
    stored.edit_deadline = stored.edit_deadline - timedelta(hours=3)
    db_session.commit()

    response = client.put(
        f"/api/v1/orders/{order['id']}",
        json={**_payload(products, laban=10), "status": "received"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total_items"] == 11
    assert data["status"] == "received"
    assert data["can_edit"] is False
    assert data["history"][-1]["by_name"] == "Admin"
    assert "status new -> received" in data["history"][-1]["changes"]


def test_admin_changes_status_without_items(client, auth_headers, admin_headers, products) -> None:
    order = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers).json()
    response = client.put(
        f"/api/v1/orders/{order['id']}", json={"status": "received"}, headers=admin_headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "received"
    assert response.json()["total_items"] == order["total_items"]


def test_customer_cannot_change_status(client, auth_headers, products) -> None:
    order = client.post("/api/v1/orders", json=_payload(products), headers=auth_headers).json()
    response = client.put(
        f"/api/v1/orders/{order['id']}",
        json={**_payload(products), "status": "received"},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
