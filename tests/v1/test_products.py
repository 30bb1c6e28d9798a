# tests/v1/test_products.py
"""Tests for the product catalogue endpoints."""

from fastapi import status


def test_catalogue_lists_available_products_in_order(client, products) -> None:
    response = client.get("/api/v1/products")
    assert response.status_code == status.HTTP_200_OK
    assert [p["slug"] for p in response.json()] == ["laban-1l", "fresh-milk-2l"]


def test_hidden_products_only_for_admins(client, products, auth_headers, admin_headers) -> None:
    as_customer = client.get("/api/v1/products?include_unavailable=true", headers=auth_headers)
    assert len(as_customer.json()) == 2

    as_admin = client.get("/api/v1/products?include_unavailable=true", headers=admin_headers)
    assert [p["slug"] for p in as_admin.json()][-1] == "ghee-500g"


def test_invalid_token_is_rejected(client, products) -> None:
    response = client.get("/api/v1/products", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
