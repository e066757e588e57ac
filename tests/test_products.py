"""Tests for Product API endpoints."""
import json


def _add(client, name, price, in_stock=True):
    return client.post(
        "/api/v1/products/",
        json={"name": name, "price": price, "inStock": in_stock}
    )


def test_create_product(client):
    """Test adding a new product."""
    response = _add(client, "  Pen ", "1500")

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Pen"
    assert data["price"] == 1500
    assert data["inStock"] is True
    assert data["marked"] is False
    assert "id" in data


def test_create_product_formatted_price(client):
    """Test currency symbols and separators are stripped from the price."""
    response = _add(client, "Rice", "30.000 đ", in_stock=False)

    assert response.status_code == 201
    assert response.json()["price"] == 30000
    assert response.json()["inStock"] is False


def test_create_product_integer_price(client):
    """Test a JSON integer price is accepted as is."""
    response = client.post("/api/v1/products/", json={"name": "Ink", "price": 3000})

    assert response.status_code == 201
    assert response.json()["price"] == 3000
    assert response.json()["inStock"] is True


def test_create_product_empty_name(client):
    """Test adding a product without a name fails."""
    response = _add(client, "", "1000")

    assert response.status_code == 422
    assert "name" in response.json()["detail"]
    assert client.get("/api/v1/products/").json()["total"] == 0


def test_create_product_invalid_price(client):
    """Test adding a product with a non-numeric or non-positive price fails."""
    for price in ["abc", "0", "-10", 0]:
        response = _add(client, "Pen", price)
        assert response.status_code == 422

    assert client.get("/api/v1/products/").json()["total"] == 0


def test_create_product_oversized_price(client):
    """Test a price with thousands of digits is a validation error, not a crash."""
    response = _add(client, "Pen", "9" * 5000)

    assert response.status_code == 422
    assert "Price" in response.json()["detail"]
    assert client.get("/api/v1/products/").json()["total"] == 0


def test_create_product_fractional_price(client):
    """Test a fractional JSON price is rejected."""
    response = client.post("/api/v1/products/", json={"name": "Pen", "price": 12.5})

    assert response.status_code == 422


def test_list_products_empty(client):
    """Test the table of an empty inventory."""
    response = client.get("/api/v1/products/")

    assert response.status_code == 200
    assert response.json() == {
        "items": [],
        "total": 0,
        "page": 1,
        "page_size": 5,
        "total_pages": 1,
    }


def test_list_products_newest_first(client):
    """Test products are listed newest first."""
    for name in ["First", "Second", "Third"]:
        _add(client, name, "100")

    data = client.get("/api/v1/products/").json()

    assert [item["name"] for item in data["items"]] == ["Third", "Second", "First"]


def test_list_products_pagination(client):
    """Test paging through the table with query parameters."""
    for i in range(7):
        _add(client, f"Product {i}", str(100 + i))

    data = client.get("/api/v1/products/?page_size=3").json()
    assert data["page_size"] == 3
    assert data["total_pages"] == 3
    assert len(data["items"]) == 3

    data = client.get("/api/v1/products/?page=3").json()
    assert data["page"] == 3
    assert len(data["items"]) == 1
    assert data["items"][0]["name"] == "Product 0"

    data = client.get("/api/v1/products/?page=99").json()
    assert data["page"] == 3


def test_list_products_invalid_page_size(client):
    """Test page sizes outside the selector are rejected."""
    response = client.get("/api/v1/products/?page_size=4")

    assert response.status_code == 422


def test_update_pagination(client):
    """Test the pagination controls."""
    for i in range(12):
        _add(client, f"Product {i}", "100")

    response = client.put("/api/v1/products/pagination", json={"page_size": 10, "page": 2})
    assert response.status_code == 200
    data = response.json()
    assert data["page_size"] == 10
    assert data["page"] == 2
    assert len(data["items"]) == 2

    response = client.put("/api/v1/products/pagination", json={"page_size": 20})
    assert response.json()["page"] == 1
    assert response.json()["total_pages"] == 1

    response = client.put("/api/v1/products/pagination", json={"page_size": 7})
    assert response.status_code == 422


def test_add_product_returns_to_first_page(client):
    """Test adding a product moves the table back to page 1."""
    for i in range(6):
        _add(client, f"Product {i}", "100")
    client.put("/api/v1/products/pagination", json={"page": 2})

    _add(client, "Pen", "1500")

    data = client.get("/api/v1/products/").json()
    assert data["page"] == 1
    assert data["items"][0]["name"] == "Pen"


def test_toggle_stock(client):
    """Test toggling stock status twice restores it."""
    product_id = _add(client, "Pen", "1500").json()["id"]

    response = client.post(f"/api/v1/products/{product_id}/toggle-stock")
    assert response.status_code == 200
    assert response.json()["items"][0]["inStock"] is False

    response = client.post(f"/api/v1/products/{product_id}/toggle-stock")
    assert response.json()["items"][0]["inStock"] is True


def test_toggle_mark(client):
    """Test marking a product row."""
    product_id = _add(client, "Pen", "1500").json()["id"]

    response = client.post(f"/api/v1/products/{product_id}/toggle-mark")

    assert response.status_code == 200
    assert response.json()["items"][0]["marked"] is True


def test_toggle_unknown_product(client):
    """Test toggling a product that no longer exists is ignored."""
    _add(client, "Pen", "1500")

    response = client.post("/api/v1/products/missing/toggle-stock")

    assert response.status_code == 200
    assert response.json()["items"][0]["inStock"] is True


def test_delete_product(client):
    """Test deleting a product, twice."""
    product_id = _add(client, "To Delete", "2500").json()["id"]

    response = client.delete(f"/api/v1/products/{product_id}")
    assert response.status_code == 204
    assert client.get("/api/v1/products/").json()["total"] == 0

    response = client.delete(f"/api/v1/products/{product_id}")
    assert response.status_code == 204


def test_delete_last_row_moves_back_a_page(client):
    """Test emptying the last page shows the previous one."""
    for i in range(6):
        _add(client, f"Product {i}", "100")
    data = client.put("/api/v1/products/pagination", json={"page": 2}).json()
    assert len(data["items"]) == 1

    client.delete(f"/api/v1/products/{data['items'][0]['id']}")

    data = client.get("/api/v1/products/").json()
    assert data["page"] == 1
    assert data["total_pages"] == 1


def test_changes_are_persisted(client, storage):
    """Test every change is written to storage under the products key."""
    product_id = _add(client, "Pen", "1500").json()["id"]
    client.post(f"/api/v1/products/{product_id}/toggle-stock")

    saved = json.loads(storage.get("products"))
    assert saved == [
        {"id": product_id, "name": "Pen", "price": 1500, "inStock": False, "marked": False}
    ]
