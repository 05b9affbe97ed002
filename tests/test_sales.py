from datetime import datetime

from sqlalchemy import func, select

from smallbiz.core.exceptions import ConflictError
from smallbiz.models import Product, Sale, SaleItem
from smallbiz.schemas.sales import SaleCreate
from smallbiz.services import sales as sale_service


def _sale_payload(items, total=None, **overrides):
    payload = {
        "customer_id": None,
        "payment_method": "cash",
        "notes": None,
        "items": items,
        "total_amount": total if total is not None else round(sum(item["subtotal"] for item in items), 2),
    }
    payload.update(overrides)
    return payload


def _item(product_id, quantity, unit_price, subtotal=None):
    return {
        "product_id": product_id,
        "quantity": quantity,
        "unit_price": unit_price,
        "subtotal": subtotal if subtotal is not None else round(quantity * unit_price, 2),
    }


def _count(db_session, model) -> int:
    return db_session.scalar(select(func.count()).select_from(model))


def _stock(db_session, product_id):
    db_session.expire_all()
    return db_session.get(Product, product_id).stock_quantity


def test_sale_decrements_stock(client, db_session, make_product):
    product = make_product(name="Batik Shirt", price="25.99", stock_quantity=100, low_stock_threshold=10)

    response = client.post("/sales", json=_sale_payload([_item(product.id, 3, 25.99, 77.97)], total=77.97))

    assert response.status_code == 201
    body = response.json()
    assert body["total_amount"] == 77.97
    assert body["payment_status"] == "paid"
    assert body["customer_id"] is None
    assert isinstance(body["id"], int)
    assert _stock(db_session, product.id) == 97


def test_insufficient_stock_rejects_and_writes_nothing(client, db_session, make_product):
    product = make_product(name="Batik Shirt", price="25.99", stock_quantity=100)

    response = client.post(
        "/sales",
        json=_sale_payload([_item(product.id, 101, 25.99, 2624.99)], total=2624.99),
    )

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert "Insufficient stock" in detail
    assert "Available: 100" in detail
    assert "Required: 101" in detail
    assert _stock(db_session, product.id) == 100
    assert _count(db_session, Sale) == 0
    assert _count(db_session, SaleItem) == 0


def test_duplicate_lines_are_aggregated_for_stock(client, db_session, make_product):
    product = make_product(price="5.00", stock_quantity=10)

    response = client.post(
        "/sales",
        json=_sale_payload([_item(product.id, 2, 5.0), _item(product.id, 3, 5.0)]),
    )

    assert response.status_code == 201
    assert _stock(db_session, product.id) == 5
    details = client.get(f"/sales/{response.json()['id']}").json()
    assert [item["quantity"] for item in details["items"]] == [2, 3]


def test_aggregated_quantity_over_stock_is_a_conflict(client, db_session, make_product):
    product = make_product(price="1.00", stock_quantity=100)

    response = client.post(
        "/sales",
        json=_sale_payload([_item(product.id, 60, 1.0), _item(product.id, 50, 1.0)]),
    )

    assert response.status_code == 409
    assert "Required: 110" in response.json()["detail"]
    assert _stock(db_session, product.id) == 100


def test_services_and_untracked_products_skip_stock(client, db_session, make_product):
    service = make_product(name="Tailoring", price="15.00", is_service=True)
    untracked = make_product(name="Loose Rice", price="2.50", stock_quantity=None)

    response = client.post(
        "/sales",
        json=_sale_payload([_item(service.id, 1.5, 15.0), _item(untracked.id, 4, 2.5)]),
    )

    assert response.status_code == 201
    assert _stock(db_session, service.id) is None
    assert _stock(db_session, untracked.id) is None


def test_subtotal_mismatch_names_product(client, db_session, make_product):
    product = make_product(name="Kopi Bubuk", price="12.00")

    response = client.post(
        "/sales",
        json=_sale_payload([_item(product.id, 2, 12.0, 25.0)], total=25.0),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == (
        'Invalid subtotal for product "Kopi Bubuk". Expected: 24.00, Provided: 25.00'
    )
    assert _count(db_session, Sale) == 0


def test_subtotal_within_tolerance_is_accepted(client, make_product):
    product = make_product(price="3.33")

    response = client.post(
        "/sales",
        json=_sale_payload([_item(product.id, 3, 3.33, 10.0)], total=10.0),
    )

    assert response.status_code == 201


def test_total_mismatch_is_rejected(client, db_session, make_product):
    product = make_product(price="10.00")

    response = client.post("/sales", json=_sale_payload([_item(product.id, 1, 10.0)], total=12.0))

    assert response.status_code == 400
    assert response.json()["detail"] == "Total amount mismatch. Expected: 10.00, Provided: 12.00"
    assert _stock(db_session, product.id) == 100


def test_validation_errors_come_before_stock_check(client, make_product):
    product = make_product(price="10.00", stock_quantity=1)

    response = client.post(
        "/sales",
        json=_sale_payload([_item(product.id, 5, 10.0, 49.0)], total=49.0),
    )

    assert response.status_code == 400


def test_fractional_quantity_of_stocked_product_is_rejected(client, make_product):
    product = make_product(price="4.00", stock_quantity=10)

    response = client.post("/sales", json=_sale_payload([_item(product.id, 1.5, 4.0)]))

    assert response.status_code == 400
    assert "whole number" in response.json()["detail"]


def test_unknown_customer_is_not_found(client, make_product):
    product = make_product()

    response = client.post("/sales", json=_sale_payload([_item(product.id, 1, 10.0)], customer_id=999))

    assert response.status_code == 404
    assert "Customer with ID 999 not found" in response.json()["detail"]


def test_unknown_product_is_not_found(client, db_session, make_product):
    product = make_product()

    response = client.post(
        "/sales",
        json=_sale_payload([_item(product.id, 1, 10.0), _item(4242, 1, 10.0)]),
    )

    assert response.status_code == 404
    assert "4242" in response.json()["detail"]
    assert _stock(db_session, product.id) == 100


def test_sale_with_customer_and_pending_status(client, make_product, make_customer):
    product = make_product()
    customer = make_customer()

    response = client.post(
        "/sales",
        json=_sale_payload(
            [_item(product.id, 2, 10.0)],
            customer_id=customer.id,
            payment_method="e_wallet",
            payment_status="pending",
            transaction_date="2024-03-01T10:30:00",
            notes="pay on pickup",
        ),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["customer_id"] == customer.id
    assert body["payment_method"] == "e_wallet"
    assert body["payment_status"] == "pending"
    assert body["transaction_date"].startswith("2024-03-01T10:30:00")
    assert body["notes"] == "pay on pickup"


def test_schema_rejects_bad_input(client, make_product):
    product = make_product()

    empty = client.post("/sales", json=_sale_payload([], total=1.0))
    negative = client.post("/sales", json=_sale_payload([_item(product.id, -1, 10.0, 10.0)], total=10.0))
    bad_method = client.post("/sales", json=_sale_payload([_item(product.id, 1, 10.0)], payment_method="barter"))

    assert empty.status_code == 422
    assert negative.status_code == 422
    assert bad_method.status_code == 422


def test_list_sales_newest_first(client, make_product, make_sale):
    product = make_product()

    older = make_sale([(product, "1", "10.00")], transaction_date=datetime(2024, 1, 1))
    newer = make_sale([(product, "1", "10.00")], transaction_date=datetime(2024, 2, 1))

    response = client.get("/sales")

    assert response.status_code == 200
    assert [sale["id"] for sale in response.json()] == [newer.id, older.id]
    assert response.json()[0]["total_amount"] == 10.0


def test_sale_details(client, make_product):
    first = make_product(name="Tea", price="2.50")
    second = make_product(name="Sugar", price="1.25")
    created = client.post(
        "/sales",
        json=_sale_payload([_item(first.id, 2, 2.5), _item(second.id, 4, 1.25)]),
    ).json()

    response = client.get(f"/sales/{created['id']}")

    assert response.status_code == 200
    body = response.json()
    assert body["sale"]["id"] == created["id"]
    assert body["sale"]["total_amount"] == 10.0
    assert [(item["product_id"], item["unit_price"], item["subtotal"]) for item in body["items"]] == [
        (first.id, 2.5, 5.0),
        (second.id, 1.25, 5.0),
    ]


def test_sale_details_not_found(client):
    response = client.get("/sales/12345")

    assert response.status_code == 404
    assert response.json()["detail"] == "Sale with ID 12345 not found"


def test_failed_conditional_decrement_rolls_back_sale(db_session, make_product, monkeypatch):
    product = make_product(price="10.00", stock_quantity=2)
    # Simulate stock taken by a concurrent sale after validation.
    monkeypatch.setattr(sale_service, "_plan_stock_decrements", lambda products, requested: {product.id: 5})
    payload = SaleCreate(
        total_amount="50.00",
        payment_method="cash",
        items=[{"product_id": product.id, "quantity": 5, "unit_price": "10.00", "subtotal": "50.00"}],
    )

    try:
        sale_service.create_sale(db_session, payload)
    except ConflictError as exc:
        assert "Insufficient stock" in exc.message
    else:
        raise AssertionError("expected ConflictError")

    assert _count(db_session, Sale) == 0
    assert _count(db_session, SaleItem) == 0
    assert _stock(db_session, product.id) == 2


def test_amounts_beyond_cents_are_rejected(client, db_session, make_product):
    service = make_product(name="Gift Wrapping", price="1.00", is_service=True)

    tiny_quantity = client.post(
        "/sales",
        json=_sale_payload([_item(service.id, 0.004, 1.0, 0.01)], total=0.01),
    )
    sub_cent_price = client.post(
        "/sales",
        json=_sale_payload([_item(service.id, 1, 1.005, 1.01)], total=1.01),
    )
    sub_cent_total = client.post(
        "/sales",
        json=_sale_payload([_item(service.id, 1, 1.0, 1.0)], total=1.001),
    )

    assert tiny_quantity.status_code == 422
    assert sub_cent_price.status_code == 422
    assert sub_cent_total.status_code == 422
    assert _count(db_session, SaleItem) == 0
