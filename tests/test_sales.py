import re

import pytest
from bson import ObjectId

from errors import NotFound
from orders import create_order, get_order, update_order
from sales import create_sale, delete_sale, get_sale, list_sales, update_sale
from schemas import OrderUpdate, SaleCreate


@pytest.fixture
def counter_sale():
    return SaleCreate(
        customerName="Sana",
        customerPhone="555",
        items=[{"name": "Cake", "price": 12.5, "quantity": 2}],
        total=20,  # discounted at the counter
        paymentMethod="cash",
    )


def test_create_sale_keeps_client_total(db, counter_sale):
    sale = get_sale(create_sale(counter_sale))
    assert sale.total == 20
    assert sale.customer_name == "Sana"
    assert sale.order_id is None


def test_create_sale_generates_receipt_number(db, counter_sale):
    sale = get_sale(create_sale(counter_sale))
    assert re.fullmatch(r"REC-\d{8}-[0-9A-F]{6}", sale.receipt_number)


def test_create_sale_keeps_given_receipt_number(db, counter_sale):
    counter_sale.receipt_number = "R-42"
    assert get_sale(create_sale(counter_sale)).receipt_number == "R-42"


def test_create_sale_notifies_admins(db, counter_sale):
    create_sale(counter_sale)
    assert db["notifications"].count_documents({"type": "sale"}) == 1


def test_list_sales_newest_first(db, counter_sale):
    first = create_sale(counter_sale)
    second = create_sale(counter_sale)
    assert [s.id for s in list_sales()] == [second, first]


def test_update_sale_replaces_fields(db, counter_sale):
    sale_id = create_sale(counter_sale)
    update_sale(sale_id, SaleCreate(
        customerName="Sana B.",
        items=[{"name": "Tart", "price": 8, "quantity": 1}],
        total=8,
    ))

    sale = get_sale(sale_id)
    assert sale.customer_name == "Sana B."
    assert sale.customer_phone is None
    assert [i.name for i in sale.items] == ["Tart"]
    assert sale.total == 8


def test_update_unknown_sale_is_not_found(db, counter_sale):
    with pytest.raises(NotFound):
        update_sale(str(ObjectId()), counter_sale)


def test_delete_absent_sale_is_a_noop(db):
    assert delete_sale(str(ObjectId())) is False


def test_delete_sale_cascades_to_order(db, order_payload):
    order_id = create_order(order_payload)
    update_order(order_id, OrderUpdate(status="completed"))
    sale_id = db["sales"].find_one({"orderId": order_id})["_id"]

    assert delete_sale(str(sale_id), cascade=True) is True

    with pytest.raises(NotFound):
        get_order(order_id)


def test_delete_sale_without_cascade_keeps_order(db, order_payload):
    order_id = create_order(order_payload)
    update_order(order_id, OrderUpdate(status="completed"))
    sale_id = db["sales"].find_one({"orderId": order_id})["_id"]

    delete_sale(str(sale_id))
    assert get_order(order_id)


def test_cascade_tolerates_missing_order(db, counter_sale):
    counter_sale.order_id = str(ObjectId())
    sale_id = create_sale(counter_sale)
    assert delete_sale(sale_id, cascade=True) is True
    assert db["sales"].count_documents({}) == 0


def test_cascade_tolerates_garbage_order_id(db, counter_sale):
    counter_sale.order_id = "legacy-123"
    sale_id = create_sale(counter_sale)
    assert delete_sale(sale_id, cascade=True) is True
