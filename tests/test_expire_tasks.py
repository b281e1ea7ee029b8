from datetime import timedelta

from sqlalchemy import func, select

from shop.data.models import CartModel, OrderModel
from shop.domain.ports import PaymentAssertion
from shop.tasks.expire import expire_unpaid_orders, purge_expired_carts


def test_unpaid_orders_expire_and_return_stock(db, make_user, make_product, cart_service, order_service, clock, address, stock_of):
    make_user(1)
    make_user(2)
    product = make_product(stock=10)
    cart_service.add_item(1, product.id, 3)
    unpaid = order_service.place_order_from_cart(1, address, "bank_transfer")
    cart_service.add_item(2, product.id, 2)
    order_service.place_order_from_cart(2, address, "card", payment=PaymentAssertion("imp-9", "mid-9"))

    assert expire_unpaid_orders(db, clock()) == 0

    clock.advance(31 * 60)
    assert expire_unpaid_orders(db, clock()) == 1

    assert db.get(OrderModel, unpaid["id"]) is None
    assert db.execute(select(func.count(OrderModel.id))).scalar_one() == 1
    assert stock_of(product.id) == 8


def test_paid_pending_order_is_not_expired(db, make_user, make_product, cart_service, order_service, clock, address):
    make_user(1)
    product = make_product(stock=10)
    cart_service.add_item(1, product.id, 1)
    order = order_service.place_order_from_cart(1, address, "bank_transfer")
    order_service.update_payment_info(order["id"], "completed")

    clock.advance(31 * 60)

    assert expire_unpaid_orders(db, clock()) == 0


def test_expired_carts_are_purged(db, make_user, make_product, cart_service, clock):
    make_user(1)
    make_user(2)
    product = make_product(stock=10)
    cart_service.add_item(1, product.id, 1)
    clock.advance(20 * 24 * 3600)
    cart_service.add_item(2, product.id, 1)

    removed = purge_expired_carts(db, clock() + timedelta(days=15))

    assert removed == 1
    assert [c.user_id for c in db.execute(select(CartModel)).scalars()] == [2]


def test_numbers_stay_unique_after_an_expired_order_is_deleted(db, make_user, make_product, cart_service, order_service, clock, address):
    product = make_product(stock=10)
    for user_id in (1, 2, 3):
        make_user(user_id)
        cart_service.add_item(user_id, product.id, 1)

    first = order_service.place_order_from_cart(1, address, "bank_transfer")
    clock.advance(31 * 60)
    second = order_service.place_order_from_cart(2, address, "bank_transfer")
    assert expire_unpaid_orders(db, clock()) == 1

    third = order_service.place_order_from_cart(3, address, "bank_transfer")

    assert [first["order_number"], second["order_number"], third["order_number"]] == [
        "ORD2501150001",
        "ORD2501150002",
        "ORD2501150003",
    ]
