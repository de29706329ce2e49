from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import delete

from microstore.data.models import CartItemModel, NotificationModel, OrderItemModel, OrderModel, ProductModel
from microstore.domain.errors import (
    CartNotFoundError,
    EmptyCartError,
    InvalidStatusTransitionError,
    OutOfStockError,
    ValidationError,
)
from microstore.domain.orders import (
    OrderStatus,
    can_transition,
    ensure_transition,
    format_order_number,
    parse_order_number,
)
from microstore.services.order_service import OrderService


def _count(db, model):
    return db.query(model).count()


class TestCreateOrderFromCart:
    def test_order_snapshots_cart(self, db, make_user, make_product, place_order):
        user = make_user()
        mug = make_product(price="12.50", inventory=5)
        book = make_product(price="20.00", inventory=None)

        order = place_order(user, [(mug, 2), (book, 1)])

        assert order["status"] == OrderStatus.PENDING.value
        assert order["total"] == Decimal("45.00")
        assert order["order_number"] == format_order_number(order["id"])
        assert order["user"]["id"] == user.id
        assert "password" not in order["user"]
        assert sorted((i["product_id"], i["quantity"]) for i in order["items"]) == sorted(
            [(mug.id, 2), (book.id, 1)]
        )
        assert sum(i["price"] * i["quantity"] for i in order["items"]) == order["total"]

    def test_inventory_decremented_and_unlimited_untouched(self, db, make_user, make_product, place_order):
        user = make_user()
        mug = make_product(inventory=5)
        book = make_product(inventory=None)

        place_order(user, [(mug, 2), (book, 3)])

        db.refresh(mug)
        db.refresh(book)
        assert mug.inventory == 3
        assert book.inventory is None

    def test_cart_emptied_but_kept(self, db, make_user, make_product, place_order, cart_service):
        user = make_user()
        place_order(user, [(make_product(), 1)])

        cart = cart_service.get_cart_by_user(user.id)
        assert cart is not None
        assert _count(db, CartItemModel) == 0
        assert cart_service.get_cart_for_user(user.id)["items"] == []

    def test_line_added_during_checkout_stays_in_cart(
        self, db, make_user, make_product, cart_service, order_service, monkeypatch
    ):
        user = make_user()
        mug = make_product(price="4.00")
        kettle = make_product(price="30.00")
        cart_service.add_item_to_cart(user.id, mug.id, 1)

        read_lines = order_service.carts.get_cart_lines

        def lines_then_concurrent_add(cart_id):
            lines = read_lines(cart_id)
            cart_service.add_item_to_cart(user.id, kettle.id, 2)
            return lines

        monkeypatch.setattr(order_service.carts, "get_cart_lines", lines_then_concurrent_add)

        order = order_service.create_order_from_cart(user.id, "1 Main St")

        assert [i["product_id"] for i in order["items"]] == [mug.id]
        assert order["total"] == Decimal("4.00")
        remaining = cart_service.get_cart_for_user(user.id)["items"]
        assert [(i["product_id"], i["quantity"]) for i in remaining] == [(kettle.id, 2)]

    def test_order_price_is_snapshot(self, db, make_user, make_product, place_order, order_service):
        user = make_user()
        product = make_product(price="10.00")
        order = place_order(user, [(product, 1)])

        product.price = Decimal("99.00")
        db.commit()

        reloaded = order_service.get_order_with_items(order["id"])
        assert reloaded["items"][0]["price"] == Decimal("10.00")
        assert reloaded["total"] == Decimal("10.00")

    def test_missing_cart(self, db, make_user, order_service):
        user = make_user()
        with pytest.raises(CartNotFoundError):
            order_service.create_order_from_cart(user.id, "1 Main St")
        assert _count(db, OrderModel) == 0

    def test_empty_cart(self, db, make_user, cart_service, order_service):
        user = make_user()
        cart_service.get_or_create_cart(user.id)

        with pytest.raises(EmptyCartError, match="Cart is empty"):
            order_service.create_order_from_cart(user.id, "1 Main St")
        assert _count(db, OrderModel) == 0

    def test_blank_shipping_address(self, make_user, make_product, cart_service, order_service):
        user = make_user()
        cart_service.add_item_to_cart(user.id, make_product().id, 1)

        with pytest.raises(ValidationError):
            order_service.create_order_from_cart(user.id, "   ")

    def test_out_of_stock_rolls_back_everything(self, db, make_user, make_product, cart_service, order_service):
        user = make_user()
        plenty = make_product(inventory=10)
        scarce = make_product(inventory=1)
        cart_service.add_item_to_cart(user.id, plenty.id, 2)
        cart_service.add_item_to_cart(user.id, scarce.id, 3)

        with pytest.raises(OutOfStockError):
            order_service.create_order_from_cart(user.id, "1 Main St")

        assert _count(db, OrderModel) == 0
        assert _count(db, OrderItemModel) == 0
        assert _count(db, CartItemModel) == 2
        db.refresh(plenty)
        db.refresh(scarce)
        assert plenty.inventory == 10
        assert scarce.inventory == 1

    def test_last_unit_sold_once(self, db, make_user, make_product, cart_service, order_service):
        product = make_product(inventory=1)
        first, second = make_user(), make_user()
        cart_service.add_item_to_cart(first.id, product.id, 1)
        cart_service.add_item_to_cart(second.id, product.id, 1)

        order_service.create_order_from_cart(first.id, "1 Main St")
        with pytest.raises(OutOfStockError):
            order_service.create_order_from_cart(second.id, "2 Main St")

        db.refresh(product)
        assert product.inventory == 0
        assert len(cart_service.get_cart_for_user(second.id)["items"]) == 1

    def test_clamp_policy_never_goes_negative(self, db, make_user, make_product, cart_service, publisher):
        service = OrderService(db, publisher, inventory_policy="clamp")
        user = make_user()
        product = make_product(inventory=1)
        cart_service.add_item_to_cart(user.id, product.id, 3)

        order = service.create_order_from_cart(user.id, "1 Main St")

        assert order["items"][0]["quantity"] == 3
        db.refresh(product)
        assert product.inventory == 0

    def test_unknown_policy_rejected(self, db, publisher):
        with pytest.raises(ValueError):
            OrderService(db, publisher, inventory_policy="oversell")

    def test_confirmation_notification_sent(self, db, make_user, make_product, place_order):
        user = make_user()
        order = place_order(user, [(make_product(), 1)])

        notification = db.query(NotificationModel).one()
        assert notification.recipient_id == user.id
        assert notification.subject == f"Order #{order['id']} Confirmation"
        assert notification.status == "sent"

    def test_notification_failure_does_not_fail_order(self, db, make_user, make_product, cart_service):
        broken = MagicMock()
        broken.publish.side_effect = RuntimeError("broker down")
        service = OrderService(db, broken)
        user = make_user()
        cart_service.add_item_to_cart(user.id, make_product().id, 1)

        order = service.create_order_from_cart(user.id, "1 Main St")

        assert order["status"] == "pending"
        assert _count(db, OrderModel) == 1
        broken.publish.assert_called_once()


class TestUpdateOrderStatus:
    def test_valid_transition(self, db, make_user, make_product, place_order, order_service):
        order = place_order(make_user(), [(make_product(), 1)])

        updated = order_service.update_order_status(order["id"], "processing")

        assert updated["status"] == "processing"
        messages = [n.subject for n in db.query(NotificationModel).all()]
        assert f"Order #{order['id']} Status Update: processing" in messages

    def test_unknown_order(self, order_service):
        assert order_service.update_order_status(999, "processing") is None

    def test_unknown_status(self, make_user, make_product, place_order, order_service):
        order = place_order(make_user(), [(make_product(), 1)])
        with pytest.raises(ValidationError):
            order_service.update_order_status(order["id"], "lost")

    def test_illegal_transition(self, make_user, make_product, place_order, order_service):
        order = place_order(make_user(), [(make_product(), 1)])
        with pytest.raises(InvalidStatusTransitionError):
            order_service.update_order_status(order["id"], "shipped")
        assert order_service.get_order(order["id"]).status == "pending"

    def test_cancelled_is_terminal(self, make_user, make_product, place_order, order_service):
        order = place_order(make_user(), [(make_product(), 1)])
        order_service.update_order_status(order["id"], "cancelled")
        with pytest.raises(InvalidStatusTransitionError):
            order_service.update_order_status(order["id"], "processing")

    def test_full_lifecycle(self, make_user, make_product, place_order, order_service):
        order = place_order(make_user(), [(make_product(), 1)])
        for status in ("processing", "shipped", "delivered", "completed"):
            assert order_service.update_order_status(order["id"], status)["status"] == status


class TestQueries:
    def test_list_orders_for_user(self, make_user, make_product, place_order, order_service):
        alice, bob = make_user(), make_user()
        place_order(alice, [(make_product(), 1)])
        place_order(bob, [(make_product(), 1)])

        assert [o["user_id"] for o in order_service.list_orders_for_user(alice.id)] == [alice.id]
        assert len(order_service.list_orders()) == 2

    def test_missing_order(self, order_service):
        assert order_service.get_order_with_items(123) is None

    def test_items_kept_when_product_removed(self, db, make_user, make_product, place_order, order_service):
        mug = make_product(price="12.50")
        lamp = make_product(price="40.00")
        order = place_order(make_user(), [(mug, 2), (lamp, 1)])

        db.execute(delete(ProductModel).where(ProductModel.id == lamp.id))
        db.commit()

        fetched = order_service.get_order_with_items(order["id"])

        by_product = {i["product_id"]: i for i in fetched["items"]}
        assert set(by_product) == {mug.id, lamp.id}
        assert by_product[lamp.id]["product"] is None
        assert by_product[mug.id]["product"]["id"] == mug.id
        assert sum(i["price"] * i["quantity"] for i in fetched["items"]) == fetched["total"]


class TestOrderRules:
    @pytest.mark.parametrize(
        "current,new,allowed",
        [
            ("pending", "processing", True),
            ("pending", "shipped", False),
            ("processing", "cancelled", True),
            ("delivered", "completed", True),
            ("completed", "cancelled", False),
            ("cancelled", "pending", False),
        ],
    )
    def test_transition_table(self, current, new, allowed):
        assert can_transition(current, new) is allowed

    def test_ensure_transition_returns_enum(self):
        assert ensure_transition("shipped", "delivered") is OrderStatus.DELIVERED

    def test_order_number(self):
        assert format_order_number(7) == "ORD-0007"
        assert format_order_number(12345) == "ORD-12345"
        assert parse_order_number("ORD-0007") == 7

    def test_bad_order_number(self):
        with pytest.raises(ValidationError):
            parse_order_number("ORDER-7")
