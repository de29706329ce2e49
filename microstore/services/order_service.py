# microstore/services/order_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from microstore.data.models.order import OrderModel
from microstore.data.models.order_item import OrderItemModel
from microstore.domain.errors import (
    CartNotFoundError,
    EmptyCartError,
    OutOfStockError,
    ValidationError,
)
from microstore.domain.orders import OrderStatus, ensure_transition, format_order_number
from microstore.repos.cart_repo import CartRepo
from microstore.repos.order_repo import OrderRepo
from microstore.repos.product_repo import ProductRepo
from microstore.repos.user_repo import UserRepo
from microstore.services.notification_service import (
    ORDER_CONFIRMATION,
    ORDER_STATUS_UPDATE,
    publish_safely,
)
from microstore.services.product_service import product_to_dict
from microstore.utils import settings
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

INVENTORY_POLICIES = ("reject", "clamp")


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": format_order_number(order.id),
        "user_id": order.user_id,
        "status": order.status,
        "total": order.total,
        "shipping_address": order.shipping_address,
        "created_at": order.created_at,
    }


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Koszyk -> zamówienie w jednej transakcji, statusy według tabeli przejść.
    """

    def __init__(self, db: Session, publisher, inventory_policy: str | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)
        self.publisher = publisher
        self.inventory_policy = (inventory_policy or settings.INVENTORY_POLICY).lower()
        if self.inventory_policy not in INVENTORY_POLICIES:
            raise ValueError(f"Unknown inventory policy: {self.inventory_policy}")

    def create_order_from_cart(self, user_id: int, shipping_address: str) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamówienia z koszyka.

        1. Liczy subtotal z aktualnych cen produktów
        2. Tworzy zamówienie (pending) + pozycje ze snapshotem ceny
        3. Zmniejsza stany magazynowe (warunkowy UPDATE)
        4. Czyści koszyk (sam koszyk zostaje)
        Wszystko w jednej transakcji, potem powiadomienie.
        """
        if not shipping_address or not shipping_address.strip():
            raise ValidationError("Shipping address is required")

        cart = self.carts.get_cart_by_user(user_id)
        if not cart:
            raise CartNotFoundError(user_id)

        lines = self.carts.get_cart_lines(cart.id)
        if not lines:
            raise EmptyCartError()

        subtotal = sum((product.price * item.quantity for item, product in lines), Decimal("0.00"))

        try:
            order = self.repo.add_order(
                OrderModel(
                    user_id=user_id,
                    status=OrderStatus.PENDING.value,
                    total=subtotal,
                    shipping_address=shipping_address.strip(),
                )
            )

            for item, product in lines:
                self.repo.add_order_item(
                    OrderItemModel(
                        order_id=order.id,
                        product_id=product.id,
                        quantity=item.quantity,
                        price=product.price,
                    )
                )
                self._decrement_inventory(product, item.quantity)

            #tylko pozycje, ktore weszly do zamowienia - dodane w miedzyczasie zostaja w koszyku
            self.carts.delete_cart_items(cart.id, [item.id for item, _ in lines])
            self.repo.commit()
        except Exception:
            # nic nie zostaje w polowie: zamowienie, pozycje, stany i koszyk wracaja
            self.repo.rollback()
            raise

        logger.info(f"Order {order.id} created from cart {cart.id} for user {user_id}, total {subtotal}")

        publish_safely(
            self.publisher,
            ORDER_CONFIRMATION,
            user_id,
            order.id,
            {
                "order_details": {
                    "order_number": format_order_number(order.id),
                    "total": str(subtotal),
                    "total_items": sum(item.quantity for item, _ in lines),
                    "shipping_address": order.shipping_address,
                }
            },
        )

        return self.get_order_with_items(order.id)

    def _decrement_inventory(self, product, quantity: int) -> None:
        if product.inventory is None:
            # bez limitu
            return

        if self.inventory_policy == "clamp":
            self.products.decrement_inventory_clamped(product.id, quantity)
            return

        if self.products.decrement_inventory(product.id, quantity) == 0:
            logger.warning(f"Product {product.id} out of stock (requested {quantity})")
            raise OutOfStockError(product.id, quantity)

    def apply_status(self, order: OrderModel, new_status) -> OrderModel:
        """Zmiana statusu bez commita - dla operacji, ktore commituja same (platnosci)."""
        status = ensure_transition(order.status, new_status)
        return self.repo.update_order_status(order, status.value)

    def notify_status_change(self, order: OrderModel, publisher=None) -> None:
        """publisher - gdy zmiana przyszla z innego serwisu (platnosci), idzie jego kanalem."""
        publish_safely(
            publisher or self.publisher,
            ORDER_STATUS_UPDATE,
            order.user_id,
            order.id,
            {"status": order.status},
        )

    def update_order_status(self, order_id: int, new_status) -> Dict[str, Any] | None:
        order = self.repo.get_order(order_id)
        if not order:
            return None

        previous = order.status
        try:
            self.apply_status(order, new_status)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order_id} status changed {previous} -> {order.status}")
        self.notify_status_change(order)
        return order_to_dict(order)

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.repo.get_order(order_id)

    def list_orders(self) -> list[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_orders()]

    def list_orders_for_user(self, user_id: int) -> list[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_orders(user_id=user_id)]

    def get_order_with_items(self, order_id: int) -> Dict[str, Any] | None:
        """
        Use Case: Zamówienie + pozycje (z produktami) + właściciel (Query).
        """
        order = self.repo.get_order(order_id)
        if not order:
            return None

        user = self.users.get_user(order.user_id)
        if not user:
            return None

        items = self.repo.get_order_items(order_id)
        products = self.products.get_products(i.product_id for i in items)

        result = order_to_dict(order)
        result["items"] = [
            {
                "id": i.id,
                "order_id": i.order_id,
                "product_id": i.product_id,
                "quantity": i.quantity,
                "price": i.price,
                "product": product_to_dict(products[i.product_id]) if i.product_id in products else None,
            }
            for i in items
        ]
        result["user"] = {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "is_admin": user.is_admin,
        }
        return result
