from decimal import Decimal
from typing import Dict, Any
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from microstore.data.models.cart import CartModel
from microstore.data.models.cart_item import CartItemModel
from microstore.domain.errors import AccessError, ConcurrencyError, ProductNotFoundError, ValidationError
from microstore.repos.cart_repo import CartRepo
from microstore.repos.product_repo import ProductRepo
from microstore.services.lock_service import LockService
from microstore.services.product_service import product_to_dict
from microstore.utils.settings import CART_LOCK_TTL_SECONDS
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

class CartService:
    """
    Prosta implementacja cqrs i proste use case dla domeny cart
    commands (add, update, remove, clear) modyfikuja stan
    query (get) tylko odczyt
    jeden koszyk na uzytkownika, po zlozeniu zamowienia zostaje pusty
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
    ):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.lock_service = lock_service

    #query - odczyt
    def get_cart_with_items(self, cart_id: int) -> Dict[str, Any] | None:
        cart = self.repo.get_cart(cart_id)

        if not cart:
            return None

        #pozycje razem z produktami, subtotal liczony z aktualnych cen
        lines = self.repo.get_cart_lines(cart_id)
        subtotal = sum((p.price * i.quantity for i, p in lines), Decimal("0.00"))
        total_items = sum(i.quantity for i, _ in lines)

        return {
            "id": cart.id,
            "user_id": cart.user_id,
            "created_at": cart.created_at,
            "items": [
                {
                    "id": i.id,
                    "cart_id": i.cart_id,
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "product": product_to_dict(p),
                }
                for i, p in lines
            ],
            "subtotal": subtotal,
            "total_items": total_items,
        }

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.repo.get_cart_by_user(user_id)

    def get_cart_for_user(self, user_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        return self.get_cart_with_items(cart.id)

    #commands
    def get_or_create_cart(self, user_id: int) -> CartModel:
        existing = self.repo.get_cart_by_user(user_id)
        if existing:
            return existing

        try:
            created = self.repo.create_cart(CartModel(user_id=user_id, version=1))
        except IntegrityError:
            #inny request wlasnie utworzyl koszyk (unique user_id)
            self.repo.rollback()
            return self.repo.get_cart_by_user(user_id)

        logger.info(f"Utworzono nowy koszyk {created.id} dla uzytkownika {user_id}")
        return created

    def add_item_to_cart(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        # Walidacje
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        product = self.products.get_product(product_id)
        if not product:
            raise ProductNotFoundError(product_id)

        cart = self.get_or_create_cart(user_id)

        # Redis lock na pozycje (cart, product) zeby dwa requesty nie zgubily inkrementacji
        owner = uuid4().hex
        locked = self.lock_service.acquire_cart_line_lock(
            cart_id=cart.id,
            product_id=product_id,
            owner=owner,
            ttl=CART_LOCK_TTL_SECONDS,
        )

        if not locked:
            raise ConcurrencyError("Cart line is being modified by another request")

        try:
            existing_item = self.repo.get_cart_item(cart.id, product_id)

            if existing_item:
                logger.info(
                    f"Produkt {product_id} juz jest w koszyku, zwiekszam ilosc "
                    f"z {existing_item.quantity} do {existing_item.quantity + quantity}"
                )
                existing_item.quantity += quantity
                self.repo.add_cart_item(existing_item)
            else:
                logger.info(f"Dodaje nowy produkt {product_id} do koszyka {cart.id}")
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        product_id=product_id,
                        quantity=quantity,
                    )
                )

            self._bump_version(cart)
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            raise ConcurrencyError("Cart line was created concurrently, retry the request")
        finally:
            self.lock_service.release_cart_line_lock(cart.id, product_id, owner)

        return self.get_cart_with_items(cart.id)

    def update_cart_item_quantity(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any] | None:
        if quantity < 0:
            raise ValidationError("Invalid quantity")

        item = self._owned_item(user_id, item_id)
        if not item:
            return None

        cart = self.repo.get_cart(item.cart_id)
        if quantity == 0:
            self.repo.delete_cart_item(item)
        else:
            item.quantity = quantity
            self.repo.add_cart_item(item)

        self._bump_version(cart)
        self.repo.commit()

        return self.get_cart_with_items(cart.id)

    def remove_cart_item(self, user_id: int, item_id: int) -> bool:
        item = self._owned_item(user_id, item_id)
        if not item:
            return False

        cart = self.repo.get_cart(item.cart_id)
        logger.info(f"Usuwanie pozycji {item_id} z koszyka {cart.id}")

        self.repo.delete_cart_item(item)
        self._bump_version(cart)
        self.repo.commit()
        return True

    def clear_cart(self, cart_id: int) -> bool:
        removed = self.repo.delete_cart_items(cart_id)
        self.repo.commit()
        logger.info(f"Koszyk {cart_id} wyczyszczony ({removed} pozycji)")
        return True

    def _owned_item(self, user_id: int, item_id: int) -> CartItemModel | None:
        item = self.repo.get_cart_item_by_id(item_id)
        if not item:
            return None

        cart = self.repo.get_cart(item.cart_id)
        if cart.user_id != user_id:
            raise AccessError("Access denied to cart item")
        return item

    def _bump_version(self, cart: CartModel) -> None:
        # Optimistic locking warunek na wersje
        # np w bazie update set version 2 where id 1 and version 1
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={"version": cart.version + 1},
        )

        if rowcount == 0: #jesli tj 0 rows affected
            self.repo.rollback()
            raise ConcurrencyError(
                "Cart was modified by another operation"
            )
        set_committed_value(cart, "version", cart.version + 1)
