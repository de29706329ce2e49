# microstore/repos/cart_repo.py
from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from microstore.data.models.cart import CartModel
from microstore.data.models.cart_item import CartItemModel
from microstore.data.models.product import ProductModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def get_cart_item_by_id(self, item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, item_id)

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars()
        )

    def get_cart_lines(self, cart_id: int) -> list[tuple[CartItemModel, ProductModel]]:
        """Pozycje koszyka razem z produktami (pozycje bez produktu sa pomijane)."""
        rows = self.db.execute(
            select(CartItemModel, ProductModel)
            .join(ProductModel, ProductModel.id == CartItemModel.product_id)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.id)
        ).all()
        return [(item, product) for item, product in rows]

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def delete_cart_items(self, cart_id: int, item_ids: list[int] | None = None) -> int:
        """Bez item_ids czysci caly koszyk, z item_ids tylko wskazane pozycje."""
        stmt = delete(CartItemModel).where(CartItemModel.cart_id == cart_id)
        if item_ids is not None:
            stmt = stmt.where(CartItemModel.id.in_(item_ids))
        result = self.db.execute(stmt.execution_options(synchronize_session="evaluate"))
        return result.rowcount

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        #UPDATE carts SET version = old+1 WHERE id = :id AND version = :old
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
