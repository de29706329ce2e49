# microstore/repos/product_repo.py
from sqlalchemy import select, update, case
from sqlalchemy.orm import Session

from microstore.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products(self, product_ids) -> dict[int, ProductModel]:
        ids = list(product_ids)
        if not ids:
            return {}
        rows = self.db.execute(select(ProductModel).where(ProductModel.id.in_(ids))).scalars()
        return {p.id: p for p in rows}

    def list_products(self) -> list[ProductModel]:
        return list(self.db.execute(select(ProductModel).order_by(ProductModel.id)).scalars())

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update_product(self, product: ProductModel, data: dict) -> ProductModel:
        for key, value in data.items():
            setattr(product, key, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.commit()

    def decrement_inventory(self, product_id: int, quantity: int) -> int:
        """
        Warunkowy UPDATE: zmniejsza stan tylko gdy wystarcza towaru.
        Zwraca rowcount (0 = brak towaru). Produkty z inventory NULL nie sa dotykane.
        Bez commita - commit robi serwis zamowien.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.inventory.is_not(None),
                ProductModel.inventory >= quantity,
            )
            .values(inventory=ProductModel.inventory - quantity)
            .execution_options(synchronize_session=False)
        )
        self._expire_inventory(product_id)
        return result.rowcount

    def decrement_inventory_clamped(self, product_id: int, quantity: int) -> int:
        #stary tryb: nigdy ponizej zera, bez odrzucania zamowienia
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.inventory.is_not(None),
            )
            .values(
                inventory=case(
                    (ProductModel.inventory >= quantity, ProductModel.inventory - quantity),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
        self._expire_inventory(product_id)
        return result.rowcount

    def _expire_inventory(self, product_id: int) -> None:
        #UPDATE poszedl z pominieciem sesji, obiekt w identity map ma stary stan
        cached = self.db.identity_map.get(self.db.identity_key(ProductModel, product_id))
        if cached is not None:
            self.db.expire(cached, ["inventory"])

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
