# microstore/services/product_service.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from microstore.data.models.product import ProductModel
from microstore.domain.errors import ValidationError
from microstore.domain.schemas import ProductCreate, ProductUpdate, ProductFilter
from microstore.repos.product_repo import ProductRepo
from microstore.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    """Katalog produktow: walidacja + filtrowanie/sortowanie nad repo."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def list_products(self, filters: ProductFilter | None = None) -> list[ProductModel]:
        products = self.repo.list_products()
        if filters is None:
            return products

        if filters.search:
            term = filters.search.lower()
            products = [
                p for p in products
                if term in p.name.lower()
                or (p.description and term in p.description.lower())
                or (p.category and term in p.category.lower())
            ]

        if filters.category:
            category = filters.category.lower()
            products = [p for p in products if p.category and p.category.lower() == category]

        if filters.min_price is not None:
            products = [p for p in products if p.price >= filters.min_price]

        if filters.max_price is not None:
            products = [p for p in products if p.price <= filters.max_price]

        if filters.in_stock:
            # inventory NULL = bez limitu, wiec tez na stanie
            products = [p for p in products if p.inventory is None or p.inventory > 0]

        if filters.sort_by:
            keys = {
                "price": lambda p: p.price,
                "name": lambda p: p.name.lower(),
                "category": lambda p: (p.category or "").lower(),
            }
            products = sorted(products, key=keys[filters.sort_by], reverse=filters.sort_order == "desc")

        return products

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.repo.get_product(product_id)

    def create_product(self, payload: ProductCreate) -> ProductModel:
        try:
            created = self.repo.create_product(ProductModel(**payload.model_dump()))
        except IntegrityError:
            self.repo.rollback()
            raise ValidationError(f"Product with sku {payload.sku} already exists")

        logger.info(f"Product {created.id} ({created.sku}) created")
        return created

    def update_product(self, product_id: int, payload: ProductUpdate) -> ProductModel | None:
        product = self.repo.get_product(product_id)
        if not product:
            return None

        data = payload.model_dump(exclude_unset=True)
        try:
            return self.repo.update_product(product, data)
        except IntegrityError:
            self.repo.rollback()
            raise ValidationError(f"Product with sku {data.get('sku')} already exists")

    def delete_product(self, product_id: int) -> bool:
        product = self.repo.get_product(product_id)
        if not product:
            return False
        try:
            self.repo.delete_product(product)
        except IntegrityError:
            self.repo.rollback()
            raise ValidationError(f"Product {product_id} is referenced by carts or orders")
        logger.info(f"Product {product_id} deleted")
        return True


def product_to_dict(product: ProductModel) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "image_url": product.image_url,
        "sku": product.sku,
        "inventory": product.inventory,
        "category": product.category,
    }
