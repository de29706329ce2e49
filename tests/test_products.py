from decimal import Decimal

import pytest

from microstore.domain.errors import ValidationError
from microstore.domain.schemas import ProductCreate, ProductFilter, ProductUpdate
from microstore.services.product_service import ProductService


@pytest.fixture()
def service(db):
    return ProductService(db)


@pytest.fixture()
def catalog(make_product):
    return [
        make_product(price="5.00", name="Blue Mug", category="Kitchen", inventory=0),
        make_product(price="15.00", name="Red Kettle", category="Kitchen", description="electric"),
        make_product(price="25.00", name="Atlas", category="Books", inventory=None),
    ]


class TestListProducts:
    def test_no_filter(self, service, catalog):
        assert len(service.list_products()) == 3

    def test_search_is_case_insensitive(self, service, catalog):
        names = [p.name for p in service.list_products(ProductFilter(search="ELECTRIC"))]
        assert names == ["Red Kettle"]

    def test_category_and_price_range(self, service, catalog):
        result = service.list_products(
            ProductFilter(category="kitchen", min_price=Decimal("10"), max_price=Decimal("20"))
        )
        assert [p.name for p in result] == ["Red Kettle"]

    def test_in_stock_counts_unlimited(self, service, catalog):
        names = {p.name for p in service.list_products(ProductFilter(in_stock=True))}
        assert names == {"Red Kettle", "Atlas"}

    def test_sort_by_price_desc(self, service, catalog):
        result = service.list_products(ProductFilter(sort_by="price", sort_order="desc"))
        assert [p.price for p in result] == [Decimal("25.00"), Decimal("15.00"), Decimal("5.00")]

    def test_sort_by_name(self, service, catalog):
        result = service.list_products(ProductFilter(sort_by="name"))
        assert [p.name for p in result] == ["Atlas", "Blue Mug", "Red Kettle"]


class TestProductCrud:
    def test_create_accepts_camel_case(self, service):
        payload = ProductCreate.model_validate(
            {"name": "Lamp", "price": "30.00", "sku": "LMP-1", "imageUrl": "http://img/lamp.png"}
        )
        product = service.create_product(payload)
        assert product.id is not None
        assert product.image_url == "http://img/lamp.png"

    def test_duplicate_sku(self, service):
        service.create_product(ProductCreate(name="A", price=Decimal("1"), sku="DUP"))
        with pytest.raises(ValidationError):
            service.create_product(ProductCreate(name="B", price=Decimal("2"), sku="DUP"))

    def test_partial_update(self, service, make_product):
        product = make_product(price="9.99", name="Old")
        updated = service.update_product(product.id, ProductUpdate(name="New"))
        assert updated.name == "New"
        assert updated.price == Decimal("9.99")

    def test_update_missing(self, service):
        assert service.update_product(404, ProductUpdate(name="x")) is None

    def test_delete(self, service, make_product):
        product = make_product()
        assert service.delete_product(product.id) is True
        assert service.get_product(product.id) is None
        assert service.delete_product(product.id) is False


class TestSeed:
    def test_seeds_once(self, db, session_factory, monkeypatch):
        from microstore.data import seed as seed_module
        from microstore.data.models import ProductModel, ServiceStatusModel, UserModel

        monkeypatch.setattr(seed_module, "SessionLocal", session_factory)

        seed_module.seed()
        seed_module.seed()

        assert db.query(UserModel).count() == 1
        assert db.query(ProductModel).count() == 3
        assert db.query(ServiceStatusModel).count() == 7
        ebook = db.query(ProductModel).filter_by(sku="EB-003").one()
        assert ebook.inventory is None
