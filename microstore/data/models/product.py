from sqlalchemy import Column, Integer, String, Text, Numeric, CheckConstraint

from microstore.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String, nullable=True)
    sku = Column(String, nullable=False, unique=True)

    # NULL = brak limitu / nieznany stan magazynu
    inventory = Column(Integer, nullable=True)
    category = Column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
        CheckConstraint("inventory IS NULL OR inventory >= 0", name="ck_product_inventory_non_negative"),
    )
