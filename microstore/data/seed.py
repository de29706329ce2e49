# microstore/data/seed.py
from decimal import Decimal

from microstore.data.database import SessionLocal
from microstore.data.models import ProductModel, ServiceStatusModel, UserModel
from microstore.services.user_service import hash_password
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {
        "name": "Wireless Headphones",
        "description": "Bluetooth over-ear headphones with noise cancellation",
        "price": Decimal("129.99"),
        "sku": "WH-001",
        "inventory": 50,
        "category": "Electronics",
    },
    {
        "name": "Coffee Mug",
        "description": "Ceramic mug, 350 ml",
        "price": Decimal("12.50"),
        "sku": "CM-002",
        "inventory": 200,
        "category": "Kitchen",
    },
    {
        "name": "E-book: Python Patterns",
        "description": "Digital download",
        "price": Decimal("19.00"),
        "sku": "EB-003",
        "inventory": None,
        "category": "Books",
    },
]

SERVICE_STATUSES = [
    ("API Gateway", "healthy", "Service is operating normally"),
    ("User Service", "healthy", "Service is operating normally"),
    ("Product Service", "healthy", "Service is operating normally"),
    ("Cart Service", "healthy", "Service is operating normally"),
    ("Order Service", "healthy", "Service is operating normally"),
    ("Payment Service", "healthy", "Service is operating normally"),
    ("Notification Service", "healthy", "Service is operating normally"),
]


def seed():
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(UserModel).first():
            return

        db.add(
            UserModel(
                username="admin",
                password=hash_password("admin123"),
                email="admin@microstore.com",
                first_name="Admin",
                last_name="User",
                is_admin=True,
            )
        )
        db.add_all(ProductModel(**p) for p in PRODUCTS)
        db.add_all(ServiceStatusModel(name=n, status=s, details=d) for n, s, d in SERVICE_STATUSES)
        db.commit()
        logger.info("Database seeded with demo data")
    finally:
        db.close()
