# microstore/api/deps.py
from fastapi import Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from microstore.data.database import get_db
from microstore.data.models.user import UserModel
from microstore.gateways import build_stripe_gateway
from microstore.integration.service_registry import ServiceRegistry
from microstore.repos.user_repo import UserRepo
from microstore.services.lock_service import LockService
from microstore.services.notification_service import get_publisher as build_publisher
from microstore.services.order_service import OrderService
from microstore.services.payment_service import PaymentService


def get_current_user(
    user_id: int = Query(..., description="ID zalogowanego uzytkownika"),
    db: Session = Depends(get_db),
) -> UserModel:
    user = UserRepo(db).get_user(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_admin(user: UserModel = Depends(get_current_user)) -> UserModel:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def get_lock_service() -> LockService:
    return LockService()


def get_publisher(db: Session = Depends(get_db)):
    return build_publisher(db)


def get_stripe_gateway():
    return build_stripe_gateway()


def get_order_service(db: Session = Depends(get_db), publisher=Depends(get_publisher)) -> OrderService:
    return OrderService(db, publisher)


def get_payment_service(
    db: Session = Depends(get_db),
    orders: OrderService = Depends(get_order_service),
    publisher=Depends(get_publisher),
    stripe_gateway=Depends(get_stripe_gateway),
) -> PaymentService:
    return PaymentService(db, orders, publisher, stripe_gateway=stripe_gateway)


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry


def ensure_owner_or_admin(user: UserModel, owner_id: int) -> None:
    if user.id != owner_id and not user.is_admin:
        raise HTTPException(status_code=403, detail="Access denied")
