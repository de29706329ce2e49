# microstore/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException

from microstore.api.deps import (
    ensure_owner_or_admin,
    get_current_user,
    get_order_service,
    get_payment_service,
    require_admin,
)
from microstore.domain.errors import CartNotFoundError, DependencyError, NotFoundError, ValidationError
from microstore.domain.schemas import (
    CheckoutSessionIn,
    CheckoutSessionOut,
    OrderCreate,
    OrderOut,
    OrderStatusIn,
    OrderWithItemsOut,
    PaymentIn,
    PaymentOut,
)
from microstore.services.order_service import OrderService
from microstore.services.payment_service import PaymentService
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/", response_model=list[OrderOut])
def list_orders(user=Depends(get_current_user), svc: OrderService = Depends(get_order_service)):
    if user.is_admin:
        return svc.list_orders()
    return svc.list_orders_for_user(user.id)


@router.get("/{order_id}", response_model=OrderWithItemsOut)
def get_order(
    order_id: int,
    user=Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    """
    Pobiera szczegóły zamówienia (pozycje + właściciel).
    """
    order = svc.get_order_with_items(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    ensure_owner_or_admin(user, order["user_id"])
    return order


@router.post("/", response_model=OrderWithItemsOut, status_code=201)
def create_order(
    payload: OrderCreate,
    user=Depends(get_current_user),
    svc: OrderService = Depends(get_order_service),
):
    """
    Tworzy zamówienie z koszyka zalogowanego użytkownika.
    Powiadomienie idzie po commicie.
    """
    try:
        return svc.create_order_from_cart(user.id, payload.shipping_address)
    except (CartNotFoundError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusIn,
    _admin=Depends(require_admin),
    svc: OrderService = Depends(get_order_service),
):
    try:
        order = svc.update_order_status(order_id, payload.status)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/{order_id}/payment", response_model=PaymentOut, status_code=201)
def pay_for_order(
    order_id: int,
    payload: PaymentIn,
    user=Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
    payments: PaymentService = Depends(get_payment_service),
):
    order = orders.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")

    try:
        return payments.process_payment(order_id, order.total, payload.payment_method, payload.mock_success)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{order_id}/checkout-session", response_model=CheckoutSessionOut, status_code=201)
def create_checkout_session(
    order_id: int,
    payload: CheckoutSessionIn,
    user=Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
    payments: PaymentService = Depends(get_payment_service),
):
    order = orders.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")

    try:
        session_id = payments.create_checkout_session(order_id, payload.success_url, payload.cancel_url)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DependencyError as e:
        logger.error(f"Checkout session for order {order_id} failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return {"session_id": session_id}
