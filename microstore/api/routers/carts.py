# microstore/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from microstore.api.deps import get_current_user, get_lock_service
from microstore.data.database import get_db
from microstore.domain.errors import AccessError, ConcurrencyError, NotFoundError, ValidationError
from microstore.domain.schemas import CartItemIn, CartItemQuantityIn, CartOut
from microstore.services.cart_service import CartService
from microstore.services.lock_service import LockService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session, lock_service: LockService):
    return CartService(db=db, lock_service=lock_service)


@router.get("/", response_model=CartOut)
def get_cart(
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    return svc.get_cart_for_user(user.id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    try:
        return svc.add_item_to_cart(user.id, payload.product_id, payload.quantity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConcurrencyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: CartItemQuantityIn,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    try:
        cart = svc.update_cart_item_quantity(user.id, item_id, payload.quantity)
    except AccessError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ConcurrencyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not cart:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return cart


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    try:
        removed = svc.remove_cart_item(user.id, item_id)
    except AccessError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ConcurrencyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not removed:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return svc.get_cart_for_user(user.id)


@router.delete("/", response_model=CartOut)
def clear_cart(
    user=Depends(get_current_user),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    cart = svc.get_or_create_cart(user.id)
    svc.clear_cart(cart.id)
    return svc.get_cart_with_items(cart.id)
