# microstore/api/routers/payments.py
from fastapi import APIRouter, Depends, HTTPException

from microstore.api.deps import ensure_owner_or_admin, get_current_user, get_payment_service, require_admin
from microstore.domain.errors import DependencyError, NotFoundError, ValidationError
from microstore.domain.schemas import PaymentConfigOut, PaymentOut, RefundIn
from microstore.services.payment_service import PaymentService
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/config", response_model=PaymentConfigOut)
def get_payment_config(svc: PaymentService = Depends(get_payment_service)):
    return {"publishable_key": svc.get_publishable_key()}


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(
    payment_id: int,
    user=Depends(get_current_user),
    svc: PaymentService = Depends(get_payment_service),
):
    payment = svc.get_payment(payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")

    order = svc.orders.get_order(payment.order_id)
    ensure_owner_or_admin(user, order.user_id if order else None)
    return payment


@router.post("/{payment_id}/refund", response_model=PaymentOut)
def refund_payment(
    payment_id: int,
    payload: RefundIn,
    _admin=Depends(require_admin),
    svc: PaymentService = Depends(get_payment_service),
):
    try:
        return svc.process_refund(payment_id, payload.amount)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DependencyError as e:
        logger.error(f"Refund for payment {payment_id} failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
