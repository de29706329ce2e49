# microstore/repos/payment_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from microstore.data.models.payment import PaymentModel


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_payment(self, payment_id: int) -> PaymentModel | None:
        return self.db.get(PaymentModel, payment_id)

    def get_payment_by_order(self, order_id: int) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel).where(PaymentModel.order_id == order_id)
        ).scalar_one_or_none()

    def create_payment(self, payment: PaymentModel) -> PaymentModel:
        """
        Insert-if-absent: unique(order_id) w bazie.
        IntegrityError leci dalej, serwis zamienia go na DuplicatePaymentError.
        """
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)
        return payment

    def update_payment(self, payment: PaymentModel, **fields) -> PaymentModel:
        for key, value in fields.items():
            setattr(payment, key, value)
        self.db.flush()
        return payment

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
