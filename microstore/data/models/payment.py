from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric

from microstore.data.database import Base


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    #unique = co najwyzej jedna platnosc na zamowienie (insert-if-absent)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)

    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String, nullable=False, default="pending")
    payment_method = Column(String, nullable=False)
    transaction_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
