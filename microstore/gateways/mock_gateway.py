from decimal import Decimal
from uuid import uuid4

from microstore.domain.payments import PaymentStatus
from microstore.gateways.port import ChargeResult, PaymentGateway, RefundResult


class MockGateway(PaymentGateway):
    """
    Bramka bez zewnetrznych wywolan. Wynik zalezy od flagi mockSuccess,
    dzieki temu pipeline zamowien da sie przejsc deterministycznie.
    """

    name = "mock"

    def __init__(self) -> None:
        self.calls: list[dict] = []

    def create_charge(
        self,
        amount: Decimal,
        currency: str,
        payment_method: str,
        metadata: dict[str, str],
        simulate_success: bool = True,
    ) -> ChargeResult:
        self.calls.append(
            {
                "method": "create_charge",
                "amount": amount,
                "currency": currency,
                "payment_method": payment_method,
                "metadata": metadata,
            }
        )

        if simulate_success:
            return ChargeResult(
                status=PaymentStatus.COMPLETED,
                transaction_id=f"mock_txn_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return ChargeResult(
            status=PaymentStatus.FAILED,
            gateway_status="failed",
            failure_reason="Card declined",
        )

    def create_refund(self, transaction_id: str, amount: Decimal | None = None) -> RefundResult:
        self.calls.append({"method": "create_refund", "transaction_id": transaction_id, "amount": amount})
        return RefundResult(success=True, refund_id=f"mock_ref_{uuid4().hex[:12]}")
