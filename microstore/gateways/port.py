"""Port bramki platnosci.

Kontrakt wspolny dla MockGateway (demo/testy) i StripeGateway, zeby
PaymentService nie wiedzial z ktora bramka rozmawia.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from microstore.domain.payments import PaymentStatus


@dataclass(frozen=True)
class ChargeResult:
    """Wynik obciazenia przemapowany na nasz PaymentStatus."""

    status: PaymentStatus
    transaction_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    success: bool
    refund_id: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    name: str = "abstract"

    @abstractmethod
    def create_charge(
        self,
        amount: Decimal,
        currency: str,
        payment_method: str,
        metadata: dict[str, str],
        simulate_success: bool = True,
    ) -> ChargeResult:
        """Obciazenie. simulate_success rozstrzyga wynik mocka i niepotwierdzone intenty Stripe."""
        ...

    @abstractmethod
    def create_refund(self, transaction_id: str, amount: Decimal | None = None) -> RefundResult:
        ...
