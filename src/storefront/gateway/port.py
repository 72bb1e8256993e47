"""Payment gateway port.

Adapters turn a charge or refund request into a result. A declined or
failed charge is reported through the result; a gateway that does not
answer in time raises ``GatewayTimeoutError``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


class GatewayTimeoutError(Exception):
    """The gateway did not answer in time; the outcome of the call is unknown."""


@dataclass(frozen=True)
class ChargeResult:
    success: bool
    transaction_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    success: bool
    refund_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def charge(
        self,
        amount: Decimal,
        currency: str,
        method: str,
        order_ref: str,
        idempotency_key: str,
    ) -> ChargeResult:
        """Charge ``amount`` for an order.

        Adapters must treat a repeated ``idempotency_key`` as the same charge.
        """
        ...

    @abstractmethod
    def refund(self, transaction_id: str, amount: Decimal) -> RefundResult:
        """Refund (part of) a previous charge."""
        ...
