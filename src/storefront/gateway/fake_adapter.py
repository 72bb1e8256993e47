"""Configurable fake payment gateway for development and testing.

No external calls are made. The gateway can be told to approve, decline or
time out, and it records every call for assertions. Like a real gateway it
returns the original result when a charge repeats an idempotency key.
"""

from decimal import Decimal
from uuid import uuid4

from storefront.gateway.port import ChargeResult, GatewayTimeoutError, PaymentGateway, RefundResult


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.should_time_out: bool = False
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self._charges: dict[str, ChargeResult] = {}

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Card declined",
        should_time_out: bool = False,
    ) -> None:
        """Configure gateway behaviour at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.should_time_out = should_time_out

    def charges(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "charge"]

    def refunds(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "refund"]

    def charge(
        self,
        amount: Decimal,
        currency: str,
        method: str,
        order_ref: str,
        idempotency_key: str,
    ) -> ChargeResult:
        self.calls.append(
            {
                "method": "charge",
                "amount": amount,
                "currency": currency,
                "payment_method": method,
                "order_ref": order_ref,
                "idempotency_key": idempotency_key,
            }
        )

        if self.should_time_out:
            raise GatewayTimeoutError(f"Gateway timed out charging order {order_ref}")

        previous = self._charges.get(idempotency_key)
        if previous is not None and previous.success:
            return previous

        if self.should_succeed:
            result = ChargeResult(
                success=True,
                transaction_id=f"fake_txn_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        else:
            result = ChargeResult(
                success=False,
                gateway_status="declined",
                failure_reason=self.failure_reason,
            )
        self._charges[idempotency_key] = result
        return result

    def refund(self, transaction_id: str, amount: Decimal) -> RefundResult:
        self.calls.append(
            {
                "method": "refund",
                "transaction_id": transaction_id,
                "amount": amount,
            }
        )

        if self.should_time_out:
            raise GatewayTimeoutError(f"Gateway timed out refunding {transaction_id}")

        if self.should_succeed:
            return RefundResult(
                success=True,
                refund_id=f"fake_ref_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return RefundResult(
            success=False,
            gateway_status="failed",
            failure_reason=self.failure_reason,
        )
