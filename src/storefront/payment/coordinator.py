"""Payment coordinator: charges an order and drives it to its next state.

Charges are serialized per order. A repeated charge for an order that was
already paid returns the original settlement: the gateway is not called
again, no second Payment is recorded and stock is left alone.

Flow on success:
    Payment completed → reservations committed → order processing →
    cart cleared → customer notified
Flow on failure (decline, timeout, gateway error):
    Payment failed → reservations released → order payment_failed →
    customer notified → PaymentError raised
"""

from dataclasses import dataclass
from decimal import Decimal

from protean.utils.globals import current_domain

from storefront.cart.lines import ClearCart
from storefront.domain import logger
from storefront.gateway import get_gateway
from storefront.gateway.port import ChargeResult, GatewayTimeoutError
from storefront.inventory.ledger import InventoryLedger, tokens_for
from storefront.notification.dispatch import Template, notify_customer
from storefront.order.access import authorize_owner_or_admin
from storefront.order.order import Order, OrderStatus
from storefront.order.payment import RecordOrderPaid, RecordOrderPaymentFailed
from storefront.payment.initiation import InitiatePayment
from storefront.payment.payment import Payment, PaymentStatus
from storefront.payment.refund import RecordPaymentRefunded
from storefront.payment.settlement import RecordPaymentCompleted, RecordPaymentFailed
from storefront.shared.errors import InvalidStateError, PaymentError
from storefront.shared.locks import order_locks
from storefront.shared.principal import Principal


@dataclass(frozen=True)
class Settlement:
    """Outcome of a successful charge."""

    payment_id: str
    order_id: str
    amount: Decimal
    currency: str
    transaction_id: str
    status: str

    @classmethod
    def from_payment(cls, payment):
        return cls(
            payment_id=str(payment.id),
            order_id=str(payment.order_id),
            amount=payment.amount.value,
            currency=payment.amount.currency,
            transaction_id=payment.transaction_id,
            status=payment.status,
        )


def payments_for(order_id) -> list:
    repo = current_domain.repository_for(Payment)
    return repo._dao.query.filter(order_id=str(order_id)).all().items


def completed_payment_for(order_id):
    return next(
        (p for p in payments_for(order_id) if p.status == PaymentStatus.COMPLETED.value),
        None,
    )


class PaymentCoordinator:
    def __init__(self, ledger: InventoryLedger | None = None):
        self.ledger = ledger or InventoryLedger()

    # -------------------------------------------------------------------
    # Charge
    # -------------------------------------------------------------------
    def charge(self, order_id, payment_method: str, principal: Principal) -> Settlement:
        with order_locks.hold(order_id):
            order = current_domain.repository_for(Order).get(order_id)
            authorize_owner_or_admin(order, principal, "pay for")

            existing = completed_payment_for(order_id)
            if existing is not None:
                logger.info("Order already paid, returning existing settlement", order_id=str(order_id))
                return Settlement.from_payment(existing)

            if OrderStatus(order.status) != OrderStatus.PENDING:
                raise InvalidStateError({"status": [f"Cannot charge an order in {order.status} state"]})

            return self._charge_pending(order, payment_method)

    def _charge_pending(self, order, payment_method) -> Settlement:
        order_id = str(order.id)
        payment_id = current_domain.process(
            InitiatePayment(
                order_id=order_id,
                amount=order.total.amount,
                currency=order.total.currency,
                method=payment_method,
            ),
            asynchronous=False,
        )
        payment = current_domain.repository_for(Payment).get(payment_id)

        try:
            result = get_gateway().charge(
                amount=order.total.value,
                currency=order.total.currency,
                method=payment_method,
                order_ref=order_id,
                idempotency_key=payment.idempotency_key,
            )
        except GatewayTimeoutError:
            logger.warning("Gateway timed out", order_id=order_id, payment_id=payment_id)
            result = ChargeResult(success=False, gateway_status="timeout", failure_reason="Payment gateway timed out")
        except Exception as exc:
            logger.exception("Gateway error", order_id=order_id, payment_id=payment_id)
            result = ChargeResult(success=False, gateway_status="error", failure_reason=f"Payment gateway error: {exc}")

        if not result.success:
            self._record_failure(order, payment_id, result.failure_reason or "Payment declined")

        return self._record_success(order, payment_id, payment_method, result.transaction_id)

    def _record_success(self, order, payment_id, payment_method, transaction_id) -> Settlement:
        order_id = str(order.id)
        current_domain.process(
            RecordPaymentCompleted(payment_id=payment_id, transaction_id=transaction_id),
            asynchronous=False,
        )
        for token in tokens_for(order):
            self.ledger.commit_reservation(token)
        current_domain.process(
            RecordOrderPaid(order_id=order_id, payment_id=payment_id, payment_method=payment_method),
            asynchronous=False,
        )
        current_domain.process(ClearCart(owner_id=order.owner_id, reason="checked_out"), asynchronous=False)

        logger.info("Payment completed", order_id=order_id, payment_id=payment_id, amount=order.total.amount)

        paid_order = current_domain.repository_for(Order).get(order_id)
        notify_customer(paid_order, Template.ORDER_CONFIRMED, payment_id=payment_id)

        payment = current_domain.repository_for(Payment).get(payment_id)
        return Settlement.from_payment(payment)

    def _record_failure(self, order, payment_id, reason):
        """Record the failure, release stock, then raise PaymentError.

        A failed release propagates and leaves the order pending, so the
        charge can be retried or the stale-order sweep can finish the job.
        """
        order_id = str(order.id)
        current_domain.process(RecordPaymentFailed(payment_id=payment_id, reason=reason), asynchronous=False)
        self.ledger.release_held(tokens_for(order), reason="payment_failed")
        current_domain.process(
            RecordOrderPaymentFailed(order_id=order_id, payment_id=payment_id, reason=reason),
            asynchronous=False,
        )

        logger.warning("Payment failed", order_id=order_id, payment_id=payment_id, reason=reason)

        failed_order = current_domain.repository_for(Order).get(order_id)
        notify_customer(failed_order, Template.PAYMENT_FAILED, reason=reason)

        raise PaymentError(reason, order_id=order_id, retryable=True)

    # -------------------------------------------------------------------
    # Refund
    # -------------------------------------------------------------------
    def refund(self, order) -> str:
        """Refund the order's completed payment through the gateway.

        Nothing is recorded when the gateway refuses or times out; the
        caller gets a PaymentError and may retry.
        """
        order_id = str(order.id)
        payment = completed_payment_for(order_id)
        if payment is None:
            raise InvalidStateError({"payment": [f"Order {order_id} has no completed payment to refund"]})

        try:
            result = get_gateway().refund(transaction_id=payment.transaction_id, amount=payment.amount.value)
        except GatewayTimeoutError:
            logger.warning("Gateway timed out during refund", order_id=order_id, payment_id=str(payment.id))
            raise PaymentError("Payment gateway timed out during refund", order_id=order_id) from None

        if not result.success:
            logger.warning("Refund declined", order_id=order_id, reason=result.failure_reason)
            raise PaymentError(result.failure_reason or "Refund declined", order_id=order_id)

        current_domain.process(
            RecordPaymentRefunded(payment_id=str(payment.id), refund_id=result.refund_id),
            asynchronous=False,
        )
        logger.info("Payment refunded", order_id=order_id, payment_id=str(payment.id), refund_id=result.refund_id)
        return result.refund_id
