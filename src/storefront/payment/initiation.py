"""Payment initiation: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.payment.payment import Payment


@storefront.command(part_of="Payment")
class InitiatePayment:
    order_id = Identifier(required=True)
    amount = String(required=True, max_length=32)
    currency = String(max_length=3, default="USD")
    method = String(required=True, max_length=50)


@storefront.command_handler(part_of=Payment)
class InitiatePaymentHandler:
    @handle(InitiatePayment)
    def initiate_payment(self, command):
        payment = Payment.initiate(
            order_id=command.order_id,
            amount=command.amount,
            currency=command.currency or "USD",
            method=command.method,
        )
        current_domain.repository_for(Payment).add(payment)
        return str(payment.id)
