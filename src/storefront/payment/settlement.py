"""Payment settlement: commands and handler recording the gateway outcome."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.payment.payment import Payment


@storefront.command(part_of="Payment")
class RecordPaymentCompleted:
    payment_id = Identifier(required=True)
    transaction_id = String(required=True, max_length=255)


@storefront.command(part_of="Payment")
class RecordPaymentFailed:
    payment_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@storefront.command_handler(part_of=Payment)
class SettlementHandler:
    @handle(RecordPaymentCompleted)
    def record_payment_completed(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.complete(transaction_id=command.transaction_id)
        repo.add(payment)

    @handle(RecordPaymentFailed)
    def record_payment_failed(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.fail(reason=command.reason)
        repo.add(payment)
