"""Payment refund: command and handler.

The gateway refund happens before this command is issued; the handler only
records it.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.payment.payment import Payment


@storefront.command(part_of="Payment")
class RecordPaymentRefunded:
    payment_id = Identifier(required=True)
    refund_id = String(required=True, max_length=255)


@storefront.command_handler(part_of=Payment)
class RefundHandler:
    @handle(RecordPaymentRefunded)
    def record_payment_refunded(self, command):
        repo = current_domain.repository_for(Payment)
        payment = repo.get(command.payment_id)
        payment.refund(refund_id=command.refund_id)
        repo.add(payment)
