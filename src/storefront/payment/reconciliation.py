"""Reconciliation sweep for orders stuck in ``pending``.

An order stays pending only while its charge is in flight. Anything older
than the threshold was abandoned (the client never paid, or the process died
mid-charge): its reservations are released and it is marked payment_failed.
"""

from datetime import UTC, datetime, timedelta

from protean.utils.globals import current_domain

from storefront.domain import custom_setting, logger
from storefront.inventory.ledger import InventoryLedger, tokens_for
from storefront.order.order import Order, OrderStatus
from storefront.order.payment import RecordOrderPaymentFailed
from storefront.order.queries import find_orders
from storefront.payment.coordinator import payments_for
from storefront.payment.payment import PaymentStatus
from storefront.payment.settlement import RecordPaymentFailed
from storefront.shared.locks import order_locks

STALE_REASON = "Payment not completed in time"


def _as_utc(moment):
    # Some providers hand back naive datetimes
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


def reconcile_stale_orders(older_than_seconds=None, ledger=None) -> list[str]:
    """Fail every pending order created more than ``older_than_seconds`` ago.

    Returns the ids of the orders that were reconciled. An order whose stock
    cannot be released stays pending for the next sweep; the remaining orders
    are still processed and the first such error is raised at the end.
    """
    if older_than_seconds is None:
        older_than_seconds = custom_setting("stale_order_seconds", 900)
    ledger = ledger or InventoryLedger()
    cutoff = datetime.now(UTC) - timedelta(seconds=older_than_seconds)

    reconciled = []
    failures = []
    for candidate in find_orders(status=OrderStatus.PENDING.value):
        if candidate.created_at is None or _as_utc(candidate.created_at) > cutoff:
            continue

        order_id = str(candidate.id)
        try:
            if _fail_stale_order(order_id, ledger):
                reconciled.append(order_id)
        except Exception as exc:
            logger.exception("Could not reconcile stale order", order_id=order_id)
            failures.append(exc)

    logger.info(
        "Reconciliation finished",
        reconciled=len(reconciled),
        failed=len(failures),
        older_than_seconds=older_than_seconds,
    )
    if failures:
        raise failures[0]
    return reconciled


def _fail_stale_order(order_id, ledger) -> bool:
    with order_locks.hold(order_id):
        order = current_domain.repository_for(Order).get(order_id)
        if OrderStatus(order.status) != OrderStatus.PENDING:
            return False

        for payment in payments_for(order_id):
            if payment.status == PaymentStatus.PENDING.value:
                current_domain.process(
                    RecordPaymentFailed(payment_id=str(payment.id), reason=STALE_REASON),
                    asynchronous=False,
                )

        ledger.release_held(tokens_for(order), reason="stale_order")
        current_domain.process(
            RecordOrderPaymentFailed(order_id=order_id, reason=STALE_REASON),
            asynchronous=False,
        )

    logger.info("Reconciled stale order", order_id=order_id, created_at=str(order.created_at))
    return True
