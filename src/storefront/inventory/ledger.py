"""Inventory ledger: the single entry point for stock changes.

Every stock decision runs under the per-product lock, and each change is
persisted as its own command so the Product row's version is checked at the
storage boundary. A version conflict (another process wrote the row first)
is retried against freshly loaded state a bounded number of times.
"""

from dataclasses import dataclass
from uuid import uuid4

from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from storefront.domain import custom_setting, logger
from storefront.inventory.catalogue import ReceiveStock
from storefront.inventory.product import Product
from storefront.inventory.reservation import (
    CommitReservation,
    ReleaseReservation,
    ReserveStock,
    RestoreStock,
)
from storefront.shared.errors import ValidationError
from storefront.shared.locks import product_locks


@dataclass(frozen=True)
class ReservationToken:
    """Handle on an active reservation, returned by ``reserve_stock``."""

    product_id: str
    reservation_id: str
    order_id: str
    quantity: int


class InventoryLedger:
    def __init__(self, retry_limit=None):
        if retry_limit is None:
            retry_limit = custom_setting("reservation_retry_limit", 3)
        self.retry_limit = retry_limit

    def _process(self, product_id, command):
        """Process a stock command under the product's lock, retrying on version conflicts."""
        attempt = 1
        with product_locks.hold(product_id):
            while True:
                try:
                    return current_domain.process(command, asynchronous=False)
                except ExpectedVersionError:
                    if attempt >= self.retry_limit:
                        logger.warning(
                            "Stock update abandoned after version conflicts",
                            product_id=str(product_id),
                            attempts=attempt,
                        )
                        raise
                    logger.info("Retrying stock update", product_id=str(product_id), attempt=attempt)
                    attempt += 1

    @staticmethod
    def _require_positive(quantity):
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

    # -------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------
    def reserve_stock(self, product_id, quantity, order_id) -> ReservationToken:
        """Decrement stock by ``quantity`` for an order.

        Raises ``InsufficientStockError`` when the product cannot cover the
        quantity. Two callers racing for the last unit are serialized, so
        exactly one of them succeeds.
        """
        self._require_positive(quantity)
        reservation_id = str(uuid4())

        self._process(
            product_id,
            ReserveStock(
                product_id=product_id,
                reservation_id=reservation_id,
                order_id=order_id,
                quantity=quantity,
            ),
        )
        logger.info(
            "Reserved stock",
            product_id=str(product_id),
            order_id=str(order_id),
            reservation_id=reservation_id,
            quantity=quantity,
        )
        return ReservationToken(
            product_id=str(product_id),
            reservation_id=reservation_id,
            order_id=str(order_id),
            quantity=quantity,
        )

    def commit_reservation(self, token: ReservationToken) -> None:
        self._process(
            token.product_id,
            CommitReservation(product_id=token.product_id, reservation_id=token.reservation_id),
        )
        logger.info("Committed reservation", product_id=token.product_id, reservation_id=token.reservation_id)

    def release(self, token: ReservationToken, reason: str) -> None:
        self._process(
            token.product_id,
            ReleaseReservation(
                product_id=token.product_id,
                reservation_id=token.reservation_id,
                reason=reason,
            ),
        )
        logger.info(
            "Released reservation",
            product_id=token.product_id,
            reservation_id=token.reservation_id,
            quantity=token.quantity,
            reason=reason,
        )

    def release_all(self, tokens, reason: str) -> None:
        """Release every token, continuing past failures so no hold is leaked.

        Only for compensation after another error that the caller re-raises.
        Terminal transitions use ``release_held`` so a failure is surfaced.
        """
        for token in tokens:
            try:
                self.release(token, reason)
            except Exception:
                logger.exception(
                    "Failed to release reservation",
                    product_id=token.product_id,
                    reservation_id=token.reservation_id,
                )

    def release_held(self, tokens, reason: str) -> None:
        """Release the tokens whose reservation is still on the product.

        Errors propagate. Tokens released by an earlier, interrupted call are
        skipped, so the caller can simply retry.
        """
        for token in tokens:
            if not self.is_held(token):
                logger.info(
                    "Reservation already released",
                    product_id=token.product_id,
                    reservation_id=token.reservation_id,
                )
                continue
            self.release(token, reason)

    @staticmethod
    def is_held(token: ReservationToken) -> bool:
        product = current_domain.repository_for(Product).get(token.product_id)
        return any(str(r.id) == token.reservation_id for r in product.reservations or [])

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def restore(self, product_id, quantity, order_id, reason: str) -> None:
        """Put back units of a canceled or refunded order."""
        self._require_positive(quantity)
        self._process(
            product_id,
            RestoreStock(product_id=product_id, order_id=order_id, quantity=quantity, reason=reason),
        )
        logger.info(
            "Restored stock",
            product_id=str(product_id),
            order_id=str(order_id),
            quantity=quantity,
            reason=reason,
        )

    def receive_stock(self, product_id, quantity, principal) -> None:
        self._process(
            product_id,
            ReceiveStock(
                actor_id=principal.id,
                actor_role=principal.role.value,
                product_id=product_id,
                quantity=quantity,
            ),
        )
        logger.info("Received stock", product_id=str(product_id), quantity=quantity)

    @staticmethod
    def available(product_id) -> int:
        return current_domain.repository_for(Product).get(product_id).stock


def tokens_for(order) -> list[ReservationToken]:
    """Reservation tokens of an order's lines, skipping lines with no reservation."""
    return [
        ReservationToken(
            product_id=str(line.product_id),
            reservation_id=str(line.reservation_id),
            order_id=str(order.id),
            quantity=line.quantity,
        )
        for line in order.lines or []
        if line.reservation_id
    ]
