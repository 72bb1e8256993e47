"""Application tests for the inventory ledger."""

import pytest
from protean import current_domain
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError

from storefront.domain import storefront
from storefront.inventory.ledger import InventoryLedger, ReservationToken
from storefront.inventory.product import Product, ProductStatus
from storefront.inventory.reservation import RestoreStock
from storefront.shared.errors import ForbiddenError, InsufficientStockError


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock


class TestReserve:
    def test_reserve_persists_decrement(self, make_product):
        product_id = make_product(stock=5)
        token = InventoryLedger().reserve_stock(product_id, 2, "ord-001")

        assert isinstance(token, ReservationToken)
        assert token.quantity == 2
        assert _stock(product_id) == 3

    def test_insufficient_stock_leaves_stock_alone(self, make_product):
        product_id = make_product(stock=1)
        with pytest.raises(InsufficientStockError):
            InventoryLedger().reserve_stock(product_id, 2, "ord-001")
        assert _stock(product_id) == 1

    def test_unknown_product(self):
        with pytest.raises(ObjectNotFoundError):
            InventoryLedger().reserve_stock("missing", 1, "ord-001")

    def test_non_positive_quantity(self, make_product):
        product_id = make_product()
        with pytest.raises(ValidationError):
            InventoryLedger().reserve_stock(product_id, 0, "ord-001")

    def test_reserving_last_unit_marks_out_of_stock(self, make_product):
        product_id = make_product(stock=1)
        InventoryLedger().reserve_stock(product_id, 1, "ord-001")

        product = current_domain.repository_for(Product).get(product_id)
        assert product.status == ProductStatus.OUT_OF_STOCK.value


class TestCommitReleaseRestore:
    def test_commit_keeps_decrement(self, make_product):
        ledger = InventoryLedger()
        product_id = make_product(stock=5)
        token = ledger.reserve_stock(product_id, 2, "ord-001")
        ledger.commit_reservation(token)

        product = current_domain.repository_for(Product).get(product_id)
        assert product.stock == 3
        assert not product.reservations

    def test_release_returns_quantity(self, make_product):
        ledger = InventoryLedger()
        product_id = make_product(stock=5)
        token = ledger.reserve_stock(product_id, 2, "ord-001")
        ledger.release(token, reason="payment_failed")

        assert _stock(product_id) == 5

    def test_release_all_continues_past_failures(self, make_product):
        ledger = InventoryLedger()
        product_id = make_product(stock=5)
        token = ledger.reserve_stock(product_id, 2, "ord-001")
        bogus = ReservationToken(product_id=product_id, reservation_id="missing", order_id="ord-001", quantity=9)

        ledger.release_all([bogus, token], reason="order_creation_failed")

        assert _stock(product_id) == 5

    def test_restore(self, make_product):
        product_id = make_product(stock=0)
        InventoryLedger().restore(product_id, 4, "ord-001", reason="order_canceled")

        product = current_domain.repository_for(Product).get(product_id)
        assert product.stock == 4
        assert product.status == ProductStatus.ACTIVE.value


class TestReceiveStock:
    def test_vendor_receives_own_stock(self, make_product, vendor):
        product_id = make_product(stock=1)
        InventoryLedger().receive_stock(product_id, 9, vendor)
        assert _stock(product_id) == 10

    def test_other_vendor_forbidden(self, make_product, other_vendor):
        product_id = make_product(stock=1)
        with pytest.raises(ForbiddenError):
            InventoryLedger().receive_stock(product_id, 9, other_vendor)
        assert _stock(product_id) == 1


class TestReleaseHeld:
    def test_releases_outstanding_tokens(self, make_product):
        ledger = InventoryLedger()
        product_id = make_product(stock=5)
        tokens = [ledger.reserve_stock(product_id, 2, "ord-001"), ledger.reserve_stock(product_id, 1, "ord-001")]

        ledger.release_held(tokens, reason="order_canceled")

        assert _stock(product_id) == 5
        assert not any(ledger.is_held(token) for token in tokens)

    def test_skips_tokens_already_released(self, make_product):
        ledger = InventoryLedger()
        product_id = make_product(stock=5)
        first = ledger.reserve_stock(product_id, 2, "ord-001")
        second = ledger.reserve_stock(product_id, 1, "ord-001")
        ledger.release(first, reason="order_canceled")

        ledger.release_held([first, second], reason="order_canceled")

        assert _stock(product_id) == 5

    def test_failure_propagates(self, make_product, monkeypatch):
        ledger = InventoryLedger()
        product_id = make_product(stock=5)
        token = ledger.reserve_stock(product_id, 2, "ord-001")

        def broken_release(self, token, reason):
            raise RuntimeError("storage unavailable")

        monkeypatch.setattr(InventoryLedger, "release", broken_release)

        with pytest.raises(RuntimeError):
            ledger.release_held([token], reason="order_canceled")
        assert ledger.is_held(token)
        assert _stock(product_id) == 3


class ConcurrentWriter:
    """Stands in for the domain while another worker keeps winning the write.

    Each conflicting attempt lets the other worker restore one unit to the
    product first, then fails the way a stale save does.
    """

    def __init__(self, product_id, conflicts):
        self.product_id = product_id
        self.conflicts = conflicts
        self.attempts = 0

    def process(self, command, asynchronous=False):
        self.attempts += 1
        if self.conflicts:
            self.conflicts -= 1
            storefront.process(
                RestoreStock(product_id=self.product_id, order_id="ord-other", quantity=1, reason="other_worker"),
                asynchronous=False,
            )
            raise ExpectedVersionError(f"Product {self.product_id} was modified concurrently")
        return storefront.process(command, asynchronous=asynchronous)


class TestVersionConflicts:
    def test_retry_limit_comes_from_config(self):
        assert InventoryLedger().retry_limit == 3

    def test_explicit_retry_limit_is_kept(self):
        assert InventoryLedger(retry_limit=0).retry_limit == 0
        assert InventoryLedger(retry_limit=1).retry_limit == 1

    def test_conflict_is_retried_against_fresh_state(self, make_product, monkeypatch):
        product_id = make_product(stock=5)
        writer = ConcurrentWriter(product_id, conflicts=1)
        monkeypatch.setattr("storefront.inventory.ledger.current_domain", writer)

        InventoryLedger(retry_limit=3).reserve_stock(product_id, 2, "ord-001")

        assert writer.attempts == 2
        assert _stock(product_id) == 4

    def test_gives_up_after_retry_limit(self, make_product, monkeypatch):
        product_id = make_product(stock=5)
        writer = ConcurrentWriter(product_id, conflicts=3)
        monkeypatch.setattr("storefront.inventory.ledger.current_domain", writer)

        with pytest.raises(ExpectedVersionError):
            InventoryLedger(retry_limit=3).reserve_stock(product_id, 2, "ord-001")

        assert writer.attempts == 3
        product = current_domain.repository_for(Product).get(product_id)
        assert product.stock == 8
        assert not product.reservations

    def test_zero_retry_limit_still_makes_one_attempt(self, make_product, monkeypatch):
        product_id = make_product(stock=5)
        writer = ConcurrentWriter(product_id, conflicts=1)
        monkeypatch.setattr("storefront.inventory.ledger.current_domain", writer)

        with pytest.raises(ExpectedVersionError):
            InventoryLedger(retry_limit=0).reserve_stock(product_id, 2, "ord-001")
        assert writer.attempts == 1
