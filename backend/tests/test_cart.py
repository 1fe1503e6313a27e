"""Cart rules and the checkout session state machine."""

import pytest

from pharmapos.services.cart import (
    CHECKOUT_OPEN,
    COMPLETED,
    FAILED,
    IDLE,
    ITEMS_IN_CART,
    SUBMITTING,
    Cart,
    CartError,
    CartRegistry,
    CheckoutSession,
    CheckoutStateError,
    StockLimitError,
)

from factories import product


class TestCart:

    def test_add_merges_and_totals(self):
        cart = Cart()
        p = product(1, unit_price=250, stock=5)
        cart.add(p)
        cart.add(p, 2)
        cart.add(product(2, unit_price=100, stock=1))

        assert [line.quantity for line in cart.lines] == [3, 1]
        assert cart.total_cents == 850
        assert cart.item_count == 4

    def test_stock_cap(self):
        cart = Cart()
        p = product(1, stock=3)
        for _ in range(3):
            cart.add(p)

        with pytest.raises(StockLimitError) as exc:
            cart.add(p)

        assert cart.get(1).quantity == 3
        assert exc.value.details == {"productId": 1, "available": 3, "requested": 4}

    def test_out_of_stock_cannot_be_added(self):
        with pytest.raises(StockLimitError):
            Cart().add(product(1, stock=0))

    def test_set_quantity(self):
        cart = Cart()
        cart.add(product(1, stock=5))
        cart.set_quantity(1, 5)
        assert cart.get(1).quantity == 5

        with pytest.raises(CartError):
            cart.set_quantity(1, 0)
        with pytest.raises(StockLimitError):
            cart.set_quantity(1, 6)
        assert cart.get(1).quantity == 5

    def test_set_quantity_uses_fresh_stock(self):
        cart = Cart()
        cart.add(product(1, stock=5))
        with pytest.raises(StockLimitError):
            cart.set_quantity(1, 3, product(1, stock=2))

    def test_remove_unknown_line(self):
        with pytest.raises(CartError):
            Cart().remove(99)

    def test_requires_prescription(self):
        cart = Cart()
        cart.add(product(1))
        assert not cart.requires_prescription
        cart.add(product(2, requires_prescription=True))
        assert cart.requires_prescription


class TestCheckoutSession:

    def test_happy_path(self):
        session = CheckoutSession()
        assert session.state == IDLE

        session.add_item(product(1))
        assert session.state == ITEMS_IN_CART

        session.open_checkout()
        assert session.state == CHECKOUT_OPEN

        session.begin_submit()
        assert session.state == SUBMITTING

        session.complete("ref-1")
        assert session.state == COMPLETED
        assert session.cart.is_empty
        assert session.last_checkout_ref == "ref-1"

    def test_cannot_open_empty_checkout(self):
        with pytest.raises(CheckoutStateError):
            CheckoutSession().open_checkout()

    def test_cancel_returns_to_cart(self):
        session = CheckoutSession()
        session.add_item(product(1))
        session.open_checkout()
        session.cancel_checkout()
        assert session.state == ITEMS_IN_CART

    def test_no_cart_edits_while_checkout_open(self):
        session = CheckoutSession()
        session.add_item(product(1))
        session.open_checkout()
        with pytest.raises(CheckoutStateError):
            session.add_item(product(2))
        with pytest.raises(CheckoutStateError):
            session.remove_item(1)

    def test_failure_keeps_cart_and_allows_retry(self):
        session = CheckoutSession()
        session.add_item(product(1), 2)
        session.open_checkout()
        session.begin_submit()
        session.fail("Insufficient stock")

        assert session.state == FAILED
        assert session.last_error == "Insufficient stock"
        assert session.cart.item_count == 2

        session.open_checkout()
        assert session.state == CHECKOUT_OPEN

    def test_removing_last_item_goes_idle(self):
        session = CheckoutSession()
        session.add_item(product(1))
        session.remove_item(1)
        assert session.state == IDLE

    def test_add_after_completion_starts_fresh_cart(self):
        session = CheckoutSession()
        session.add_item(product(1))
        session.open_checkout()
        session.begin_submit()
        session.complete("ref")
        session.add_item(product(2))
        assert [line.product.id for line in session.cart.lines] == [2]
        assert session.state == ITEMS_IN_CART

    def test_complete_requires_submitting(self):
        session = CheckoutSession()
        session.add_item(product(1))
        with pytest.raises(CheckoutStateError):
            session.complete("ref")


def test_registry_is_per_user():
    registry = CartRegistry()
    assert registry.for_user(1) is registry.for_user(1)
    assert registry.for_user(1) is not registry.for_user(2)
    registry.discard(1)
    assert len(registry) == 1
