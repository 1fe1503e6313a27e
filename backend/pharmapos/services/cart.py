# Overview: In-memory POS cart and checkout session state machine.

"""
Cart rules
- A line's quantity never exceeds the product's stock as last seen.
- Quantities below 1 are rejected; remove the line instead.
- Out-of-stock products cannot be added.

Checkout session states

    idle -> items_in_cart -> checkout_open -> submitting -> completed
                                                       \\-> failed

A failed submission keeps the cart so the cashier can retry or edit it.
Adding an item after completion starts a fresh cart.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from pharmapos.records import ProductRecord


class CartError(Exception):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class StockLimitError(CartError):
    """Requested quantity exceeds available stock."""


class CheckoutStateError(CartError):
    """Operation not allowed in the session's current state."""


@dataclass
class CartLine:
    product: ProductRecord
    quantity: int

    @property
    def line_total_cents(self) -> int:
        return self.product.unit_price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "productId": self.product.id,
            "productName": self.product.name,
            "unitPriceCents": self.product.unit_price_cents,
            "quantity": self.quantity,
            "stock": self.product.stock,
            "requiresPrescription": self.product.requires_prescription,
            "lineTotalCents": self.line_total_cents,
        }


def _stock_limit(product: ProductRecord, requested: int) -> StockLimitError:
    return StockLimitError(
        f"Only {product.stock} units of {product.name} in stock",
        details={"productId": product.id, "available": product.stock, "requested": requested},
    )


class Cart:
    def __init__(self) -> None:
        self._lines: dict[int, CartLine] = {}

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def get(self, product_id: int) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def add(self, product: ProductRecord, quantity: int = 1) -> CartLine:
        """Add quantity of product, merging with an existing line."""
        if quantity < 1:
            raise CartError("Quantity must be at least 1", details={"quantity": quantity})
        if product.stock <= 0:
            raise StockLimitError(
                f"{product.name} is out of stock",
                details={"productId": product.id, "available": 0, "requested": quantity},
            )

        line = self._lines.get(product.id)
        current = line.quantity if line else 0
        if current + quantity > product.stock:
            raise _stock_limit(product, current + quantity)

        if line:
            line.product = product
            line.quantity = current + quantity
        else:
            line = CartLine(product=product, quantity=quantity)
            self._lines[product.id] = line
        return line

    def set_quantity(self, product_id: int, quantity: int, product: ProductRecord | None = None) -> CartLine:
        line = self._lines.get(product_id)
        if line is None:
            raise CartError("Product is not in the cart", details={"productId": product_id})
        if quantity < 1:
            raise CartError("Quantity must be at least 1", details={"quantity": quantity})

        current_product = product or line.product
        if quantity > current_product.stock:
            raise _stock_limit(current_product, quantity)

        line.product = current_product
        line.quantity = quantity
        return line

    def remove(self, product_id: int) -> None:
        if self._lines.pop(product_id, None) is None:
            raise CartError("Product is not in the cart", details={"productId": product_id})

    def clear(self) -> None:
        self._lines.clear()

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def total_cents(self) -> int:
        return sum(line.line_total_cents for line in self._lines.values())

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    @property
    def requires_prescription(self) -> bool:
        return any(line.product.requires_prescription for line in self._lines.values())

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self._lines.values()],
            "totalCents": self.total_cents,
            "itemCount": self.item_count,
            "requiresPrescription": self.requires_prescription,
        }


IDLE = "idle"
ITEMS_IN_CART = "items_in_cart"
CHECKOUT_OPEN = "checkout_open"
SUBMITTING = "submitting"
COMPLETED = "completed"
FAILED = "failed"


class CheckoutSession:
    """One cashier's cart plus where they are in the checkout flow."""

    def __init__(self) -> None:
        self.cart = Cart()
        self.state = IDLE
        self.last_error: Optional[str] = None
        self.last_checkout_ref: Optional[str] = None

    def _require(self, *states: str) -> None:
        if self.state not in states:
            raise CheckoutStateError(
                f"Not allowed while checkout is {self.state}",
                details={"state": self.state, "allowed": list(states)},
            )

    def _settle_cart_state(self) -> None:
        self.state = IDLE if self.cart.is_empty else ITEMS_IN_CART

    # Cart edits

    def add_item(self, product: ProductRecord, quantity: int = 1) -> CartLine:
        self._require(IDLE, ITEMS_IN_CART, COMPLETED, FAILED)
        if self.state == COMPLETED:
            self.cart.clear()
        line = self.cart.add(product, quantity)
        self.last_error = None
        self.state = ITEMS_IN_CART
        return line

    def set_quantity(self, product_id: int, quantity: int, product: ProductRecord | None = None) -> CartLine:
        self._require(ITEMS_IN_CART, FAILED)
        line = self.cart.set_quantity(product_id, quantity, product)
        self.state = ITEMS_IN_CART
        return line

    def remove_item(self, product_id: int) -> None:
        self._require(ITEMS_IN_CART, FAILED)
        self.cart.remove(product_id)
        self._settle_cart_state()

    def clear(self) -> None:
        self._require(IDLE, ITEMS_IN_CART, COMPLETED, FAILED)
        self.cart.clear()
        self.last_error = None
        self.state = IDLE

    # Checkout flow

    def open_checkout(self) -> None:
        self._require(ITEMS_IN_CART, FAILED)
        if self.cart.is_empty:
            raise CheckoutStateError("Cart is empty", details={"state": self.state})
        self.state = CHECKOUT_OPEN

    def cancel_checkout(self) -> None:
        self._require(CHECKOUT_OPEN)
        self._settle_cart_state()

    def begin_submit(self) -> None:
        self._require(CHECKOUT_OPEN)
        self.state = SUBMITTING

    def complete(self, checkout_ref: str) -> None:
        self._require(SUBMITTING)
        self.cart.clear()
        self.last_error = None
        self.last_checkout_ref = checkout_ref
        self.state = COMPLETED

    def fail(self, message: str) -> None:
        self._require(SUBMITTING)
        self.last_error = message
        self.state = FAILED

    def to_dict(self) -> dict:
        data = self.cart.to_dict()
        data.update({
            "state": self.state,
            "lastError": self.last_error,
            "lastCheckoutRef": self.last_checkout_ref,
        })
        return data


class CartRegistry:
    """Per-user checkout sessions for this process."""

    EXTENSION_KEY = "pharmapos.carts"

    def __init__(self) -> None:
        self._sessions: dict[int, CheckoutSession] = {}
        self._lock = threading.Lock()

    def for_user(self, user_id: int) -> CheckoutSession:
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = CheckoutSession()
                self._sessions[user_id] = session
            return session

    def discard(self, user_id: int) -> None:
        with self._lock:
            self._sessions.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
