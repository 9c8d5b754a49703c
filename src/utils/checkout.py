"""
Turns the cart and the shipping form into one ``orders`` row.

The order number is ``BRD-<base36 ms timestamp>-<4 random base36>``,
uppercase. It is not checked for uniqueness up front: the store's unique
constraint decides, and a clash is retried with a fresh number.
"""
from __future__ import annotations

import asyncio
import os
import random
import sqlite3
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence, Tuple

import db.crud as crud
from db.models import CartLine, Order, OrderItem, ShippingAddress
from utils.cart import CartStore
from utils.errors import EmptyCartError, OrderSubmitError, ShippingFormError
from utils.logger import get_logger
from utils.notifier import notifier
from utils.pure import format_money, is_valid_email, to_base36

_logger = get_logger(__name__)

ORDER_PREFIX = "BRD"
FREE_SHIPPING_THRESHOLD = 100.0
FLAT_SHIPPING_FEE = 10.0
ORDER_NUMBER_ATTEMPTS = 3
ORDER_SUBMIT_TIMEOUT = float(os.getenv("ORDER_SUBMIT_TIMEOUT", "15"))

_SUFFIX_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass(frozen=True)
class ShippingForm:
    name: str
    email: str
    phone: str
    address: str
    city: str
    postal_code: str
    notes: str = ""

    REQUIRED = ("name", "email", "phone", "address", "city", "postal_code")

    def missing_fields(self) -> Tuple[str, ...]:
        return tuple(f for f in self.REQUIRED if not (getattr(self, f) or "").strip())

    def invalid_fields(self) -> Tuple[str, ...]:
        """Filled-in fields whose value is malformed."""
        email = (self.email or "").strip()
        return ("email",) if email and not is_valid_email(email) else ()

    def to_address(self) -> ShippingAddress:
        return ShippingAddress(
            address=self.address.strip(),
            city=self.city.strip(),
            postal_code=self.postal_code.strip(),
            phone=self.phone.strip(),
            notes=self.notes.strip() or None,
        )


@dataclass(frozen=True)
class OrderConfirmation:
    order_number: str
    total: float


def generate_order_number(now_ms: Optional[int] = None, rng=random) -> str:
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    suffix = "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(4))
    return f"{ORDER_PREFIX}-{to_base36(now_ms)}-{suffix}".upper()


def shipping_for(subtotal: float) -> float:
    """Free shipping strictly above the threshold, flat fee otherwise."""
    return 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE


def subtotal_of(lines: Sequence[CartLine]) -> float:
    return sum(line.unit_price * line.quantity for line in lines)


def build_order(
    lines: Sequence[CartLine], form: ShippingForm, order_number: str
) -> Order:
    subtotal = subtotal_of(lines)
    return Order(
        order_number=order_number,
        customer_name=form.name.strip(),
        customer_email=form.email.strip(),
        items=tuple(
            OrderItem(
                product_id=line.product_id,
                name=line.name,
                unit_price=line.unit_price,
                size=line.size,
                color=line.color,
                quantity=line.quantity,
                image_url=line.image_url,
            )
            for line in lines
        ),
        shipping_address=form.to_address(),
        total_amount=subtotal + shipping_for(subtotal),
        status="pending",
    )


async def _stored_after_timeout(order_number: str) -> bool:
    """
    Whether an insert that timed out was committed anyway.

    The commit can still land after this check; that window is not closed.
    """
    try:
        return await crud.get_order(order_number) is not None
    except (sqlite3.Error, OSError) as e:
        _logger.warning(f"Could not re-check order {order_number}: {e!r}")
        return False


async def submit_order(
    cart: CartStore, form: ShippingForm, when: Optional[datetime] = None
) -> OrderConfirmation:
    """
    Place an order for what is in ``cart`` right now.

    Raises EmptyCartError or ShippingFormError before anything is written.
    Raises OrderSubmitError if the store rejects or never answers the
    insert; the cart is then left untouched so the shopper can retry. On
    success the cart is cleared.
    """
    lines = cart.snapshot()
    if not lines:
        raise EmptyCartError()
    missing = form.missing_fields()
    if missing:
        raise ShippingFormError(missing)
    invalid = form.invalid_fields()
    if invalid:
        raise ShippingFormError(invalid_fields=invalid)

    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        order = build_order(lines, form, generate_order_number())
        try:
            await asyncio.wait_for(crud.insert_order(order, when), ORDER_SUBMIT_TIMEOUT)
        except sqlite3.IntegrityError as e:
            if "order_number" in str(e) and attempt < ORDER_NUMBER_ATTEMPTS:
                _logger.warning(
                    f"Order number {order.order_number} already taken, regenerating"
                )
                continue
            notifier.error(
                "Order creation failed",
                f"Order: {order.order_number}, Error: {e}",
            )
            raise OrderSubmitError(order.order_number) from e
        except asyncio.TimeoutError as e:
            if not await _stored_after_timeout(order.order_number):
                notifier.error(
                    "Order creation failed",
                    f"Order: {order.order_number}, Error: timed out after "
                    f"{ORDER_SUBMIT_TIMEOUT}s",
                )
                raise OrderSubmitError(order.order_number) from e
            _logger.warning(f"Order {order.order_number} was stored after timing out")
        except (sqlite3.Error, OSError) as e:
            notifier.error(
                "Order creation failed",
                f"Order: {order.order_number}, Error: {e!r}",
            )
            raise OrderSubmitError(order.order_number) from e

        notifier.info(
            "New order created",
            f"Order: {order.order_number}, Total: {format_money(order.total_amount)}",
        )
        cart.clear()
        return OrderConfirmation(order.order_number, order.total_amount)

    # the loop either returns or raises
    raise OrderSubmitError()
