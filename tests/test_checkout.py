import asyncio
import random
import re
import sqlite3
from unittest.mock import patch

import utils.checkout as checkout
from db import crud
from store_case import StoreTestCase
from utils.cart import CartStore
from utils.checkout import (
    ShippingForm,
    generate_order_number,
    shipping_for,
    submit_order,
)
from utils.errors import EmptyCartError, OrderSubmitError, ShippingFormError
from utils.pure import to_base36

ORDER_NUMBER_PATTERN = re.compile(r"^BRD-[0-9A-Z]+-[0-9A-Z]{4}$")


def _form(**overrides) -> ShippingForm:
    values = dict(
        name="Lerato Mokoena",
        email="lerato@example.com",
        phone="0821234567",
        address="1 Long Street",
        city="Cape Town",
        postal_code="8001",
        notes="",
    )
    values.update(overrides)
    return ShippingForm(**values)


def _cart(*prices: float) -> CartStore:
    cart = CartStore()
    for idx, price in enumerate(prices, start=1):
        cart.add_item(idx, f"Product {idx}", price, None, "M", "Black")
    return cart


class PricingTestCase(StoreTestCase):
    def test_shipping_boundary(self):
        self.assertEqual(shipping_for(0.0), 10.0)
        self.assertEqual(shipping_for(100.00), 10.0)
        self.assertEqual(shipping_for(100.01), 0.0)

    def test_order_number_format(self):
        number = generate_order_number(now_ms=1_700_000_000_000, rng=random.Random(7))
        self.assertRegex(number, ORDER_NUMBER_PATTERN)
        self.assertEqual(number.split("-")[1], to_base36(1_700_000_000_000).upper())
        for _ in range(20):
            self.assertRegex(generate_order_number(), ORDER_NUMBER_PATTERN)

    def test_missing_fields(self):
        self.assertEqual(_form().missing_fields(), ())
        self.assertEqual(
            _form(name="  ", city="", notes="").missing_fields(), ("name", "city")
        )

    def test_invalid_fields(self):
        self.assertEqual(_form().invalid_fields(), ())
        self.assertEqual(_form(email="abc").invalid_fields(), ("email",))
        # blank is reported as missing, not malformed
        self.assertEqual(_form(email=" ").invalid_fields(), ())


class SubmitOrderTestCase(StoreTestCase):
    async def test_success_clears_cart(self):
        cart = _cart(35.0, 40.0)
        confirmation = await submit_order(cart, _form(notes=" Ring twice "))

        self.assertRegex(confirmation.order_number, ORDER_NUMBER_PATTERN)
        self.assertAlmostEqual(confirmation.total, 85.0)
        self.assertTrue(cart.is_empty())

        order = await crud.get_order(confirmation.order_number)
        self.assertEqual(order.status, "pending")
        self.assertEqual(order.customer_name, "Lerato Mokoena")
        self.assertEqual([i.product_id for i in order.items], [1, 2])
        self.assertEqual(order.shipping_address.notes, "Ring twice")
        self.assertAlmostEqual(order.total_amount, 85.0)

    async def test_total_at_threshold_pays_shipping(self):
        confirmation = await submit_order(_cart(100.00), _form())
        self.assertAlmostEqual(confirmation.total, 110.00)

        confirmation = await submit_order(_cart(100.01), _form())
        self.assertAlmostEqual(confirmation.total, 100.01)

    async def test_total_fixed_after_status_change(self):
        confirmation = await submit_order(_cart(60.0, 50.0), _form())
        await crud.update_order_status(confirmation.order_number, "paid")
        await crud.update_order_status(confirmation.order_number, "shipped")

        order = await crud.get_order(confirmation.order_number)
        self.assertEqual(order.status, "shipped")
        self.assertAlmostEqual(order.total_amount, 110.0)
        self.assertEqual(len(order.items), 2)

    async def test_stored_total_is_subtotal_plus_shipping(self):
        cart = CartStore()
        cart.add_item(1, "Pixel Logo Tee", 50.0, None, "M", "Black", quantity=2)
        cart.add_item(3, "Retro Cap", 20.0, None, "One Size", "Blue")
        confirmation = await submit_order(cart, _form())

        expected = 50 * 2 + 20 * 1 + shipping_for(120.0)
        self.assertAlmostEqual(confirmation.total, expected)
        await crud.update_order_status(confirmation.order_number, "cancelled")
        order = await crud.get_order(confirmation.order_number)
        self.assertAlmostEqual(order.total_amount, expected)

    async def test_empty_cart_writes_nothing(self):
        with self.assertRaises(EmptyCartError):
            await submit_order(CartStore(), _form())
        self.assertEqual(await crud.count_orders(), 0)

    async def test_missing_details_write_nothing(self):
        cart = _cart(35.0)
        with self.assertRaises(ShippingFormError) as ctx:
            await submit_order(cart, _form(phone="", postal_code=" "))
        self.assertEqual(ctx.exception.missing_fields, ("phone", "postal_code"))
        self.assertEqual(await crud.count_orders(), 0)
        self.assertEqual(len(cart), 1)

    async def test_malformed_email_writes_nothing(self):
        cart = _cart(35.0)
        with self.assertRaises(ShippingFormError) as ctx:
            await submit_order(cart, _form(email="lerato.example.com"))
        self.assertEqual(ctx.exception.invalid_fields, ("email",))
        self.assertEqual(ctx.exception.missing_fields, ())
        self.assertEqual(ctx.exception.fields, ("email",))
        self.assertEqual(await crud.count_orders(), 0)
        self.assertEqual(len(cart), 1)

    async def test_cart_changes_during_submit_are_ignored(self):
        cart = _cart(35.0, 40.0)
        real_insert = crud.insert_order

        async def insert_after_cart_edit(order, when=None):
            cart.add_item(4, "Crumb Socks", 500.0, None, "One Size", "Red")
            cart.update_quantity(cart.lines[0].line_id, 4)
            return await real_insert(order, when)

        with patch.object(crud, "insert_order", side_effect=insert_after_cart_edit):
            confirmation = await submit_order(cart, _form())

        order = await crud.get_order(confirmation.order_number)
        self.assertEqual(
            [(i.product_id, i.quantity) for i in order.items], [(1, 1), (2, 1)]
        )
        self.assertAlmostEqual(order.total_amount, 85.0)
        self.assertAlmostEqual(confirmation.total, 85.0)

    async def test_store_failure_keeps_cart(self):
        cart = _cart(35.0, 40.0)
        with patch.object(
            crud, "insert_order", side_effect=sqlite3.OperationalError("disk I/O error")
        ):
            with self.assertRaises(OrderSubmitError) as ctx:
                await submit_order(cart, _form())

        self.assertEqual(len(cart), 2)
        self.assertIsInstance(ctx.exception.__cause__, sqlite3.OperationalError)
        self.assertEqual(await crud.count_orders(), 0)

        await checkout.notifier.drain()
        logs = await crud.list_error_logs()
        self.assertEqual(logs[0].title, "Order creation failed")
        self.assertEqual(logs[0].level, "error")

    async def test_timeout_keeps_cart(self):
        async def hang(*_args, **_kwargs):
            await asyncio.sleep(5)

        cart = _cart(35.0, 40.0)
        with patch.object(checkout, "ORDER_SUBMIT_TIMEOUT", 0.01), patch.object(
            crud, "insert_order", side_effect=hang
        ):
            with self.assertRaises(OrderSubmitError):
                await submit_order(cart, _form())
        self.assertEqual(len(cart), 2)

    async def test_timeout_after_commit_counts_as_placed(self):
        real_insert = crud.insert_order

        async def commit_then_hang(order, when=None):
            await real_insert(order, when)
            await asyncio.sleep(5)

        cart = _cart(35.0)
        with patch.object(checkout, "ORDER_SUBMIT_TIMEOUT", 0.5), patch.object(
            crud, "insert_order", side_effect=commit_then_hang
        ):
            confirmation = await submit_order(cart, _form())

        self.assertTrue(cart.is_empty())
        self.assertEqual(await crud.count_orders(), 1)
        order = await crud.get_order(confirmation.order_number)
        self.assertAlmostEqual(order.total_amount, 45.0)

    async def test_order_number_clash_is_retried(self):
        fresh = "BRD-CLASH-AAAA"
        first = await submit_order(_cart(20.0), _form())
        with patch.object(
            checkout,
            "generate_order_number",
            side_effect=[first.order_number, fresh],
        ):
            confirmation = await submit_order(_cart(20.0), _form())
        self.assertEqual(confirmation.order_number, fresh)
        self.assertEqual(await crud.count_orders(), 2)

    async def test_order_number_clash_gives_up(self):
        first = await submit_order(_cart(20.0), _form())
        cart = _cart(20.0)
        with patch.object(
            checkout,
            "generate_order_number",
            return_value=first.order_number,
        ):
            with self.assertRaises(OrderSubmitError):
                await submit_order(cart, _form())
        self.assertEqual(len(cart), 1)
        self.assertEqual(await crud.count_orders(), 1)
