import sqlite3
from unittest.mock import patch

from textual.widgets import Button, DataTable, Select

from db import crud
from main import StorefrontApp
from store_case import StoreTestCase
from utils.cart import CartStore
from utils.checkout import ShippingForm, submit_order
from utils.notifier import notifier
from views.scr_welcome import WelcomeScreen


async def _settle(app, pilot) -> None:
    # workers can start more workers, so wait twice
    for _ in range(2):
        await pilot.pause()
        await app.workers.wait_for_complete()
    await pilot.pause()


async def _enter(app, pilot, button_id: str) -> None:
    """Pick a side on the welcome screen once it is up."""
    for _ in range(40):
        if isinstance(app.screen, WelcomeScreen):
            break
        await pilot.pause(0.05)
    app.screen.query_one(button_id, Button).press()
    await _settle(app, pilot)


class StorefrontAppTestCase(StoreTestCase):
    async def test_shop_and_gallery_open_with_no_filter(self):
        app = StorefrontApp(cart=CartStore())
        async with app.run_test(size=(140, 45)) as pilot:
            await _enter(app, pilot, "#btn-shop")
            self.assertEqual(app.current_mode, "shop")
            self.assertTrue(app.screen.query_one("#select-category", Select).is_blank())
            self.assertEqual(app.screen.query_one("#table-products", DataTable).row_count, 6)

            await app.switch_mode("gallery")
            await _settle(app, pilot)
            self.assertEqual(app.current_mode, "gallery")
            self.assertTrue(app.is_running)

    async def test_orders_open_with_no_filter(self):
        cart = CartStore()
        cart.add_item(1, "Pixel Logo Tee", 35.0, None, "M", "Black")
        form = ShippingForm(
            name="Lerato Mokoena",
            email="lerato@example.com",
            phone="0821234567",
            address="1 Long Street",
            city="Cape Town",
            postal_code="8001",
        )
        placed = await submit_order(cart, form)
        app = StorefrontApp(cart=CartStore())
        async with app.run_test(size=(140, 45)) as pilot:
            await _enter(app, pilot, "#btn-admin")
            self.assertEqual(app.current_mode, "dashboard")

            await app.switch_mode("orders")
            await _settle(app, pilot)
            table = app.screen.query_one("#table-orders", DataTable)
            self.assertEqual(table.row_count, 1)
            self.assertEqual(app.screen.selected_number, placed.order_number)
            self.assertTrue(app.is_running)

    async def test_failed_reads_keep_the_app_running(self):
        app = StorefrontApp(cart=CartStore())
        locked = sqlite3.OperationalError("database is locked")
        with patch.object(crud, "list_error_logs", side_effect=locked), patch.object(
            crud, "list_orders", side_effect=locked
        ), patch.object(crud, "list_media", side_effect=locked):
            async with app.run_test(size=(140, 45)) as pilot:
                await _enter(app, pilot, "#btn-admin")
                self.assertTrue(app.is_running)

                for mode in ("orders", "media"):
                    await app.switch_mode(mode)
                    await _settle(app, pilot)
                    self.assertEqual(app.current_mode, mode)
                    self.assertTrue(app.is_running)

        await notifier.drain()
        titles = {log.title for log in await crud.list_error_logs(limit=50)}
        self.assertIn("Dashboard query failed", titles)
        self.assertIn("Failed to load orders", titles)
        self.assertIn("Failed to load media", titles)
