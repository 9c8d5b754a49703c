import sqlite3
from datetime import datetime, timedelta

from db import crud
from db import database as db_database
from db.models import Order, OrderItem, ShippingAddress
from store_case import StoreTestCase


def _order(number: str, total: float = 45.0) -> Order:
    return Order(
        order_number=number,
        customer_name="Lerato",
        customer_email="lerato@example.com",
        items=(
            OrderItem(
                product_id=1,
                name="Pixel Logo Tee",
                unit_price=35.0,
                size="M",
                color="Black",
                quantity=1,
            ),
        ),
        shipping_address=ShippingAddress(
            address="1 Long Street", city="Cape Town", postal_code="8001", phone="0821234567"
        ),
        total_amount=total,
    )


class CrudTestCase(StoreTestCase):
    # ---------- Catalogue ----------

    async def test_seed_is_loaded(self):
        self.assertEqual(await crud.count_products(), 6)
        self.assertEqual(await crud.count_media(), 2)
        self.assertEqual(await crud.count_unread_messages(), 1)
        self.assertEqual(await crud.count_orders(), 0)
        self.assertEqual(
            [c.slug for c in await crud.list_categories()],
            ["accessories", "hoodies", "tees"],
        )

    async def test_list_products_filters(self):
        # newest first
        ids = [p.id for p in await crud.list_products()]
        self.assertEqual(ids, [6, 5, 4, 3, 2, 1])

        tees = await crud.list_products(category_slug="tees")
        self.assertEqual({p.id for p in tees}, {1, 5})

        # unknown slug is ignored
        self.assertEqual(len(await crud.list_products(category_slug="nope")), 6)

        # case-insensitive, trimmed search combined with a category
        res = await crud.list_products(category_slug="tees", search="  SOUR ")
        self.assertEqual([p.id for p in res], [5])
        self.assertEqual(await crud.list_products(search="zzz"), [])

    async def test_product_json_fields_and_lookup(self):
        prod = await crud.get_product(2)
        self.assertEqual(prod.sizes, ("M", "L", "XL"))
        self.assertEqual(prod.colors, ("Crust", "Navy"))
        self.assertTrue(prod.is_on_sale)
        self.assertEqual(prod.original_price, 95.0)

        self.assertEqual((await crud.get_product_by_slug("retro-cap")).id, 3)
        self.assertIsNone(await crud.get_product(999))
        self.assertIsNone(await crud.get_product_by_slug("missing"))

        featured = await crud.featured_products(limit=2)
        self.assertEqual([p.id for p in featured], [5, 2])

    async def test_create_update_delete_product(self):
        pid = await crud.create_product("Rye Crewneck", 65.0, category_id=2)
        prod = await crud.get_product(pid)
        self.assertEqual(prod.slug, "rye-crewneck")
        self.assertEqual(prod.sizes, crud.DEFAULT_SIZES)
        self.assertEqual(prod.colors, ())

        # duplicate slug
        with self.assertRaises(sqlite3.IntegrityError):
            await crud.create_product("Rye  Crewneck!", 10.0)

        later = datetime(2030, 1, 1, 8, 0, 0)
        self.assertTrue(
            await crud.update_product(
                pid, when=later, price=70.0, colors=["Oat"], is_featured=True
            )
        )
        prod = await crud.get_product(pid)
        self.assertEqual(prod.price, 70.0)
        self.assertEqual(prod.colors, ("Oat",))
        self.assertTrue(prod.is_featured)
        self.assertEqual(prod.updated_at, "2030-01-01 08:00:00")

        self.assertFalse(await crud.update_product(pid))
        self.assertFalse(await crud.update_product(999, price=1.0))
        with self.assertRaises(ValueError):
            await crud.update_product(pid, created_at="2020-01-01")

        self.assertTrue(await crud.delete_product(pid))
        self.assertFalse(await crud.delete_product(pid))

    # ---------- Media & messages ----------

    async def test_media(self):
        self.assertEqual([m.id for m in await crud.list_media("events")], [2])
        mid = await crud.add_media(
            "Winter Drop", "https://cdn.example.com/winter.png", category="lookbook"
        )
        items = await crud.list_media()
        self.assertEqual(items[0].id, mid)
        self.assertIsNone(items[0].description)
        self.assertTrue(await crud.delete_media(mid))
        self.assertFalse(await crud.delete_media(mid))

    async def test_messages_and_read_flag(self):
        mid = await crud.insert_message(
            "Ayanda", "ayanda@example.com", "Do you ship to Durban?"
        )
        self.assertEqual(await crud.count_unread_messages(), 2)

        messages = await crud.list_messages()
        self.assertEqual(messages[0].id, mid)
        self.assertIsNone(messages[0].subject)
        self.assertFalse(messages[0].is_read)

        self.assertTrue(await crud.set_message_read(mid))
        self.assertEqual(await crud.count_unread_messages(), 1)
        self.assertTrue(await crud.set_message_read(mid, False))
        self.assertEqual(await crud.count_unread_messages(), 2)
        self.assertFalse(await crud.set_message_read(999))

    # ---------- Orders ----------

    async def test_insert_and_get_order(self):
        await crud.insert_order(_order("BRD-TEST-0001"), datetime(2025, 11, 1, 9, 0))
        order = await crud.get_order("BRD-TEST-0001")
        self.assertEqual(order.status, "pending")
        self.assertEqual(order.items[0].name, "Pixel Logo Tee")
        self.assertEqual(order.shipping_address.city, "Cape Town")
        self.assertIsNone(order.shipping_address.notes)
        self.assertEqual(order.created_at, "2025-11-01 09:00:00")
        self.assertIsNone(await crud.get_order("BRD-NOPE-0000"))

        with self.assertRaises(sqlite3.IntegrityError) as ctx:
            await crud.insert_order(_order("BRD-TEST-0001"))
        self.assertIn("order_number", str(ctx.exception))

    async def test_order_status_updates(self):
        await crud.insert_order(_order("BRD-TEST-0002", total=45.0))
        await crud.insert_order(_order("BRD-TEST-0003"))

        # any status may follow any other
        for status in ("shipped", "pending", "cancelled", "delivered"):
            self.assertTrue(await crud.update_order_status("BRD-TEST-0002", status))
        order = await crud.get_order("BRD-TEST-0002")
        self.assertEqual(order.status, "delivered")
        self.assertEqual(order.total_amount, 45.0)
        self.assertEqual(len(order.items), 1)

        with self.assertRaises(ValueError):
            await crud.update_order_status("BRD-TEST-0002", "lost")
        self.assertFalse(await crud.update_order_status("BRD-NOPE-0000", "paid"))

        self.assertEqual(
            [o.order_number for o in await crud.list_orders("delivered")],
            ["BRD-TEST-0002"],
        )
        self.assertEqual(len(await crud.list_orders()), 2)

    async def test_status_constraint_in_store(self):
        # the CHECK constraint backs up the Python-side validation
        async with db_database.connect() as conn:
            with self.assertRaises(sqlite3.IntegrityError):
                await conn.execute(
                    """
                    INSERT INTO orders(order_number, customer_name, customer_email,
                                       items, shipping_address, total_amount, status)
                    VALUES ('X', 'n', 'e', '[]', '{}', 0, 'lost');
                    """
                )

    # ---------- Page views & logs ----------

    async def test_page_view_counts(self):
        now = datetime(2025, 11, 5, 12, 0, 0)
        await crud.record_page_view("/shop", when=now - timedelta(days=8))
        await crud.record_page_view("/shop", when=now - timedelta(days=2))
        await crud.record_page_view("/cart", referrer="/shop", when=now)

        self.assertEqual(await crud.count_page_views_since(now - timedelta(days=7)), 2)
        self.assertEqual(await crud.count_page_views_since(now), 1)
        self.assertEqual(await crud.recent_page_paths(2), ["/cart", "/shop"])

    async def test_error_logs(self):
        await crud.insert_error_log(
            "error",
            "Order creation failed",
            "boom",
            source="client",
            metadata={"order": "BRD-1"},
            when=datetime(2025, 11, 1),
        )
        await crud.insert_error_log("info", "New order created", "ok")
        logs = await crud.list_error_logs()
        self.assertEqual([log.level for log in logs], ["info", "error"])
        self.assertEqual(logs[1].metadata, {"order": "BRD-1"})
        self.assertIsNone(logs[0].metadata)

        with self.assertRaises(sqlite3.IntegrityError):
            await crud.insert_error_log("fatal", "t", "m")

    # ---------- tiny helper coverage ----------

    def test__json_tuple_helper(self):
        self.assertEqual(crud._json_tuple('["a","b"]'), ("a", "b"))
        self.assertEqual(crud._json_tuple("not json"), ())
        self.assertEqual(crud._json_tuple('{"a": 1}'), ())
        self.assertEqual(crud._json_tuple(None), ())
