import json
import os
import tempfile
import unittest

from utils.cart import CartStore


def _add(cart: CartStore, pid=1, size="M", color="Black", qty=1, price=35.0):
    return cart.add_item(
        product_id=pid,
        name=f"Product {pid}",
        unit_price=price,
        image_url=None,
        size=size,
        color=color,
        quantity=qty,
    )


class CartStoreTestCase(unittest.TestCase):
    def test_same_configuration_merges(self):
        cart = CartStore()
        first = _add(cart, qty=1)
        merged = _add(cart, qty=2)
        self.assertEqual(len(cart), 1)
        self.assertEqual(merged.line_id, first.line_id)
        self.assertEqual(cart.lines[0].quantity, 3)

    def test_repeated_identical_adds_make_one_line(self):
        cart = CartStore()
        for _ in range(7):
            _add(cart)
        self.assertEqual(len(cart), 1)
        self.assertEqual(cart.lines[0].quantity, 7)

    def test_lines_unique_per_product_size_color(self):
        cart = CartStore()
        _add(cart, size="M", color="Black")
        _add(cart, size="L", color="Black")
        _add(cart, size="M", color="White")
        _add(cart, pid=2, size="M", color="Black")
        _add(cart, size="L", color="Black")

        keys = [line.key for line in cart.lines]
        self.assertEqual(len(keys), len(set(keys)))
        self.assertEqual(len(cart), 4)
        self.assertEqual(len({line.line_id for line in cart.lines}), 4)
        # insertion order kept
        self.assertEqual(keys[0], (1, "M", "Black"))
        self.assertEqual(cart.find(1, "L", "Black").quantity, 2)
        self.assertIsNone(cart.find(3, "M", "Black"))

    def test_update_quantity_and_floor(self):
        cart = CartStore()
        a = _add(cart, size="M")
        b = _add(cart, size="L")

        cart.update_quantity(a.line_id, 5)
        self.assertEqual(cart.get(a.line_id).quantity, 5)

        cart.update_quantity(a.line_id, 0)
        self.assertIsNone(cart.get(a.line_id))
        cart.update_quantity(b.line_id, -3)
        self.assertTrue(cart.is_empty())
        self.assertTrue(all(line.quantity >= 1 for line in cart.lines))

        # unknown ids are ignored
        cart.update_quantity("nope", 2)
        cart.remove_item("nope")
        self.assertEqual(len(cart), 0)

    def test_totals_follow_lines(self):
        cart = CartStore()
        self.assertEqual(cart.total_items, 0)
        self.assertEqual(cart.total_price, 0)

        a = _add(cart, pid=1, qty=2, price=35.0)
        _add(cart, pid=2, qty=1, price=12.5)
        self.assertEqual(cart.total_items, 3)
        self.assertAlmostEqual(cart.total_price, 82.5)

        cart.update_quantity(a.line_id, 1)
        self.assertEqual(cart.total_items, 2)
        self.assertAlmostEqual(cart.total_price, 47.5)

        cart.remove_item(a.line_id)
        self.assertAlmostEqual(cart.total_price, 12.5)

        cart.clear()
        self.assertEqual((cart.total_items, cart.total_price), (0, 0))

    def test_snapshot_is_detached(self):
        cart = CartStore()
        line = _add(cart)
        snap = cart.snapshot()
        cart.update_quantity(line.line_id, 9)
        self.assertEqual(snap[0].quantity, 1)


class CartPersistenceTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "nested", "cart.json")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_reload_restores_lines(self):
        cart = CartStore.load(self.path)
        self.assertTrue(cart.is_empty())
        _add(cart, size="M", qty=2)
        _add(cart, size="L")

        restored = CartStore.load(self.path)
        self.assertEqual(restored.lines, cart.lines)
        self.assertEqual(restored.total_items, 3)

        restored.clear()
        self.assertTrue(CartStore.load(self.path).is_empty())

    def test_bad_file_gives_empty_cart(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{not json")
        self.assertTrue(CartStore.load(self.path).is_empty())

        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"items": [{"unexpected": 1}]}, f)
        self.assertTrue(CartStore.load(self.path).is_empty())

    def test_in_memory_cart_writes_nothing(self):
        cart = CartStore()
        _add(cart)
        self.assertFalse(os.path.exists(self.path))

    def test_rejected_add_leaves_memory_and_file_alone(self):
        cart = CartStore.load(self.path)
        _add(cart, qty=2)
        with open(self.path, encoding="utf-8") as f:
            saved = f.read()

        with self.assertRaises(TypeError):
            _add(cart, size=object())
        with self.assertRaises(TypeError):
            _add(cart, color=None)
        with self.assertRaises(ValueError):
            _add(cart, qty=0)

        self.assertEqual(len(cart), 1)
        self.assertEqual(cart.total_items, 2)
        with open(self.path, encoding="utf-8") as f:
            self.assertEqual(f.read(), saved)
        self.assertEqual(CartStore.load(self.path).lines, cart.lines)
