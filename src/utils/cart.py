from __future__ import annotations

import dataclasses
import json
import os
import time
from typing import List, Optional, Tuple

from db.models import CartLine
from utils.logger import get_logger

_logger = get_logger(__name__)

CART_PATH = os.getenv("CART_PATH", "data/cart.json")


class CartStore:
    """
    The shopper's pending selection, one line per (product, size, colour).

    Lines keep insertion order. Totals are computed from the lines on every
    read. When ``path`` is set the lines are written there after each
    mutation; use :meth:`load` to restore them on start.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path
        self._lines: List[CartLine] = []

    # ---------------------------
    # Persistence
    # ---------------------------

    @classmethod
    def load(cls, path: str = CART_PATH) -> "CartStore":
        """Restore a cart from ``path``; a missing or bad file gives an empty cart."""
        cart = cls(path)
        if not os.path.exists(path):
            return cart
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            cart._lines = [CartLine(**entry) for entry in raw.get("items", [])]
        except (OSError, ValueError, TypeError, AttributeError) as e:
            _logger.warning(f"Ignoring unreadable cart file {path}: {e}")
            cart._lines = []
        return cart

    def _save(self) -> None:
        if not self.path:
            return
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            tmp_path = self.path + ".tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({"items": [dataclasses.asdict(l) for l in self._lines]}, f)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            _logger.warning(f"Could not save cart to {self.path}: {e}")

    # ---------------------------
    # Reads
    # ---------------------------

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    def snapshot(self) -> Tuple[CartLine, ...]:
        """Immutable copy of the current lines, unaffected by later mutations."""
        return tuple(self._lines)

    def get(self, line_id: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.line_id == line_id:
                return line
        return None

    def find(self, product_id: int, size: str, color: str) -> Optional[CartLine]:
        key = (product_id, size, color)
        for line in self._lines:
            if line.key == key:
                return line
        return None

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def total_price(self) -> float:
        return sum(line.unit_price * line.quantity for line in self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    # ---------------------------
    # Mutations
    # ---------------------------

    def add_item(
        self,
        product_id: int,
        name: str,
        unit_price: float,
        image_url: Optional[str],
        size: str,
        color: str,
        quantity: int = 1,
    ) -> CartLine:
        """
        Add ``quantity`` of a configuration. A line with the same product,
        size and colour has its quantity increased instead of a new line
        being appended. Returns the resulting line.
        """
        if not isinstance(size, str) or not isinstance(color, str):
            raise TypeError(f"size and colour must be text, got {size!r} and {color!r}")
        if quantity < 1:
            raise ValueError(f"quantity must be at least 1, got {quantity}")

        for idx, line in enumerate(self._lines):
            if line.key == (product_id, size, color):
                merged = dataclasses.replace(line, quantity=line.quantity + quantity)
                self._lines[idx] = merged
                self._save()
                return merged

        line = CartLine(
            line_id=f"{product_id}-{size}-{color}-{time.time_ns()}",
            product_id=product_id,
            name=name,
            unit_price=unit_price,
            image_url=image_url,
            size=size,
            color=color,
            quantity=quantity,
        )
        self._lines.append(line)
        self._save()
        return line

    def remove_item(self, line_id: str) -> None:
        kept = [line for line in self._lines if line.line_id != line_id]
        if len(kept) != len(self._lines):
            self._lines = kept
            self._save()

    def update_quantity(self, line_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.remove_item(line_id)
            return
        for idx, line in enumerate(self._lines):
            if line.line_id == line_id:
                self._lines[idx] = dataclasses.replace(line, quantity=quantity)
                self._save()
                return

    def clear(self) -> None:
        self._lines = []
        self._save()
