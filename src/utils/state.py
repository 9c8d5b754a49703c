from __future__ import annotations

import hashlib
import platform
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

import db.crud as crud
from utils.cart import CartStore
from utils.notifier import notifier


def default_user_agent() -> str:
    return f"bread-store-tui/1.0 ({platform.system()} {platform.release()}; Python {platform.python_version()})"


def anonymise(user_agent: str, when: Optional[datetime] = None) -> str:
    """Visitor fingerprint that changes daily: hash of user agent and date."""
    day = (when or datetime.now()).date().isoformat()
    return hashlib.sha256(f"{user_agent}|{day}".encode("utf-8")).hexdigest()[:16]


@dataclass
class GlobalState:
    """
    Application state owned by the App and reached by screens through
    ``self.app.state``.

    Fields:
      - role: "shopper" | "admin" | None before a side is chosen
      - cart: the shopper's CartStore
      - user_agent: reported with every page view
      - last_path: previous page, recorded as the next view's referrer
    """

    role: Optional[Literal["shopper", "admin"]] = None
    cart: CartStore = field(default_factory=CartStore)
    user_agent: str = field(default_factory=default_user_agent)
    last_path: Optional[str] = None

    def enter(self, role: Literal["shopper", "admin"]) -> None:
        self.role = role
        self.last_path = None

    def leave(self) -> None:
        """Back to the welcome screen. The cart is kept."""
        self.role = None
        self.last_path = None

    async def track_page(self, path: str, when: Optional[datetime] = None) -> None:
        """Record a page view; failures are reported, never raised."""
        try:
            await crud.record_page_view(
                path,
                user_agent=self.user_agent,
                referrer=self.last_path,
                ip_hash=anonymise(self.user_agent, when),
                when=when,
            )
        except (sqlite3.Error, OSError) as e:
            notifier.warn("Page tracking failed", f"Path: {path}, Error: {e!r}")
        self.last_path = path
