from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, time, timedelta
from typing import Awaitable, Optional, TypeVar

import db.crud as crud
from db.models import DashboardStats
from utils.logger import get_logger
from utils.notifier import notifier
from utils.pure import top_counts

_logger = get_logger(__name__)

TOP_PAGES_WINDOW = 100
TOP_PAGES_COUNT = 5

T = TypeVar("T")


async def _or_default(label: str, query: Awaitable[T], default: T) -> T:
    """Await one dashboard query; on failure log it and return ``default``."""
    try:
        return await query
    except (sqlite3.Error, OSError) as e:
        notifier.warn("Dashboard query failed", f"{label}: {e!r}")
        return default


async def top_pages(
    window: int = TOP_PAGES_WINDOW, k: int = TOP_PAGES_COUNT
) -> list[tuple[str, int]]:
    """
    Most visited paths among the latest ``window`` page views.

    Ties keep the order in which the paths first appear newest-first, so
    the more recently visited page wins.
    """
    return top_counts(await crud.recent_page_paths(window), k)


async def load_dashboard(now: Optional[datetime] = None) -> DashboardStats:
    """Collect every dashboard figure. Never raises for a failed query."""
    now = now or datetime.now()
    start_of_day = datetime.combine(now.date(), time.min)
    week_ago = now - timedelta(days=7)

    (
        product_count,
        media_count,
        unread_messages,
        order_count,
        views_today,
        views_this_week,
        pages,
    ) = await asyncio.gather(
        _or_default("products", crud.count_products(), 0),
        _or_default("media", crud.count_media(), 0),
        _or_default("unread messages", crud.count_unread_messages(), 0),
        _or_default("orders", crud.count_orders(), 0),
        _or_default("views today", crud.count_page_views_since(start_of_day), 0),
        _or_default("views this week", crud.count_page_views_since(week_ago), 0),
        _or_default("top pages", top_pages(), []),
    )
    _logger.debug(f"Dashboard loaded: {product_count} products, {order_count} orders")
    return DashboardStats(
        product_count=product_count,
        media_count=media_count,
        unread_messages=unread_messages,
        order_count=order_count,
        views_today=views_today,
        views_this_week=views_this_week,
        top_pages=tuple(pages),
    )


async def recent_alerts(limit: int = 5) -> list:
    """Latest ``error_logs`` rows, or none when they cannot be read."""
    return await _or_default("recent alerts", crud.list_error_logs(limit=limit), [])
