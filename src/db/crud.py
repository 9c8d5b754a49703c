# src/db/crud.py
from __future__ import annotations

import dataclasses
import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from db import models
from db.database import connect
from utils.pure import slugify

DEFAULT_SIZES = ("S", "M", "L", "XL")

_PRODUCT_COLUMNS = """
    id, name, slug, description, price, original_price, category_id,
    image_url, images, sizes, colors, is_featured, is_on_sale,
    stock_quantity, created_at, updated_at
"""
_PRODUCT_JSON_FIELDS = {"images", "sizes", "colors"}
_PRODUCT_BOOL_FIELDS = {"is_featured", "is_on_sale"}
_PRODUCT_EDITABLE = {
    "name",
    "slug",
    "description",
    "price",
    "original_price",
    "category_id",
    "image_url",
    "images",
    "sizes",
    "colors",
    "is_featured",
    "is_on_sale",
    "stock_quantity",
}

_ORDER_COLUMNS = """
    id, order_number, customer_name, customer_email, items,
    shipping_address, total_amount, status, created_at, updated_at
"""


def _ts(when: Optional[datetime] = None) -> str:
    """Format a timestamp the way the store keeps it (local time, seconds)."""
    return (when or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")


def _json_tuple(val: Optional[str]) -> tuple:
    if not val:
        return ()
    try:
        data = json.loads(val)
    except (TypeError, ValueError):
        return ()
    return tuple(data) if isinstance(data, list) else ()


def _row_to_product(row) -> models.Product:
    return models.Product(
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        description=row["description"],
        price=float(row["price"]),
        original_price=(
            float(row["original_price"]) if row["original_price"] is not None else None
        ),
        category_id=row["category_id"],
        image_url=row["image_url"],
        images=_json_tuple(row["images"]),
        sizes=_json_tuple(row["sizes"]),
        colors=_json_tuple(row["colors"]),
        is_featured=bool(row["is_featured"]),
        is_on_sale=bool(row["is_on_sale"]),
        stock_quantity=int(row["stock_quantity"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_order(row) -> models.Order:
    items = tuple(models.OrderItem(**item) for item in json.loads(row["items"]))
    address = models.ShippingAddress(**json.loads(row["shipping_address"]))
    return models.Order(
        id=row["id"],
        order_number=row["order_number"],
        customer_name=row["customer_name"],
        customer_email=row["customer_email"],
        items=items,
        shipping_address=address,
        total_amount=float(row["total_amount"]),
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


async def _count(sql: str, params: Sequence[Any] = ()) -> int:
    async with connect() as conn:
        cur = await conn.execute(sql, tuple(params))
        row = await cur.fetchone()
        await cur.close()
    return int(row[0]) if row and row[0] is not None else 0


# ---------------------------
# Catalogue
# ---------------------------


async def list_categories() -> List[models.Category]:
    """All categories ordered by name."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, name, slug, description FROM categories ORDER BY name;"
        )
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.Category(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
        )
        for row in rows
    ]


async def get_category_by_slug(slug: str) -> Optional[models.Category]:
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, name, slug, description FROM categories WHERE slug = ?;",
            (slug,),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return models.Category(
        id=row["id"], name=row["name"], slug=row["slug"], description=row["description"]
    )


async def list_products(
    category_slug: Optional[str] = None,
    search: Optional[str] = None,
) -> List[models.Product]:
    """
    Products newest first.

    An unknown category slug is ignored rather than matching nothing.
    ``search`` is a case-insensitive substring match on the product name.
    """
    where: List[str] = []
    params: List[Any] = []

    if category_slug:
        category = await get_category_by_slug(category_slug)
        if category:
            where.append("category_id = ?")
            params.append(category.id)

    term = (search or "").strip().lower()
    if term:
        where.append("LOWER(name) LIKE ?")
        params.append(f"%{term}%")

    where_clause = f"WHERE {' AND '.join(where)}" if where else ""
    async with connect() as conn:
        cur = await conn.execute(
            f"""
            SELECT {_PRODUCT_COLUMNS}
            FROM products
            {where_clause}
            ORDER BY created_at DESC, id DESC;
            """,
            tuple(params),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_product(row) for row in rows]


async def featured_products(limit: int = 4) -> List[models.Product]:
    async with connect() as conn:
        cur = await conn.execute(
            f"""
            SELECT {_PRODUCT_COLUMNS}
            FROM products
            WHERE is_featured = 1
            ORDER BY created_at DESC, id DESC
            LIMIT ?;
            """,
            (limit,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_product(row) for row in rows]


async def get_product(product_id: int) -> Optional[models.Product]:
    """Fetch a product by id."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = ?;", (product_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_product(row) if row else None


async def get_product_by_slug(slug: str) -> Optional[models.Product]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE slug = ?;", (slug,)
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_product(row) if row else None


async def create_product(
    name: str,
    price: float,
    slug: Optional[str] = None,
    description: Optional[str] = None,
    original_price: Optional[float] = None,
    category_id: Optional[int] = None,
    image_url: Optional[str] = None,
    images: Iterable[str] = (),
    sizes: Iterable[str] = DEFAULT_SIZES,
    colors: Iterable[str] = (),
    is_featured: bool = False,
    is_on_sale: bool = False,
    stock_quantity: int = 0,
    when: Optional[datetime] = None,
) -> int:
    """
    Insert a product and return its id. The slug defaults to one derived
    from the name; a duplicate slug raises ``sqlite3.IntegrityError``.
    """
    stamp = _ts(when)
    async with connect() as conn:
        cur = await conn.execute(
            """
            INSERT INTO products(name, slug, description, price, original_price,
                                 category_id, image_url, images, sizes, colors,
                                 is_featured, is_on_sale, stock_quantity,
                                 created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                name,
                slug or slugify(name),
                description,
                price,
                original_price,
                category_id,
                image_url,
                json.dumps(list(images)),
                json.dumps(list(sizes)),
                json.dumps(list(colors)),
                int(is_featured),
                int(is_on_sale),
                stock_quantity,
                stamp,
                stamp,
            ),
        )
        product_id = cur.lastrowid
        await cur.close()
        await conn.commit()
    return int(product_id)


async def update_product(
    product_id: int, when: Optional[datetime] = None, **fields: Any
) -> bool:
    """
    Update only the given product fields. Return True if a row was updated.
    Unknown field names raise ValueError.
    """
    unknown = set(fields) - _PRODUCT_EDITABLE
    if unknown:
        raise ValueError(f"Cannot update product fields: {', '.join(sorted(unknown))}")
    if not fields:
        return False

    assignments: List[str] = []
    params: List[Any] = []
    for name, value in fields.items():
        if name in _PRODUCT_JSON_FIELDS:
            value = json.dumps(list(value or ()))
        elif name in _PRODUCT_BOOL_FIELDS:
            value = int(bool(value))
        assignments.append(f"{name} = ?")
        params.append(value)
    assignments.append("updated_at = ?")
    params.append(_ts(when))

    async with connect() as conn:
        res = await conn.execute(
            f"UPDATE products SET {', '.join(assignments)} WHERE id = ?;",
            tuple(params + [product_id]),
        )
        await conn.commit()
        return res.rowcount > 0


async def delete_product(product_id: int) -> bool:
    async with connect() as conn:
        res = await conn.execute("DELETE FROM products WHERE id = ?;", (product_id,))
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Media
# ---------------------------


async def list_media(category: Optional[str] = None) -> List[models.MediaItem]:
    """Media items newest first, optionally limited to one category."""
    sql = """
        SELECT id, title, description, image_url, category, is_featured, created_at
        FROM media
    """
    params: tuple = ()
    if category:
        sql += " WHERE category = ?"
        params = (category,)
    sql += " ORDER BY created_at DESC, id DESC;"
    async with connect() as conn:
        cur = await conn.execute(sql, params)
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.MediaItem(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            image_url=row["image_url"],
            category=row["category"],
            is_featured=bool(row["is_featured"]),
            created_at=row["created_at"],
        )
        for row in rows
    ]


async def add_media(
    title: str,
    image_url: str,
    description: Optional[str] = None,
    category: str = "lookbook",
    is_featured: bool = False,
    when: Optional[datetime] = None,
) -> int:
    async with connect() as conn:
        cur = await conn.execute(
            """
            INSERT INTO media(title, description, image_url, category, is_featured, created_at)
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (title, description or None, image_url, category, int(is_featured), _ts(when)),
        )
        media_id = cur.lastrowid
        await cur.close()
        await conn.commit()
    return int(media_id)


async def delete_media(media_id: int) -> bool:
    async with connect() as conn:
        res = await conn.execute("DELETE FROM media WHERE id = ?;", (media_id,))
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Contact messages
# ---------------------------


async def insert_message(
    name: str,
    email: str,
    message: str,
    subject: Optional[str] = None,
    when: Optional[datetime] = None,
) -> int:
    """Store a contact-form submission as unread."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            INSERT INTO messages(name, email, subject, message, is_read, created_at)
            VALUES (?, ?, ?, ?, 0, ?);
            """,
            (name, email, subject, message, _ts(when)),
        )
        message_id = cur.lastrowid
        await cur.close()
        await conn.commit()
    return int(message_id)


async def list_messages() -> List[models.ContactMessage]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, name, email, subject, message, is_read, created_at
            FROM messages
            ORDER BY created_at DESC, id DESC;
            """
        )
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.ContactMessage(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            subject=row["subject"],
            message=row["message"],
            is_read=bool(row["is_read"]),
            created_at=row["created_at"],
        )
        for row in rows
    ]


async def set_message_read(message_id: int, is_read: bool = True) -> bool:
    async with connect() as conn:
        res = await conn.execute(
            "UPDATE messages SET is_read = ? WHERE id = ?;",
            (int(is_read), message_id),
        )
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Orders
# ---------------------------


async def insert_order(order: models.Order, when: Optional[datetime] = None) -> int:
    """
    Insert one order row and return its id.

    Items and the shipping address are stored as JSON copies. A duplicate
    order number raises ``sqlite3.IntegrityError``.
    """
    stamp = _ts(when)
    async with connect() as conn:
        cur = await conn.execute(
            """
            INSERT INTO orders(order_number, customer_name, customer_email, items,
                               shipping_address, total_amount, status,
                               created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                order.order_number,
                order.customer_name,
                order.customer_email,
                json.dumps([dataclasses.asdict(item) for item in order.items]),
                json.dumps(dataclasses.asdict(order.shipping_address)),
                order.total_amount,
                order.status,
                stamp,
                stamp,
            ),
        )
        order_id = cur.lastrowid
        await cur.close()
        await conn.commit()
    return int(order_id)


async def list_orders(status: Optional[str] = None) -> List[models.Order]:
    """All orders newest first, optionally filtered by status."""
    sql = f"SELECT {_ORDER_COLUMNS} FROM orders"
    params: tuple = ()
    if status:
        sql += " WHERE status = ?"
        params = (status,)
    sql += " ORDER BY created_at DESC, id DESC;"
    async with connect() as conn:
        cur = await conn.execute(sql, params)
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_order(row) for row in rows]


async def get_order(order_number: str) -> Optional[models.Order]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ORDER_COLUMNS} FROM orders WHERE order_number = ?;",
            (order_number,),
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_order(row) if row else None


async def update_order_status(
    order_number: str, status: str, when: Optional[datetime] = None
) -> bool:
    """
    Set an order's status. Any status may follow any other; only the status
    and ``updated_at`` columns change. Return True if a row was updated.
    """
    if status not in models.ORDER_STATUSES:
        raise ValueError(f"Unknown order status: {status!r}")
    async with connect() as conn:
        res = await conn.execute(
            "UPDATE orders SET status = ?, updated_at = ? WHERE order_number = ?;",
            (status, _ts(when), order_number),
        )
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Page views & error logs
# ---------------------------


async def record_page_view(
    page_path: str,
    user_agent: Optional[str] = None,
    referrer: Optional[str] = None,
    ip_hash: Optional[str] = None,
    when: Optional[datetime] = None,
) -> None:
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO page_views(page_path, user_agent, referrer, ip_hash, created_at)
            VALUES (?, ?, ?, ?, ?);
            """,
            (page_path, user_agent, referrer, ip_hash, _ts(when)),
        )
        await conn.commit()


async def insert_error_log(
    level: str,
    title: str,
    message: str,
    source: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    when: Optional[datetime] = None,
) -> None:
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO error_logs(level, title, message, source, metadata, created_at)
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (
                level,
                title,
                message,
                source,
                json.dumps(metadata) if metadata is not None else None,
                _ts(when),
            ),
        )
        await conn.commit()


async def list_error_logs(limit: int = 50) -> List[models.ErrorLog]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, level, title, message, source, metadata, created_at
            FROM error_logs
            ORDER BY created_at DESC, id DESC
            LIMIT ?;
            """,
            (limit,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.ErrorLog(
            id=row["id"],
            level=row["level"],
            title=row["title"],
            message=row["message"],
            source=row["source"],
            metadata=json.loads(row["metadata"]) if row["metadata"] else None,
            created_at=row["created_at"],
        )
        for row in rows
    ]


# ---------------------------
# Dashboard aggregates
# ---------------------------


async def count_products() -> int:
    return await _count("SELECT COUNT(*) FROM products;")


async def count_media() -> int:
    return await _count("SELECT COUNT(*) FROM media;")


async def count_unread_messages() -> int:
    return await _count("SELECT COUNT(*) FROM messages WHERE is_read = 0;")


async def count_orders() -> int:
    return await _count("SELECT COUNT(*) FROM orders;")


async def count_page_views_since(since: datetime) -> int:
    """Number of page views recorded at or after ``since``."""
    return await _count(
        "SELECT COUNT(*) FROM page_views WHERE created_at >= ?;", (_ts(since),)
    )


async def recent_page_paths(limit: int = 100) -> List[str]:
    """Paths of the ``limit`` most recent page views, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT page_path
            FROM page_views
            ORDER BY created_at DESC, id DESC
            LIMIT ?;
            """,
            (limit,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [row["page_path"] for row in rows]
