# provide dataclass models

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple

OrderStatus = Literal[
    "pending", "paid", "processing", "shipped", "delivered", "cancelled"
]
ORDER_STATUSES: Tuple[str, ...] = (
    "pending",
    "paid",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
)

LogLevel = Literal["error", "warn", "info"]


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    slug: str
    description: Optional[str] = None


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    slug: str
    price: float
    description: Optional[str] = None
    original_price: Optional[float] = None
    category_id: Optional[int] = None
    image_url: Optional[str] = None
    images: Tuple[str, ...] = ()
    sizes: Tuple[str, ...] = ()
    colors: Tuple[str, ...] = ()
    is_featured: bool = False
    is_on_sale: bool = False
    stock_quantity: int = 0
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class MediaItem:
    id: int
    title: str
    image_url: str
    description: Optional[str] = None
    category: str = "lookbook"
    is_featured: bool = False
    created_at: str = ""


@dataclass(frozen=True)
class ContactMessage:
    id: int
    name: str
    email: str
    message: str
    subject: Optional[str] = None
    is_read: bool = False
    created_at: str = ""


@dataclass(frozen=True)
class CartLine:
    """One product/size/colour selection held in the shopper's cart."""

    line_id: str
    product_id: int
    name: str
    unit_price: float
    image_url: Optional[str]
    size: str
    color: str
    quantity: int

    @property
    def key(self) -> Tuple[int, str, str]:
        return (self.product_id, self.size, self.color)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderItem:
    """Copy of a cart line taken when the order was placed."""

    product_id: int
    name: str
    unit_price: float
    size: str
    color: str
    quantity: int
    image_url: Optional[str] = None


@dataclass(frozen=True)
class ShippingAddress:
    address: str
    city: str
    postal_code: str
    phone: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class Order:
    order_number: str
    customer_name: str
    customer_email: str
    items: Tuple[OrderItem, ...]
    shipping_address: ShippingAddress
    total_amount: float
    status: OrderStatus = "pending"
    id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class ErrorLog:
    id: int
    level: LogLevel
    title: str
    message: str
    source: Optional[str]
    metadata: Optional[dict]
    created_at: str


@dataclass(frozen=True)
class DashboardStats:
    product_count: int = 0
    media_count: int = 0
    unread_messages: int = 0
    order_count: int = 0
    views_today: int = 0
    views_this_week: int = 0
    top_pages: Tuple[Tuple[str, int], ...] = field(default_factory=tuple)
