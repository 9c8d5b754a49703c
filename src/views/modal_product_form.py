import sqlite3
from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Checkbox, Input, Label, Select

import db.crud as crud
from db.models import Product
from utils.pure import slugify
from views.base_screen import STORE_ERRORS, report_store_failure


def _split_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class ProductFormModal(ModalScreen[Optional[int]]):
    """
    Create a product, or edit one when given its id.
    Dismisses with the product id when saved, None when cancelled.
    """

    def __init__(self, product_id: Optional[int] = None) -> None:
        super().__init__()
        self._product_id = product_id
        self._prod: Optional[Product] = None

    def compose(self) -> ComposeResult:
        with Vertical(id="vert-product-form"):
            yield Label("", id="label-form-title")
            with VerticalScroll():
                yield Label("Name *")
                yield Input(id="input-name")
                yield Label("Slug (derived from name when blank)")
                yield Input(id="input-slug")
                with Horizontal(classes="hort-form-row"):
                    with Vertical():
                        yield Label("Price (R) *")
                        yield Input(
                            id="input-price",
                            type="number",
                            validators=[Number(minimum=0.0)],
                        )
                    with Vertical():
                        yield Label("Original Price (R)")
                        yield Input(
                            id="input-original-price",
                            type="number",
                            validators=[Number(minimum=0.0)],
                        )
                    with Vertical():
                        yield Label("Stock")
                        yield Input(
                            "0",
                            id="input-stock",
                            type="integer",
                            validators=[Number(minimum=0)],
                        )
                yield Label("Category")
                yield Select([], prompt="No category", id="select-category")
                yield Label("Image URL")
                yield Input(id="input-image-url")
                yield Label("Sizes (comma separated)")
                yield Input(", ".join(crud.DEFAULT_SIZES), id="input-sizes")
                yield Label("Colours (comma separated)")
                yield Input(id="input-colors")
                yield Label("Description")
                yield Input(id="input-description")
                with Horizontal(classes="hort-form-row"):
                    yield Checkbox("Featured", id="chk-featured")
                    yield Checkbox("On Sale", id="chk-on-sale")
            with Horizontal():
                yield Button("Cancel", id="btn-quit")
                yield Button("Save", id="btn-save", variant="success")

    async def on_mount(self) -> None:
        try:
            categories = await crud.list_categories()
            if self._product_id is not None:
                self._prod = await crud.get_product(self._product_id)
        except STORE_ERRORS as e:
            report_store_failure(
                self.app,
                "Failed to open product form",
                e,
                f"Product: {self._product_id}",
                note="Could not load the product form.",
            )
            self.dismiss(None)
            return
        self.query_one("#select-category", Select).set_options(
            [(c.name, c.id) for c in categories]
        )

        title = self.query_one("#label-form-title", Label)
        if self._product_id is None:
            title.update("New Product")
        else:
            if not self._prod:
                self.app.notify("Product not found.", severity="error")
                self.dismiss(None)
                return
            title.update(f"Edit Product: {self._prod.name}")
            self._fill(self._prod)
        self.query_one("#input-name").focus()

    def _fill(self, prod: Product) -> None:
        self.query_one("#input-name", Input).value = prod.name
        self.query_one("#input-slug", Input).value = prod.slug
        self.query_one("#input-price", Input).value = f"{prod.price:.2f}"
        if prod.original_price is not None:
            self.query_one("#input-original-price", Input).value = (
                f"{prod.original_price:.2f}"
            )
        self.query_one("#input-stock", Input).value = str(prod.stock_quantity)
        if prod.category_id is not None:
            self.query_one("#select-category", Select).value = prod.category_id
        self.query_one("#input-image-url", Input).value = prod.image_url or ""
        self.query_one("#input-sizes", Input).value = ", ".join(prod.sizes)
        self.query_one("#input-colors", Input).value = ", ".join(prod.colors)
        self.query_one("#input-description", Input).value = prod.description or ""
        self.query_one("#chk-featured", Checkbox).value = prod.is_featured
        self.query_one("#chk-on-sale", Checkbox).value = prod.is_on_sale

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(None)

    def _invalid(self, input_id: str, note: str) -> None:
        widget = self.query_one(input_id, Input)
        widget.add_class("-invalid")
        widget.focus()
        self.notify(note, severity="error")

    def _read_fields(self) -> Optional[dict]:
        """Form values as product fields, None if something is invalid."""
        for widget in self.query(Input):
            widget.remove_class("-invalid")

        name = self.query_one("#input-name", Input).value.strip()
        if not name:
            self._invalid("#input-name", "Name is required.")
            return None
        price_input = self.query_one("#input-price", Input)
        if not price_input.value or not price_input.is_valid:
            self._invalid("#input-price", "Price must be a number of at least 0.")
            return None
        original_input = self.query_one("#input-original-price", Input)
        if original_input.value and not original_input.is_valid:
            self._invalid("#input-original-price", "Original price is invalid.")
            return None
        stock_input = self.query_one("#input-stock", Input)
        if stock_input.value and not stock_input.is_valid:
            self._invalid("#input-stock", "Stock must be a whole number of at least 0.")
            return None

        category = self.query_one("#select-category", Select)
        return {
            "name": name,
            "slug": slugify(self.query_one("#input-slug", Input).value) or slugify(name),
            "price": float(price_input.value),
            "original_price": (
                float(original_input.value) if original_input.value else None
            ),
            "stock_quantity": int(stock_input.value or 0),
            "category_id": None if category.is_blank() else category.value,
            "image_url": self.query_one("#input-image-url", Input).value.strip() or None,
            "sizes": _split_list(self.query_one("#input-sizes", Input).value),
            "colors": _split_list(self.query_one("#input-colors", Input).value),
            "description": self.query_one("#input-description", Input).value.strip()
            or None,
            "is_featured": self.query_one("#chk-featured", Checkbox).value,
            "is_on_sale": self.query_one("#chk-on-sale", Checkbox).value,
        }

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        fields = self._read_fields()
        if fields is None:
            return

        try:
            if self._product_id is None:
                product_id = await crud.create_product(**fields)
                self.app.notify(f"Product {fields['name']} created.")
            else:
                await crud.update_product(self._product_id, **fields)
                product_id = self._product_id
                self.app.notify(f"Product {fields['name']} updated.")
        except sqlite3.IntegrityError:
            self._invalid("#input-slug", f"Slug {fields['slug']!r} is already taken.")
            return
        except STORE_ERRORS as e:
            report_store_failure(
                self,
                "Failed to save product",
                e,
                f"Product: {self._product_id}, Slug: {fields['slug']}",
                note="Could not save the product.",
            )
            return
        self.dismiss(product_id)
