from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input

import db.crud as crud
from utils.pure import format_money
from views.base_screen import STORE_ERRORS, BaseScreen
from views.modal_dialog import DialogModal
from views.modal_product_form import ProductFormModal


class AdminProductsScreen(BaseScreen):
    """
    Catalogue management: search, create, edit and delete products.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Input(id="input-search", placeholder="Search for product...")
            yield DataTable(id="table-products")
        with Horizontal(id="hort-buttons"):
            yield Button("Delete", id="btn-delete", variant="error")
            yield Button("Edit", id="btn-edit")
            yield Button("New Product", id="btn-new", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Slug", "Price", "Stock", "Featured", "Sale")
        self.query_one("#input-search").focus()
        self.update_table()

    @on(Input.Changed, "#input-search")
    @on(ScreenResume)
    def handle_search(self) -> None:
        self.update_table()

    @work(exclusive=True)
    async def update_table(self) -> None:
        query = self.query_one("#input-search", Input).value
        try:
            products = await crud.list_products(search=query)
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to load products",
                e,
                f"Search: {query!r}",
                note="Could not load products.",
            )
            return

        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.id,
                p.name,
                p.slug,
                format_money(p.price),
                p.stock_quantity,
                "yes" if p.is_featured else "",
                "yes" if p.is_on_sale else "",
                key=str(p.id),
            )

    def _selected_id(self) -> Optional[int]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return int(row_key.value)

    @on(Button.Pressed, "#btn-new")
    @work()
    async def handle_new(self) -> None:
        if await self.app.push_screen_wait(ProductFormModal()) is not None:
            self.update_table()

    @on(DataTable.RowSelected)
    @on(Button.Pressed, "#btn-edit")
    @work()
    async def handle_edit(self) -> None:
        product_id = self._selected_id()
        if product_id is None:
            self.notify("Select a product first.", severity="warning")
            return
        if await self.app.push_screen_wait(ProductFormModal(product_id)) is not None:
            self.update_table()

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self) -> None:
        product_id = self._selected_id()
        if product_id is None:
            self.notify("Select a product first.", severity="warning")
            return
        try:
            prod = await crud.get_product(product_id)
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to load product",
                e,
                f"Product: {product_id}",
                note="Could not load the product.",
            )
            return
        if not prod:
            self.update_table()
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete {prod.name}? This cannot be undone.",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return

        try:
            deleted = await crud.delete_product(product_id)
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to delete product",
                e,
                f"Product: {product_id}",
                note="Delete failed.",
            )
        else:
            if deleted:
                self.notify(f"{prod.name} deleted.")
            else:
                self.notify("Delete failed.", severity="error")
        self.update_table()
