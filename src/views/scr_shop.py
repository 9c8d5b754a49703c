from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import DataTable, Input, Label, Select

import db.crud
from utils.messages import CartChangedMessage
from utils.pure import format_money
from views.base_screen import STORE_ERRORS, BaseScreen
from views.modal_prod_detail import ProdDetailModal


class ShopScreen(BaseScreen):
    """
    product browsing for shoppers: featured strip, search, category filter
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
    ]

    def __init__(self):
        super().__init__()
        self._category_names: dict[int, str] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Label("", id="label-featured")
        with Horizontal(id="hort-shop-filters"):
            yield Input(id="input-search", placeholder="Search products by name...")
            yield Select([], prompt="All categories", id="select-category")
        yield DataTable(id="table-products")

    async def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price", "Sizes", "Colours", "Stock")

        try:
            categories = await db.crud.list_categories()
            featured = await db.crud.featured_products()
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to load catalogue", e, note="Could not load the catalogue."
            )
            categories, featured = [], []

        self._category_names = {c.id: c.name for c in categories}
        self.query_one("#select-category", Select).set_options(
            [(c.name, c.slug) for c in categories]
        )
        if featured:
            self.query_one("#label-featured", Label).update(
                "Featured: " + " · ".join(p.name for p in featured)
            )
        self.query_one("#input-search").focus()
        self.update_results()

    def action_noop(self) -> None:
        pass

    @on(Input.Changed, "#input-search")
    @on(Select.Changed, "#select-category")
    @on(ScreenResume)
    def handle_filter_change(self) -> None:
        self.update_results()

    @work(exclusive=True)
    async def update_results(self) -> None:
        query = self.query_one("#input-search", Input).value
        select = self.query_one("#select-category", Select)
        category_slug = None if select.is_blank() else select.value

        try:
            products = await db.crud.list_products(
                category_slug=category_slug, search=query
            )
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to load products",
                e,
                f"Category: {category_slug}, Search: {query!r}",
                note="Could not load products.",
            )
            return

        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            price = format_money(p.price)
            if p.is_on_sale and p.original_price:
                price += f" (was {format_money(p.original_price)})"
            table.add_row(
                p.name,
                self._category_names.get(p.category_id, "-"),
                price,
                ", ".join(p.sizes) or "-",
                ", ".join(p.colors) or "-",
                p.stock_quantity if p.stock_quantity > 0 else "Sold out",
                key=str(p.id),
            )

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        product_id = int(event.row_key.value)
        if await self.app.push_screen_wait(ProdDetailModal(product_id)):
            self.post_message(CartChangedMessage())
