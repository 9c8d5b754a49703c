from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer, Select

from db.crud import get_product
from db.models import Product
from utils.messages import CartChangedMessage
from utils.pure import format_money, generate_markdown_table
from views.base_screen import STORE_ERRORS, report_store_failure

NO_SIZE = "One Size"
NO_COLOR = "Default"


class ProdDetailModal(ModalScreen[bool]):
    """
    product detail with size/colour choice and quantity
    Will return True if the cart changed, False if not
    """

    order_qty = reactive(1)

    def __init__(self, product_id: int) -> None:
        super().__init__()

        self._product_id = product_id
        self._prod: Product = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical(id="vert-prod-options"):
                yield Label("Size")
                yield Select([], prompt="Select a size", id="select-size")
                yield Label("Colour")
                yield Select([], prompt="Select a colour", id="select-color")
                yield Label("Quantity")
                with Horizontal(id="hort-qty"):
                    yield Button("-", id="btn-sub-qty")
                    yield Input(
                        value="1",
                        id="input-order-qty",
                        type="integer",
                        validators=[Number(minimum=1)],
                    )
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        try:
            self._prod = await get_product(self._product_id)
        except STORE_ERRORS as e:
            report_store_failure(
                self.app,
                "Failed to load product",
                e,
                f"Product: {self._product_id}",
                note="Could not load the product.",
            )
            self.dismiss(False)
            return
        if not self._prod:
            self.app.notify("Product not found.", severity="error")
            self.dismiss(False)
            return
        prod = self._prod

        rows = [
            ["Price", format_money(prod.price)],
            ["Description", prod.description],
            ["Sizes", ", ".join(prod.sizes) or NO_SIZE],
            ["Colours", ", ".join(prod.colors) or NO_COLOR],
            ["In stock", prod.stock_quantity],
            ["Image", prod.image_url],
        ]
        if prod.is_on_sale and prod.original_price:
            rows.insert(1, ["Was", format_money(prod.original_price)])
        md = f"### {prod.name}\n\n" + generate_markdown_table(
            ["Attribute", "Value"], rows, ["l", "l"]
        )
        await self.query_one(MarkdownViewer).document.update(md)

        size_select = self.query_one("#select-size", Select)
        color_select = self.query_one("#select-color", Select)
        size_select.set_options([(s, s) for s in prod.sizes])
        color_select.set_options([(c, c) for c in prod.colors])
        size_select.disabled = not prod.sizes
        color_select.disabled = not prod.colors

        if prod.stock_quantity < 1:
            order_btn = self.query_one("#btn-addcart", Button)
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Input.Changed, "#input-order-qty")
    def handle_qty_input(self, message: Input.Changed) -> None:
        if message.input.is_valid and message.value:
            self.order_qty = int(message.value)

    def watch_order_qty(self, qty: int) -> None:
        self.query_one("#btn-sub-qty", Button).disabled = qty <= 1
        qty_input = self.query_one("#input-order-qty", Input)
        if qty_input.value != str(qty):
            qty_input.value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        if self.order_qty > 1:
            self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    def _chosen(self, select_id: str, options, fallback: str):
        """Selected option, fallback when the product has none, None if unset."""
        if not options:
            return fallback
        select = self.query_one(select_id, Select)
        return None if select.is_blank() else select.value

    @on(Button.Pressed, "#btn-addcart")
    def handle_addcart(self):
        prod = self._prod
        size = self._chosen("#select-size", prod.sizes, NO_SIZE)
        if size is None:
            self.notify("Please select a size.", severity="warning")
            self.query_one("#select-size").focus()
            return
        color = self._chosen("#select-color", prod.colors, NO_COLOR)
        if color is None:
            self.notify("Please select a colour.", severity="warning")
            self.query_one("#select-color").focus()
            return
        qty_input = self.query_one("#input-order-qty", Input)
        if not qty_input.is_valid or not qty_input.value:
            qty_input.add_class("-invalid")
            self.notify("Quantity must be at least 1.", severity="error")
            return

        self.app.state.cart.add_item(
            product_id=prod.id,
            name=prod.name,
            unit_price=prod.price,
            image_url=prod.image_url,
            size=size,
            color=color,
            quantity=self.order_qty,
        )
        self.app.notify(f"{prod.name} ({size}, {color}) added to cart.")
        self.app.post_message(CartChangedMessage())
        self.dismiss(True)
