from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from db.models import CartLine
from utils.messages import CartChangedMessage, NewOrderMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal, OrderConfirmedModal


class CartLineActionMessage(Message):
    bubble = True

    def __init__(self, line_id: str, delta: int = 0, remove: bool = False) -> None:
        super().__init__()
        self.line_id = line_id
        self.delta = delta
        self.remove = remove


class CartLineActionLabel(Label):
    def __init__(self, line_id: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.line_id = line_id

    def action_decrement(self):
        self.post_message(CartLineActionMessage(self.line_id, delta=-1))

    def action_increment(self):
        self.post_message(CartLineActionMessage(self.line_id, delta=1))

    def action_remove(self):
        self.post_message(CartLineActionMessage(self.line_id, remove=True))


class CartLineWidget(HorizontalGroup):
    def __init__(self, line: CartLine):
        super().__init__()
        self.line = line

    def compose(self):
        line = self.line
        with Container(classes="div-cart-line"):
            with Container(classes="div-line-item"):
                yield Label(line.name, classes="label-line-name")
                yield Label(f"{line.size} / {line.color}", classes="label-line-variant")
                yield Label(f"x{line.quantity}", classes="label-line-qty")
                yield Label(format_money(line.line_total), classes="label-line-total")
            with Container(classes="div-line-actions"):
                yield CartLineActionLabel(line.line_id, "[@click=decrement()] - [/]")
                yield CartLineActionLabel(line.line_id, "[@click=increment()] + [/]")
                yield CartLineActionLabel(line.line_id, "[@click=remove()]Remove[/]")


class CartScreen(BaseScreen):
    """
    cart lines with quantity controls, clear and checkout
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self):
        self.render_cart()

    @on(CartChangedMessage)
    @on(ScreenResume)
    @work(exclusive=True)  # exclusive, or two refreshes could mount duplicates
    async def render_cart(self):
        cart = self.app.state.cart
        content = self.query_one("#vertscroll-content")
        shown = [child.line for child in content.children]
        if shown != list(cart.lines):
            await content.remove_children()
            await content.mount_all([CartLineWidget(line) for line in cart.lines])

        content.set_class(cart.is_empty(), "no-items")
        self.query_one("#label-cart-total", Label).update(
            f"Items: {cart.total_items}    Subtotal: {format_money(cart.total_price)}"
            if not cart.is_empty()
            else "Your cart is empty."
        )

    @on(CartLineActionMessage)
    @work()
    async def handle_line_action(self, message: CartLineActionMessage) -> None:
        cart = self.app.state.cart
        line = cart.get(message.line_id)
        if line is None:
            return

        if message.remove or line.quantity + message.delta <= 0:
            if not await self.app.push_screen_wait(
                DialogModal(
                    f"Remove {line.name} ({line.size}, {line.color}) from cart?",
                    primary_text="Yes",
                    secondary_text="No",
                    tone="warning",
                )
            ):
                return
            cart.remove_item(line.line_id)
            self.notify("Item removed from cart.", severity="information")
        else:
            cart.update_quantity(line.line_id, line.quantity + message.delta)

        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        cart = self.app.state.cart
        if cart.is_empty():
            self.app.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            cart.clear()
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if self.app.state.cart.is_empty():
            self.app.notify("Cart is empty.", severity="warning")
            return

        confirmation = await self.app.push_screen_wait(CheckoutModal())
        self.post_message(CartChangedMessage())
        if confirmation:
            self.app.post_message(NewOrderMessage(confirmation.order_number))
            await self.app.push_screen_wait(OrderConfirmedModal(confirmation))
