from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer

from utils.checkout import ShippingForm, shipping_for, submit_order
from utils.errors import EmptyCartError, OrderSubmitError, ShippingFormError
from utils.messages import CartChangedMessage
from utils.pure import format_money, generate_markdown_table

# (field, label, placeholder)
FORM_FIELDS = [
    ("name", "Full Name *", "John Doe"),
    ("email", "Email *", "john@example.com"),
    ("phone", "Phone Number *", "071 234 5678"),
    ("address", "Street Address *", "123 Main Street"),
    ("city", "City *", "Johannesburg"),
    ("postal_code", "Postal Code *", "2000"),
    ("notes", "Order Notes (Optional)", "Special delivery instructions..."),
]


class CheckoutModal(ModalScreen):
    """
    Order summary plus the shipping form.
    Dismisses with an OrderConfirmation on success, None otherwise.
    """

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-checkout"):
            with VerticalScroll(id="vert-shipping-form"):
                for field, label, placeholder in FORM_FIELDS:
                    yield Label(label)
                    yield Input(placeholder=placeholder, id=f"input-{field}")
            with Vertical(id="vert-order-summary"):
                yield MarkdownViewer("", show_table_of_contents=False)
                with Horizontal():
                    yield Button("Back to Cart", id="btn-quit")
                    yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        cart = self.app.state.cart
        subtotal = cart.total_price
        shipping = shipping_for(subtotal)
        rows = [
            [
                f"{line.name} ({line.size}, {line.color})",
                line.quantity,
                format_money(line.line_total),
            ]
            for line in cart.lines
        ]
        md = "### Order Summary\n\n" + generate_markdown_table(
            ["Item", "Qty", "Price"], rows, ["l", "c", "r"]
        )
        md += (
            f"\n\nSubtotal: {format_money(subtotal)}  \n"
            f"Shipping: {'FREE' if shipping == 0 else format_money(shipping)}  \n"
            f"**Total: {format_money(subtotal + shipping)}**\n\n"
            "You will receive payment instructions after placing your order."
        )
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#input-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    def _read_form(self) -> ShippingForm:
        values = {
            field: self.query_one(f"#input-{field}", Input).value
            for field, _, _ in FORM_FIELDS
        }
        return ShippingForm(**values)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        for field, _, _ in FORM_FIELDS:
            self.query_one(f"#input-{field}", Input).remove_class("-invalid")

        submit_btn = self.query_one("#btn-submit", Button)
        submit_btn.disabled = True
        submit_btn.label = "Placing Order..."
        try:
            confirmation = await submit_order(self.app.state.cart, self._read_form())
        except ShippingFormError as e:
            for field in e.fields:
                self.query_one(f"#input-{field}", Input).add_class("-invalid")
            self.query_one(f"#input-{e.fields[0]}", Input).focus()
            self.notify(e.message, title="Check your details", severity="error")
        except EmptyCartError as e:
            self.notify(e.message, title="Cart is empty", severity="error")
            self.dismiss(None)
        except OrderSubmitError as e:
            self.notify(e.message, title="Order failed", severity="error")
        else:
            self.app.post_message(CartChangedMessage())
            self.notify(
                f"Your order {confirmation.order_number} has been received.",
                title="Order placed!",
            )
            self.dismiss(confirmation)
            return
        submit_btn.disabled = False
        submit_btn.label = "Place Order"

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
