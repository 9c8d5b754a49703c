from typing import Dict, Literal, Tuple

from typing_extensions import override

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Markdown

from utils.checkout import OrderConfirmation
from utils.messages import QuitRequestedMessage
from utils.pure import format_money, generate_markdown_table

# EFT details shown after checkout; the order number is the payment reference
PAYMENT_DETAILS = {
    "Bank": "First National Bank",
    "Account Name": "BREAD Clothing",
    "Account Number": "62123456789",
    "Branch Code": "250655",
}


class DialogModal(ModalScreen[bool]):
    """
    A yes/no dialog. Dismisses with True for the primary button.
    """

    VARIANT_MAP: Dict[
        str, Tuple[Literal["primary", "default", "success", "warning", "error"], ...]
    ] = {
        "default": ("primary", "default"),
        "positive": ("success", "default"),
        "warning": ("warning", "default"),
        "error": ("error", "primary"),
    }

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: str = "",
        tone: Literal["default", "positive", "warning", "error"] = "default",
    ):
        super().__init__()
        self.caption = caption
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        with Container(id="div-dialog"):
            yield Label(self.caption, id="caption")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(
                        self.secondary_text,
                        variant=DialogModal.VARIANT_MAP[self.tone][1],
                        id="btn-secondary",
                    )
                yield Button(
                    self.primary_text,
                    variant=DialogModal.VARIANT_MAP[self.tone][0],
                    id="btn-primary",
                )

    def on_mount(self):
        # destructive prompts focus the safe answer
        if self.secondary_text and self.tone == "error":
            self.query_one("#btn-secondary").focus()
        else:
            self.query_one("#btn-primary").focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.dismiss(True)
        if event.button.id == "btn-secondary":
            self.dismiss(False)


class QuitDialogModal(DialogModal):
    def __init__(self):
        super().__init__("Are you sure you want to quit?", "Yes", "No", "error")

    @override
    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.post_message(QuitRequestedMessage())
            self.dismiss(True)
        else:
            self.dismiss(False)


class OrderConfirmedModal(ModalScreen[bool]):
    """
    Order number, amount due and the EFT instructions for paying it.
    """

    def __init__(self, confirmation: OrderConfirmation):
        super().__init__()
        self.confirmation = confirmation

    def compose(self) -> ComposeResult:
        with Container(id="div-dialog"):
            yield Markdown(self._render(), id="md-confirmation")
            with Horizontal(id="dialog"):
                yield Button("Continue Shopping", variant="success", id="btn-primary")

    def _render(self) -> str:
        number = self.confirmation.order_number
        amount = format_money(self.confirmation.total)
        rows = [[k, v] for k, v in PAYMENT_DETAILS.items()]
        rows += [["Reference", f"`{number}`"], ["Amount", f"**{amount}**"]]
        return (
            "### Order confirmed!\n\n"
            f"Order number: `{number}`  \n"
            f"Total: **{amount}**  \n"
            "Status: Awaiting payment\n\n"
            "#### Payment instructions\n\n"
            "Please make an EFT payment to the following account:\n\n"
            + generate_markdown_table(None, rows, ["l", "l"])
            + "\n\n**Important:** use your order number as the payment reference. "
            "Your order will be processed once payment is confirmed by our team."
        )

    def on_mount(self):
        self.query_one("#btn-primary").focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(True)
