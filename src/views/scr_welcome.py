from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Label

from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal


class WelcomeScreen(BaseScreen):
    """
    Entry screen. Dismisses with the chosen side: "shopper" or "admin".
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Welcome", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-welcome"):
            yield Label("BREAD", id="label-brand")
            yield Label("Streetwear, freshly baked.", id="label-tagline")
            with Horizontal(id="div-welcome-btns"):
                yield Button("Quit", id="btn-quit")
                yield Button("Admin Panel", id="btn-admin", variant="warning")
                yield Button("Shop", id="btn-shop", variant="primary")

    def on_mount(self):
        self.query_one("#btn-shop").focus()

    @on(Button.Pressed, "#btn-shop")
    def handle_shop(self) -> None:
        self.dismiss("shopper")

    @on(Button.Pressed, "#btn-admin")
    def handle_admin(self) -> None:
        self.dismiss("admin")

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
