import sqlite3

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import CartChangedMessage, LeaveSideMessage, ModeSwitchedMessage
from utils.notifier import notifier
from utils.pure import format_money, generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal

# what a failed store call raises
STORE_ERRORS = (sqlite3.Error, OSError)


def report_store_failure(
    node,
    title: str,
    error: BaseException,
    detail: str = "",
    note: str = "Something went wrong. Please try again.",
) -> None:
    """Alert the admins about a failed store call and tell the user."""
    message = f"{detail}, Error: {error!r}" if detail else f"Error: {error!r}"
    notifier.error(title, message, tags=("ui",))
    node.notify(note, severity="error")


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("Session", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Leave", id="btn-leave", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode

        if self.app.state.role == "shopper":
            menu = self.app.SHOP_MODES
        else:
            menu = self.app.ADMIN_MODES

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), id="list-menu-item-" + k) for k, v in menu.items()]
        )
        self.highlight_item(self.init_mode)
        await self.refresh_summary()

    async def refresh_summary(self) -> None:
        """Role plus, for shoppers, the live cart totals."""
        state = self.app.state
        if state.role == "shopper":
            rows = [
                ["Side", "Storefront"],
                ["Cart items", state.cart.total_items],
                ["Cart total", format_money(state.cart.total_price)],
            ]
        else:
            rows = [["Side", "Admin panel"]]
        await self.query_one("#md-userinfo", Markdown).update(
            generate_markdown_table(None, rows, ["l", "l"])
        )

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-leave")
    @work()
    async def handle_leave(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Go back to the welcome screen?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(LeaveSideMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure title, subtitle and whether the sidebar is shown
        """
        self.app.title = "BREAD"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                if k in self.app.ADMIN_MODES:
                    self.sub_title = "Admin · " + self.app.ADMIN_MODES[k]
                elif k in self.app.SHOP_MODES:
                    self.sub_title = self.app.SHOP_MODES[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(CartChangedMessage)
    @on(ScreenResume)
    async def handle_summary_refresh(self):
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_summary()

    def store_failed(self, title: str, error: BaseException, detail: str = "", **kwargs) -> None:
        report_store_failure(self, title, error, detail, **kwargs)

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
