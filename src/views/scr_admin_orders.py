from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, MarkdownViewer, Select

import db.crud as crud
from db.models import ORDER_STATUSES, Order
from utils.messages import NewOrderMessage
from utils.pure import format_money, generate_markdown_table
from views.base_screen import STORE_ERRORS, BaseScreen

STATUS_OPTIONS = [(s.capitalize(), s) for s in ORDER_STATUSES]


class AdminOrdersScreen(BaseScreen):
    """
    Orders newest first with a status filter.

    Layout:
    - Markdown detail of the highlighted order at the top.
    - Orders table below.
    - Status picker to move the highlighted order along.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    selected_number = reactive[Optional[str]](None)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield Select(STATUS_OPTIONS, prompt="All statuses", id="select-filter")
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Select(STATUS_OPTIONS, prompt="Set status", id="select-status")
            yield Button("Update Status", id="btn-update", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Customer", "Items", "Total", "Status")
        self._load_orders()

    def action_noop(self) -> None:
        pass

    @on(Button.Pressed, "#btn-refresh")
    @on(Select.Changed, "#select-filter")
    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self) -> None:
        self._load_orders()

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        select = self.query_one("#select-filter", Select)
        status = None if select.is_blank() else select.value
        try:
            orders = await crud.list_orders(status)
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to load orders",
                e,
                f"Status: {status}",
                note="Could not load orders.",
            )
            return

        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                o.order_number,
                o.created_at,
                o.customer_name,
                sum(item.quantity for item in o.items),
                format_money(o.total_amount),
                o.status,
                key=o.order_number,
            )
        numbers = [o.order_number for o in orders]
        if numbers:
            # stay on the same order across refreshes
            row = numbers.index(self.selected_number) if self.selected_number in numbers else 0
            table.cursor_coordinate = (row, 0)
            self.selected_number = numbers[row]
        else:
            self.selected_number = None
        self._load_detail()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        self.selected_number = event.row_key.value
        self._load_detail()

    @work(exclusive=True, group="detail")
    async def _load_detail(self) -> None:
        number = self.selected_number
        try:
            order = await crud.get_order(number) if number else None
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to load order",
                e,
                f"Order: {number}",
                note="Could not load the order.",
            )
            order = None
        if order:
            self.query_one("#select-status", Select).value = order.status
        await self.query_one("#md-order-detail", MarkdownViewer).document.update(
            self._render_detail(order)
        )

    def _render_detail(self, order: Optional[Order]) -> str:
        if not order:
            return "### Select an order to view its details."

        addr = order.shipping_address
        header = (
            f"### Order {order.order_number}\n"
            f"Placed: {order.created_at}  \n"
            f"Status: **{order.status}** (updated {order.updated_at})  \n"
            f"Customer: {order.customer_name} <{order.customer_email}>  \n"
            f"Phone: {addr.phone}  \n"
            f"Ship To: {addr.address}, {addr.city}, {addr.postal_code}\n\n"
        )
        if addr.notes:
            header += f"Notes: {addr.notes}\n\n"
        rows = [
            [
                item.name,
                item.size,
                item.color,
                item.quantity,
                format_money(item.unit_price),
                format_money(item.unit_price * item.quantity),
            ]
            for item in order.items
        ]
        table = generate_markdown_table(
            ["Product", "Size", "Colour", "Qty", "Unit Price", "Line Total"],
            rows,
            ["l", "l", "l", "r", "r", "r"],
        )
        return header + table + f"\n\n**Total:** {format_money(order.total_amount)}"

    @on(Button.Pressed, "#btn-update")
    @work(exclusive=True)
    async def handle_update(self) -> None:
        number = self.selected_number
        status_select = self.query_one("#select-status", Select)
        if not number:
            self.notify("Select an order first.", severity="warning")
            return
        if status_select.is_blank():
            self.notify("Pick a status.", severity="warning")
            return

        status = status_select.value
        try:
            updated = await crud.update_order_status(number, status)
        except STORE_ERRORS as e:
            self.store_failed(
                "Order status update failed",
                e,
                f"Order: {number}, Status: {status}",
                note="Update failed.",
            )
        else:
            if updated:
                self.notify(f"Order {number} is now {status}.")
            else:
                self.notify("Update failed.", severity="error")
        self._load_orders()
