from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer

import db.crud as crud
from db.models import ContactMessage
from utils.messages import InboxChangedMessage
from views.base_screen import STORE_ERRORS, BaseScreen


class AdminMessagesScreen(BaseScreen):
    """
    Contact form inbox. Opening a message marks it read.
    """

    def __init__(self) -> None:
        super().__init__()
        self._messages: Dict[int, ContactMessage] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-message", show_table_of_contents=False)
            yield DataTable(id="table-messages")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Mark Unread", id="btn-toggle-read")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("", "Received", "From", "Subject")
        self._load_messages()

    @on(Button.Pressed, "#btn-refresh")
    @on(InboxChangedMessage)
    @on(ScreenResume)
    def handle_refresh(self) -> None:
        self._load_messages()

    @work(exclusive=True, group="inbox")
    async def _load_messages(self) -> None:
        try:
            messages = await crud.list_messages()
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to load messages", e, note="Could not load the inbox."
            )
            return
        self._messages = {m.id: m for m in messages}

        table = self.query_one(DataTable)
        table.clear()
        for m in messages:
            table.add_row(
                "" if m.is_read else "●",
                m.created_at,
                f"{m.name} <{m.email}>",
                m.subject or "(no subject)",
                key=str(m.id),
            )
        self._render_message(self._selected())

    def _selected(self) -> Optional[ContactMessage]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._messages.get(int(row_key.value))

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self) -> None:
        self._render_message(self._selected())

    def _render_message(self, msg: Optional[ContactMessage]) -> None:
        toggle = self.query_one("#btn-toggle-read", Button)
        toggle.disabled = msg is None
        if msg is None:
            md = "### No message selected."
        else:
            toggle.label = "Mark Unread" if msg.is_read else "Mark Read"
            md = (
                f"### {msg.subject or '(no subject)'}\n"
                f"From: {msg.name} <{msg.email}>  \n"
                f"Received: {msg.created_at}\n\n"
                f"{msg.message}"
            )
        self.query_one("#md-message", MarkdownViewer).document.update(md)

    @on(DataTable.RowSelected)
    @work(exclusive=True)
    async def handle_open(self) -> None:
        msg = self._selected()
        if not msg or msg.is_read:
            return
        try:
            await crud.set_message_read(msg.id, True)
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to mark message read",
                e,
                f"Message: {msg.id}",
                note="Could not update the message.",
            )
            return
        self.post_message(InboxChangedMessage())

    @on(Button.Pressed, "#btn-toggle-read")
    @work(exclusive=True)
    async def handle_toggle_read(self) -> None:
        msg = self._selected()
        if msg is None:
            return
        try:
            changed = await crud.set_message_read(msg.id, not msg.is_read)
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to toggle message",
                e,
                f"Message: {msg.id}",
                note="Could not update the message.",
            )
            return
        if changed:
            self.notify("Marked as unread." if msg.is_read else "Marked as read.")
        self.post_message(InboxChangedMessage())
