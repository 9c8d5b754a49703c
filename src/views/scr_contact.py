import sqlite3

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label, TextArea

import db.crud as crud
from utils.messages import InboxChangedMessage
from utils.notifier import notifier
from utils.pure import is_valid_email
from views.base_screen import BaseScreen


class ContactScreen(BaseScreen):
    """
    Contact form. Messages land in the admin inbox.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="vert-contact-form"):
            yield Label("Name *")
            yield Input(placeholder="Your name", id="input-name")
            yield Label("Email *")
            yield Input(placeholder="you@example.com", id="input-email")
            yield Label("Subject")
            yield Input(placeholder="What's this about?", id="input-subject")
            yield Label("Message *")
            yield TextArea(id="textarea-message")
            with Horizontal(id="hort-buttons"):
                yield Button("Send Message", id="btn-send", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#input-name").focus()

    def _clear(self) -> None:
        for input_id in ("#input-name", "#input-email", "#input-subject"):
            self.query_one(input_id, Input).value = ""
        self.query_one("#textarea-message", TextArea).text = ""

    @on(Button.Pressed, "#btn-send")
    @work(exclusive=True)
    async def handle_send(self) -> None:
        name_input = self.query_one("#input-name", Input)
        email_input = self.query_one("#input-email", Input)
        subject = self.query_one("#input-subject", Input).value.strip()
        message_area = self.query_one("#textarea-message", TextArea)
        message = message_area.text.strip()

        for widget, value in (
            (name_input, name_input.value.strip()),
            (email_input, email_input.value.strip()),
            (message_area, message),
        ):
            widget.set_class(not value, "-invalid")
        if not (name_input.value.strip() and email_input.value.strip() and message):
            self.notify("Please fill in all required fields.", severity="error")
            return
        if not is_valid_email(email_input.value):
            email_input.add_class("-invalid")
            email_input.focus()
            self.notify("Please enter a valid email address.", severity="error")
            return

        send_btn = self.query_one("#btn-send", Button)
        send_btn.disabled = True
        try:
            await crud.insert_message(
                name_input.value.strip(),
                email_input.value.strip(),
                message,
                subject=subject or None,
            )
        except (sqlite3.Error, OSError) as e:
            notifier.error(
                "Contact form submission failed",
                f"From: {email_input.value.strip()}, Error: {e!r}",
                tags=("contact",),
            )
            self.notify(
                "Could not send your message. Please try again.", severity="error"
            )
        else:
            self._clear()
            self.app.post_message(InboxChangedMessage())
            self.notify("Message sent! We'll get back to you soon.")
        finally:
            send_btn.disabled = False
