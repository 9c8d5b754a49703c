from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, MarkdownViewer

from utils.dashboard import (
    TOP_PAGES_COUNT,
    TOP_PAGES_WINDOW,
    load_dashboard,
    recent_alerts,
)
from utils.messages import InboxChangedMessage, NewOrderMessage
from utils.pure import generate_markdown_table
from views.base_screen import BaseScreen


class DashboardScreen(BaseScreen):
    """
    Admin overview: counts, traffic and the most visited pages.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-dashboard", show_table_of_contents=False)
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh", variant="primary")

    def on_mount(self) -> None:
        self.handle_reload()

    @on(Button.Pressed, "#btn-refresh")
    @on(NewOrderMessage)
    @on(InboxChangedMessage)
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        stats = await load_dashboard()
        logs = await recent_alerts(limit=5)

        overview = generate_markdown_table(
            ["Metric", "Value"],
            [
                ["Products", stats.product_count],
                ["Media items", stats.media_count],
                ["Unread messages", stats.unread_messages],
                ["Orders", stats.order_count],
                ["Views today", stats.views_today],
                ["Views this week", stats.views_this_week],
            ],
            ["l", "r"],
        )
        if stats.top_pages:
            pages = generate_markdown_table(
                ["Page", "Views"], [list(p) for p in stats.top_pages], ["l", "r"]
            )
        else:
            pages = "No page views yet."
        if logs:
            recent = generate_markdown_table(
                ["When", "Level", "Title"],
                [[log.created_at, log.level, log.title] for log in logs],
            )
        else:
            recent = "Nothing logged."

        md = (
            "### Dashboard\n\n"
            + overview
            + f"\n\n### Top {TOP_PAGES_COUNT} pages (last {TOP_PAGES_WINDOW} views)\n\n"
            + pages
            + "\n\n### Recent alerts\n\n"
            + recent
        )
        await self.query_one("#md-dashboard", MarkdownViewer).document.update(md)
