from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import MarkdownViewer, Select

import db.crud as crud
from views.base_screen import STORE_ERRORS, BaseScreen

MEDIA_CATEGORIES = [("Lookbook", "lookbook"), ("Events", "events")]


class GalleryScreen(BaseScreen):
    """
    Lookbook and event media, newest first. Featured items are starred.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Select(MEDIA_CATEGORIES, prompt="All media", id="select-media-category")
            yield MarkdownViewer(id="md-gallery", show_table_of_contents=False)

    def on_mount(self) -> None:
        self.handle_reload()

    @on(Select.Changed, "#select-media-category")
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        select = self.query_one("#select-media-category", Select)
        category = None if select.is_blank() else select.value
        try:
            items = await crud.list_media(category)
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to load gallery",
                e,
                f"Category: {category}",
                note="Could not load the gallery.",
            )
            return

        if not items:
            md = "### Gallery\n\nNothing here yet."
        else:
            blocks = []
            for m in items:
                star = " ★" if m.is_featured else ""
                block = f"#### {m.title}{star}\n\n_{m.category}_  \n{m.image_url}"
                if m.description:
                    block += f"\n\n{m.description}"
                blocks.append(block)
            md = "### Gallery\n\n" + "\n\n---\n\n".join(blocks)
        await self.query_one("#md-gallery", MarkdownViewer).document.update(md)
