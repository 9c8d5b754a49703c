from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, Checkbox, DataTable, Input, Select

import db.crud as crud
from views.base_screen import STORE_ERRORS, BaseScreen
from views.modal_dialog import DialogModal
from views.scr_gallery import MEDIA_CATEGORIES


class AdminMediaScreen(BaseScreen):
    """
    Gallery management: list, add and delete media items.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-media")
            with Horizontal(id="hort-media-form"):
                yield Input(placeholder="Title *", id="input-title")
                yield Input(placeholder="Image URL *", id="input-image-url")
                yield Input(placeholder="Description", id="input-description")
                yield Select(
                    MEDIA_CATEGORIES,
                    value="lookbook",
                    allow_blank=False,
                    id="select-category",
                )
                yield Checkbox("Featured", id="chk-featured")
        with Horizontal(id="hort-buttons"):
            yield Button("Delete", id="btn-delete", variant="error")
            yield Button("Add Media", id="btn-add", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Title", "Category", "Featured", "Image", "Added")
        self._load_media()

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self._load_media()

    @work(exclusive=True, group="media")
    async def _load_media(self) -> None:
        try:
            items = await crud.list_media()
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to load media", e, note="Could not load media items."
            )
            return
        table = self.query_one(DataTable)
        table.clear()
        for m in items:
            table.add_row(
                m.id,
                m.title,
                m.category,
                "yes" if m.is_featured else "",
                m.image_url,
                m.created_at,
                key=str(m.id),
            )

    def _selected_id(self) -> Optional[int]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return int(row_key.value)

    @on(Button.Pressed, "#btn-add")
    @work(exclusive=True)
    async def handle_add(self) -> None:
        title_input = self.query_one("#input-title", Input)
        url_input = self.query_one("#input-image-url", Input)
        desc_input = self.query_one("#input-description", Input)

        for widget in (title_input, url_input):
            widget.set_class(not widget.value.strip(), "-invalid")
        if not (title_input.value.strip() and url_input.value.strip()):
            self.notify("Title and image URL are required.", severity="error")
            return

        try:
            await crud.add_media(
                title_input.value.strip(),
                url_input.value.strip(),
                description=desc_input.value.strip() or None,
                category=self.query_one("#select-category", Select).value,
                is_featured=self.query_one("#chk-featured", Checkbox).value,
            )
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to add media",
                e,
                f"Title: {title_input.value.strip()}",
                note="Could not add the media item.",
            )
            return
        self.notify(f"{title_input.value.strip()} added to the gallery.")
        for widget in (title_input, url_input, desc_input):
            widget.value = ""
        self.query_one("#chk-featured", Checkbox).value = False
        self._load_media()

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self) -> None:
        media_id = self._selected_id()
        if media_id is None:
            self.notify("Select a media item first.", severity="warning")
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                "Delete this media item?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return

        try:
            deleted = await crud.delete_media(media_id)
        except STORE_ERRORS as e:
            self.store_failed(
                "Failed to delete media", e, f"Media: {media_id}", note="Delete failed."
            )
        else:
            if deleted:
                self.notify("Media item deleted.")
            else:
                self.notify("Delete failed.", severity="error")
        self._load_media()
