from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, Select

import api.breeds as breeds_api
import api.fish as fish_api
from utils.config import settings
from utils.pure import format_vnd, page_count
from views.base_screen import BaseScreen
from views.modal_koi_detail import KoiDetailModal


class KoiSearchScreen(BaseScreen):
    """
    Koi catalogue: search by name, filter by breed and price, paged.
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("enter", "noop", "View Koi", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self):
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Input(id="input-search", placeholder="Search koi by name...")
        with Horizontal(id="hort-filters"):
            yield Select([], prompt="All breeds", id="select-breed")
            yield Input(
                placeholder="Min price",
                id="input-min-price",
                type="integer",
                validators=[Number(minimum=0)],
            )
            yield Input(
                placeholder="Max price",
                id="input-max-price",
                type="integer",
                validators=[Number(minimum=0)],
            )
            yield Select(
                [(label, expr) for label, expr in fish_api.SORT_OPTIONS.items()],
                prompt="Sort",
                id="select-sort",
            )
        yield DataTable(id="table-search-result")
        with Horizontal(id="hort-table-control"):
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Breeds", "Gender", "Length (cm)", "Price")

        self.load_breeds()
        self.update_search_result()
        self.query_one("#input-search").focus()

    @work(exclusive=True, group="breeds")
    async def load_breeds(self) -> None:
        result = await breeds_api.get_all()
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.query_one("#select-breed", Select).set_options(
            [(b.name, b.id) for b in result.data if not b.is_deleted]
        )

    def _int_or_none(self, input_id: str) -> Optional[int]:
        field = self.query_one(input_id, Input)
        if field.value.strip() and field.is_valid:
            return int(field.value)
        return None

    def _search(self) -> fish_api.FishSearch:
        breed = self.query_one("#select-breed", Select)
        sort = self.query_one("#select-sort", Select)
        return fish_api.FishSearch(
            page_number=self.page_idx,
            page_size=settings.page_size,
            search_term=self.query_one("#input-search", Input).value,
            koi_breed_id=None if breed.is_blank() else breed.value,
            min_price=self._int_or_none("#input-min-price"),
            max_price=self._int_or_none("#input-max-price"),
            sort_by=None if sort.is_blank() else sort.value,
        )

    @on(Input.Changed, "#input-search")
    @on(Input.Changed, "#input-min-price")
    @on(Input.Changed, "#input-max-price")
    @on(Select.Changed)
    def handle_filter_change(self) -> None:
        if self.page_idx != 1:
            self.page_idx = 1  # watcher reloads
        else:
            self.update_search_result()

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, ev: Input.Changed) -> None:
        if ev.value and ev.value.isdigit():
            new_idx = max(1, min(int(ev.value), self.page_cnt))
            if new_idx != self.page_idx:
                self.page_idx = new_idx

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    def watch_page_idx(self, _, new_page_idx):
        self.query_one("#input-page", Input).value = str(new_page_idx)
        self.update_search_result()

    def _refresh_buttons(self) -> None:
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]

    @work(exclusive=True, group="search")
    async def update_search_result(self) -> None:
        result = await fish_api.search_or_fail(self._search())
        table = self.query_one(DataTable)
        table.clear()
        if not result.is_success:
            self.notify(result.message, severity="error")
            return

        page = result.data
        for koi in page.value:
            table.add_row(
                koi.id,
                koi.name,
                ", ".join(koi.breed_names) or "-",
                koi.gender or "-",
                koi.length if koi.length is not None else "-",
                format_vnd(koi.price),
                key=str(koi.id),
            )
        self.page_cnt = page_count(page.total, settings.page_size)
        self.query_one("#label-total-page-cnt", Label).content = f" / {self.page_cnt}"
        self._refresh_buttons()

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        await self.app.push_screen_wait(KoiDetailModal(int(event.row_key.value)))
