from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer

import api.consignments as consignments_api
import api.diets as diets_api
import api.orders as orders_api
from api.models import OrderDetail
from api.statuses import STAFF_ACTION_LABELS
from utils.pure import format_date, format_vnd, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal


class StaffTasksScreen(BaseScreen):
    """
    Order lines assigned to the logged-in staff member. The one action a line
    allows next is offered on a single button.
    """

    def __init__(self) -> None:
        super().__init__()
        self._tasks: List[OrderDetail] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-tasks", cursor_type="row", zebra_stripes=True)
            yield MarkdownViewer(id="md-task", show_table_of_contents=False)
            with Horizontal(classes="hort-crud"):
                yield Button("Refresh", id="btn-refresh")
                yield Button("No action", id="btn-next-action", variant="primary", disabled=True)

    def on_mount(self) -> None:
        self.query_one(DataTable).add_columns("Line", "Order", "Koi", "Price", "Status")

    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="tasks")
    async def handle_reload(self) -> None:
        uid = self.app.state.uid
        if uid is None:
            return
        result = await orders_api.list_staff_tasks(uid)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        # open work first
        self._tasks = sorted(result.data, key=lambda d: (d.status.next_staff_action is None, d.id))
        table = self.query_one(DataTable)
        table.clear()
        for d in self._tasks:
            table.add_row(
                d.id,
                f"#{d.order_id}" if d.order_id else "-",
                d.koi_fish.name if d.koi_fish else f"Koi #{d.koi_fish_id}",
                format_vnd(d.price),
                d.status.label,
                key=str(d.id),
            )
        if not self._tasks:
            await self._show(None)

    def _current(self) -> Optional[OrderDetail]:
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return next((d for d in self._tasks if str(d.id) == row_key.value), None)

    @on(DataTable.RowHighlighted)
    @work(exclusive=True, group="detail")
    async def handle_highlight(self) -> None:
        await self._show(self._current())

    async def _show(self, task: Optional[OrderDetail]) -> None:
        button = self.query_one("#btn-next-action", Button)
        action = task.status.next_staff_action if task else None
        button.label = STAFF_ACTION_LABELS[action] if action else "No action"
        button.disabled = action is None

        viewer = self.query_one(MarkdownViewer)
        if task is None:
            await viewer.document.update("### No task selected.")
            return
        md = f"### Line #{task.id} ({task.status.label})\n\n"
        koi = task.koi_fish
        if koi:
            md += generate_markdown_table(
                None,
                [
                    ["Koi", koi.name],
                    ["Breed", ", ".join(koi.breed_names) or "-"],
                    ["Length", f"{koi.length} cm" if koi.length else "-"],
                    ["Daily feed", f"{koi.daily_feed_amount} g" if koi.daily_feed_amount else "-"],
                ],
                ["l", "l"],
            )
        if task.consignment_id:
            result = await consignments_api.get_details(task.consignment_id)
            if result.is_success:
                c = result.data
                diet = await diets_api.get_diet_by_id(c.diet_id) if c.diet_id else None
                md += (
                    "\n\n#### Nurture\n\n"
                    f"- Diet: {diet.data.name if diet and diet.is_success else '-'}\n"
                    f"- Period: {format_date(c.start_date)} to {format_date(c.end_date)}\n"
                    f"- Status: {c.status.label}\n"
                    f"- Note: {c.note or '-'}\n"
                )
        await viewer.document.update(md)

    @on(Button.Pressed, "#btn-next-action")
    @work(exclusive=True, group="action")
    async def handle_next_action(self) -> None:
        task = self._current()
        action = task.status.next_staff_action if task else None
        if action is None:
            return
        label = STAFF_ACTION_LABELS[action]
        if not await self.app.push_screen_wait(
            ConfirmModal(f"{label} for line #{task.id}?", tone="positive")
        ):
            return
        result = await orders_api.run_staff_action(task.id, action)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or f"{label} done.")
        self.handle_reload()
