from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Select

import api.orders as orders_api
import api.users as users_api
from api.models import Order, OrderDetail, User
from api.statuses import OrderDetailStatus, OrderStatus
from utils.messages import NewOrderMessage
from utils.pure import format_date, format_vnd
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal
from views.modal_form import FormField, FormModal


def filter_orders(orders: List[Order], status: Optional[OrderStatus], term: str) -> List[Order]:
    """Newest first, narrowed by status and a case-insensitive customer/address match."""
    term = term.strip().lower()
    picked = [
        o
        for o in orders
        if (status is None or o.status is status)
        and (
            not term
            or term in (o.user_name or "").lower()
            or term in (o.shipping_address or "").lower()
            or term == str(o.id)
        )
    ]
    return sorted(picked, key=lambda o: o.order_date or "", reverse=True)


class ManageOrdersScreen(BaseScreen):
    """
    All customer orders. Pick an order to see its lines, then approve or
    reject pending lines, hand a line to a staff member, or move it along.
    """

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []
        self._staff: Dict[int, User] = {}
        self._order: Optional[Order] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-search"):
                yield Input(id="input-search", placeholder="Customer, address or order no...")
                yield Select(
                    [(s.label, s.value) for s in OrderStatus],
                    prompt="Any status",
                    id="select-status",
                )
                yield Button("Refresh", id="btn-refresh")
            yield DataTable(id="table-orders", cursor_type="row", zebra_stripes=True)
            yield DataTable(id="table-details", cursor_type="row", zebra_stripes=True)
            with Horizontal(id="hort-detail-btns"):
                yield Button("Approve", id="btn-approve", variant="success")
                yield Button("Reject", id="btn-reject", variant="error")
                yield Button("Assign Staff", id="btn-assign", variant="primary")
                yield Button("Mark Shipping", id="btn-ship")
                yield Button("Complete", id="btn-complete")

    def on_mount(self) -> None:
        self.query_one("#table-orders", DataTable).add_columns(
            "Order No", "Date", "Customer", "Status", "Total"
        )
        self.query_one("#table-details", DataTable).add_columns(
            "Line", "Koi", "Price", "Status", "Staff", "Nurture"
        )
        self._refresh_buttons(None)
        self.load_staff()

    @work(group="staff")
    async def load_staff(self) -> None:
        result = await users_api.list_staff()
        if result.is_success:
            self._staff = {u.id: u for u in result.data}
        else:
            self.notify(result.message, severity="error")

    @on(ScreenResume)
    @on(NewOrderMessage)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="orders")
    async def handle_reload(self) -> None:
        result = await orders_api.list_orders()
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self._orders = result.data
        self._fill_orders()

    @on(Input.Changed, "#input-search")
    @on(Select.Changed, "#select-status")
    def handle_filter(self) -> None:
        self._fill_orders()

    def _fill_orders(self) -> None:
        select = self.query_one("#select-status", Select)
        status = None if select.is_blank() else OrderStatus.decode(select.value)
        term = self.query_one("#input-search", Input).value
        table = self.query_one("#table-orders", DataTable)
        table.clear()
        for o in filter_orders(self._orders, status, term):
            table.add_row(
                o.id,
                format_date(o.order_date),
                o.user_name or f"User #{o.user_id}",
                o.status.label,
                format_vnd(o.total_amount),
                key=str(o.id),
            )
        if not table.row_count:
            self._show_order(None)

    @on(DataTable.RowHighlighted, "#table-orders")
    def handle_order_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is not None and event.row_key.value is not None:
            order_id = int(event.row_key.value)
            self._show_order(next((o for o in self._orders if o.id == order_id), None))

    def _show_order(self, order: Optional[Order]) -> None:
        self._order = order
        table = self.query_one("#table-details", DataTable)
        table.clear()
        for d in order.details if order else []:
            staff = self._staff.get(d.staff_id) if d.staff_id else None
            table.add_row(
                d.id,
                d.koi_fish.name if d.koi_fish else f"Koi #{d.koi_fish_id}",
                format_vnd(d.price),
                d.status.label,
                (staff.full_name or staff.email) if staff else (f"#{d.staff_id}" if d.staff_id else "-"),
                f"#{d.consignment_id}" if d.consignment_id else "-",
                key=str(d.id),
            )
        self._refresh_buttons(self._current_detail())

    def _current_detail(self) -> Optional[OrderDetail]:
        table = self.query_one("#table-details", DataTable)
        if self._order is None or not table.row_count:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return next((d for d in self._order.details if str(d.id) == row_key.value), None)

    @on(DataTable.RowHighlighted, "#table-details")
    def handle_detail_highlight(self) -> None:
        self._refresh_buttons(self._current_detail())

    def _refresh_buttons(self, detail: Optional[OrderDetail]) -> None:
        status = detail.status if detail else None
        self.query_one("#btn-approve", Button).disabled = status is not OrderDetailStatus.PENDING
        self.query_one("#btn-reject", Button).disabled = status is not OrderDetailStatus.PENDING
        self.query_one("#btn-assign", Button).disabled = status not in (
            OrderDetailStatus.PENDING,
            OrderDetailStatus.GETTINGFISH,
        )
        self.query_one("#btn-ship", Button).disabled = status is not OrderDetailStatus.GETTINGFISH
        self.query_one("#btn-complete", Button).disabled = status not in (
            OrderDetailStatus.ISSHIPPING,
            OrderDetailStatus.ISNUTURING,
        )

    async def _after(self, result, done: str) -> None:
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or done)
        await self._reload_order()

    async def _reload_order(self) -> None:
        if self._order is None:
            return
        fresh = await orders_api.get_order(self._order.id)
        if not fresh.is_success:
            self.handle_reload()
            return
        self._orders = [fresh.data if o.id == fresh.data.id else o for o in self._orders]
        self._fill_orders()
        self._show_order(fresh.data)

    @on(Button.Pressed, "#btn-approve")
    @work(exclusive=True, group="action")
    async def handle_approve(self) -> None:
        detail = self._current_detail()
        if detail and detail.status.is_pending:
            await self._after(await orders_api.approve_detail(detail.id), "Line approved.")

    @on(Button.Pressed, "#btn-reject")
    @work(exclusive=True, group="action")
    async def handle_reject(self) -> None:
        detail = self._current_detail()
        if not detail or not detail.status.is_pending:
            return
        if await self.app.push_screen_wait(
            ConfirmModal(f"Reject line #{detail.id}? The customer is refunded.", tone="error")
        ):
            await self._after(await orders_api.reject_detail(detail.id), "Line rejected.")

    @on(Button.Pressed, "#btn-assign")
    @work(exclusive=True, group="action")
    async def handle_assign(self) -> None:
        detail = self._current_detail()
        if detail is None:
            return
        if not self._staff:
            self.notify("No staff accounts available.", severity="warning")
            return
        values = await self.app.push_screen_wait(
            FormModal(
                f"Assign line #{detail.id}",
                [
                    FormField(
                        "staff_id",
                        "Staff",
                        detail.staff_id or "",
                        kind="select",
                        choices=[(u.full_name or u.email, u.id) for u in self._staff.values()],
                    )
                ],
                submit_text="Assign",
            )
        )
        if values:
            await self._after(
                await orders_api.assign_staff(detail.id, int(values["staff_id"])), "Staff assigned."
            )

    @on(Button.Pressed, "#btn-ship")
    @work(exclusive=True, group="action")
    async def handle_ship(self) -> None:
        detail = self._current_detail()
        if detail and detail.status is OrderDetailStatus.GETTINGFISH:
            await self._after(await orders_api.ship_detail(detail.id), "Line is shipping.")

    @on(Button.Pressed, "#btn-complete")
    @work(exclusive=True, group="action")
    async def handle_complete(self) -> None:
        detail = self._current_detail()
        if detail is None:
            return
        if await self.app.push_screen_wait(ConfirmModal(f"Complete line #{detail.id}?", tone="positive")):
            await self._after(await orders_api.complete_detail(detail.id), "Line completed.")
