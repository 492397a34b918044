import asyncio
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

import api.consignments as consignments_api
import api.orders as orders_api
import api.wallets as wallets_api
from api.models import Order
from utils.config import settings
from utils.messages import NewOrderMessage, WalletChangedMessage
from utils.pure import format_date, format_vnd, generate_markdown_table, page_count
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal


class OrderHistoryScreen(BaseScreen):
    """
    Customers browse their orders (newest first) and drill into one.

    Layout:
    - Markdown detail view at the top: lines, wallet transactions, nurture details.
    - Orders table below, paged locally.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []
        self._selected: Optional[Order] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Cancel Order", id="btn-cancel-order", variant="error", disabled=True)
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Status", "Shipping Address", "Total")

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self):
        self._load_orders()

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        result = await wallets_api.get_order_history()
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self._orders = sorted(result.data, key=lambda o: o.order_date or "", reverse=True)
        self.page_cnt = page_count(len(self._orders), settings.page_size)
        if self.page_idx > self.page_cnt:
            self.page_idx = self.page_cnt
        else:
            self._fill_table()

    def _fill_table(self) -> None:
        start = (self.page_idx - 1) * settings.page_size
        page = self._orders[start : start + settings.page_size]

        table = self.query_one(DataTable)
        table.clear()
        for o in page:
            table.add_row(
                o.id,
                format_date(o.order_date),
                o.status.label,
                o.shipping_address or "-",
                format_vnd(o.total_amount),
                key=str(o.id),
            )
        self.query_one("#label-total-page-cnt", Label).content = f" / {self.page_cnt}"
        self._refresh_buttons()
        if page:
            table.cursor_coordinate = (0, 0)
            self._load_and_render_detail(page[0].id)
        else:
            self._render_detail(None, [], {})

    def watch_page_idx(self, old: int, new: int) -> None:
        self.query_one("#input-page", Input).value = str(new)
        self._fill_table()

    def _refresh_buttons(self) -> None:
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, ev: Input.Changed) -> None:
        if ev.value and ev.value.isdigit():
            new_idx = max(1, min(int(ev.value), self.page_cnt))
            if new_idx != self.page_idx:
                self.page_idx = new_idx

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is not None and event.row_key.value is not None:
            self._load_and_render_detail(int(event.row_key.value))

    @work(exclusive=True, group="detail")
    async def _load_and_render_detail(self, order_id: int) -> None:
        order = next((o for o in self._orders if o.id == order_id), None)
        if order is None:
            self._render_detail(None, [], {})
            return

        tx_result = await wallets_api.get_order_transactions(order_id)
        nurture_ids = [d.consignment_id for d in order.details if d.consignment_id]
        nurture_results = await asyncio.gather(
            *(consignments_api.get_details(cid) for cid in nurture_ids)
        )
        nurtures = {
            cid: r.data for cid, r in zip(nurture_ids, nurture_results) if r.is_success
        }
        self._render_detail(order, tx_result.data if tx_result.is_success else [], nurtures)

    def _render_detail(self, order: Order | None, transactions, nurtures) -> None:
        self._selected = order
        self.query_one("#btn-cancel-order", Button).disabled = not (
            order and order.status.is_pending
        )
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if not order:
            viewer.document.update("### Select an order to view its details.")
            return

        header = (
            f"### Order #{order.id} ({order.status.label})\n"
            f"Date: {format_date(order.order_date)}  \n"
            f"Ship To: {order.shipping_address or '-'}  \n"
            f"Payment: {order.payment_method or '-'}\n\n"
        )
        lines = generate_markdown_table(
            ["Koi", "Status", "Price", "Nurture"],
            [
                [
                    d.koi_fish.name if d.koi_fish else f"Koi #{d.koi_fish_id}",
                    d.status.label,
                    format_vnd(d.price),
                    self._nurture_cell(nurtures.get(d.consignment_id)),
                ]
                for d in order.details
            ],
            ["l", "l", "r", "l"],
        )
        md = header + lines + f"\n\n**Grand Total:** {format_vnd(order.total_amount)}"
        if transactions:
            md += "\n\n#### Wallet Transactions\n\n" + generate_markdown_table(
                ["Date", "Type", "Amount", "Status"],
                [
                    [
                        format_date(t.transaction_date),
                        t.transaction_type,
                        format_vnd(t.amount),
                        t.transaction_status,
                    ]
                    for t in transactions
                ],
                ["l", "l", "r", "l"],
            )
        viewer.document.update(md)

    @staticmethod
    def _nurture_cell(consignment) -> str:
        if consignment is None:
            return "-"
        return (
            f"{consignment.status.label}, {format_date(consignment.start_date)} to "
            f"{format_date(consignment.end_date)} ({format_vnd(consignment.projected_cost)})"
        )

    @on(Button.Pressed, "#btn-cancel-order")
    @work()
    async def handle_cancel_order(self) -> None:
        order = self._selected
        if not order or not order.status.is_pending:
            return
        if not await self.app.push_screen_wait(
            ConfirmModal(f"Cancel order #{order.id}?", tone="error")
        ):
            return
        result = await orders_api.cancel_pending_order(order.id)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Order cancelled successfully.")
        self.app.post_message(WalletChangedMessage())
        self._load_orders()
