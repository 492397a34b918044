from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Input, Label, Select, TabbedContent, TabPane

import api.images as images_api
import api.sale_requests as sale_requests_api
import api.withdrawals as withdrawals_api
from api.client import ApiError
from api.models import RequestForSale, WithdrawnRequest
from api.statuses import SaleRequestStatus
from utils.config import settings
from utils.pure import format_date, format_vnd, page_count
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal, PromptModal


class ManageRequestsScreen(BaseScreen):
    """
    Customer requests that need a manager's decision: koi offered for sale to
    the shop and wallet withdrawals. Only pending requests can be decided.
    """

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._sales: Dict[int, RequestForSale] = {}
        self._withdrawals: Dict[int, WithdrawnRequest] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="tabs-requests"):
            with TabPane("Sale Requests", id="tab-sales"):
                with Vertical():
                    with Horizontal(id="hort-search"):
                        yield Input(id="input-search", placeholder="Koi name...")
                        yield Select(
                            [(s.label, s.value) for s in SaleRequestStatus],
                            prompt="Any status",
                            id="select-status",
                        )
                    yield DataTable(id="table-sales", cursor_type="row", zebra_stripes=True)
                    with Horizontal(classes="hort-crud"):
                        yield Button("Approve", id="btn-approve-sale", variant="success")
                        yield Button("Reject", id="btn-reject-sale", variant="error")
                        yield Button("<", id="btn-prev")
                        yield Label("1 / 1", id="label-page")
                        yield Button(">", id="btn-next")
            with TabPane("Withdrawals", id="tab-withdrawals"):
                with Vertical():
                    yield DataTable(id="table-withdrawals", cursor_type="row", zebra_stripes=True)
                    with Horizontal(classes="hort-crud"):
                        yield Button("Approve", id="btn-approve-wd", variant="success")
                        yield Button("Reject", id="btn-reject-wd", variant="error")
                        yield Button("Refresh", id="btn-refresh-wd")

    def on_mount(self) -> None:
        self.query_one("#table-sales", DataTable).add_columns(
            "ID", "Koi", "Customer", "Asking price", "Status", "Updated", "Note"
        )
        self.query_one("#table-withdrawals", DataTable).add_columns(
            "ID", "Customer", "Amount", "Bank details", "Status", "Requested"
        )

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.load_sales()
        self.load_withdrawals()

    # sale requests

    @on(Input.Changed, "#input-search")
    @on(Select.Changed, "#select-status")
    def handle_filter(self) -> None:
        if self.page_idx != 1:
            self.page_idx = 1
        else:
            self.load_sales()

    def watch_page_idx(self) -> None:
        self.load_sales()

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @work(exclusive=True, group="sales")
    async def load_sales(self) -> None:
        select = self.query_one("#select-status", Select)
        query = sale_requests_api.build_query(
            page_number=self.page_idx,
            page_size=settings.page_size,
            status=None if select.is_blank() else SaleRequestStatus.decode(select.value),
            search_term=self.query_one("#input-search", Input).value,
        )
        try:
            page = await sale_requests_api.get_all(query)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        self.page_cnt = page_count(page.total, settings.page_size)
        self.query_one("#label-page", Label).update(f"{self.page_idx} / {self.page_cnt}")
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt

        table = self.query_one("#table-sales", DataTable)
        table.clear()
        self._sales = {r.id: r for r in page.value}
        for r in page.value:
            table.add_row(
                r.id,
                r.koi_fish.name if r.koi_fish else f"Koi #{r.koi_fish_id}",
                f"#{r.user_id}" if r.user_id else "-",
                format_vnd(r.price_dealed),
                r.status.label,
                format_date(r.modified_at or r.created_at),
                r.note or "",
                key=str(r.id),
            )

    def _selected_sale(self) -> Optional[RequestForSale]:
        table = self.query_one("#table-sales", DataTable)
        if not table.row_count:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        request = self._sales.get(int(row_key.value))
        if request and not request.status.is_pending:
            self.notify("Only pending requests can be decided.", severity="warning")
            return None
        return request

    @on(Button.Pressed, "#btn-approve-sale")
    @work(exclusive=True, group="action")
    async def handle_approve_sale(self) -> None:
        request = self._selected_sale()
        if request is None:
            return
        if not await self.app.push_screen_wait(
            ConfirmModal(
                f"Buy this koi for {format_vnd(request.price_dealed)}? The customer is paid to their wallet.",
                tone="positive",
            )
        ):
            return
        result = await sale_requests_api.approve(request.id)
        self._report(result, "Request approved.")
        self.load_sales()

    @on(Button.Pressed, "#btn-reject-sale")
    @work(exclusive=True, group="action")
    async def handle_reject_sale(self) -> None:
        request = self._selected_sale()
        if request is None:
            return
        reason = await self.app.push_screen_wait(
            PromptModal("Why is this request rejected?", confirm_text="Reject", tone="error")
        )
        if not reason:
            return
        result = await sale_requests_api.reject(request.id, reason)
        self._report(result, "Request rejected.")
        self.load_sales()

    # withdrawals

    @on(Button.Pressed, "#btn-refresh-wd")
    @work(exclusive=True, group="withdrawals")
    async def load_withdrawals(self) -> None:
        result = await withdrawals_api.get_all()
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        rows: List[WithdrawnRequest] = sorted(
            result.data, key=lambda w: (not w.status.is_pending, w.request_date or w.created_at or "")
        )
        table = self.query_one("#table-withdrawals", DataTable)
        table.clear()
        self._withdrawals = {w.id: w for w in rows}
        for w in rows:
            table.add_row(
                w.id,
                w.user_name or f"#{w.user_id}",
                format_vnd(w.amount),
                w.bank_note,
                w.status.label,
                format_date(w.request_date or w.created_at),
                key=str(w.id),
            )

    def _selected_withdrawal(self) -> Optional[WithdrawnRequest]:
        table = self.query_one("#table-withdrawals", DataTable)
        if not table.row_count:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        request = self._withdrawals.get(int(row_key.value))
        if request and not request.status.is_pending:
            self.notify("Only pending withdrawals can be decided.", severity="warning")
            return None
        return request

    @on(Button.Pressed, "#btn-approve-wd")
    @work(exclusive=True, group="action")
    async def handle_approve_withdrawal(self) -> None:
        request = self._selected_withdrawal()
        if request is None:
            return
        path = await self.app.push_screen_wait(
            PromptModal(
                f"Transfer {format_vnd(request.amount)} to: {request.bank_note}. "
                "Path of the transfer receipt image:",
                placeholder="/path/to/receipt.png",
                confirm_text="Approve",
                tone="positive",
            )
        )
        if not path:
            return
        upload = await images_api.upload_image(path)
        if not upload.is_success:
            self.notify(upload.message, severity="error")
            return
        result = await withdrawals_api.approve(request.id, upload.data)
        self._report(result, "Withdrawal approved.")
        self.load_withdrawals()

    @on(Button.Pressed, "#btn-reject-wd")
    @work(exclusive=True, group="action")
    async def handle_reject_withdrawal(self) -> None:
        request = self._selected_withdrawal()
        if request is None:
            return
        note = await self.app.push_screen_wait(
            PromptModal("Why is this withdrawal rejected?", confirm_text="Reject", tone="error")
        )
        if not note:
            return
        result = await withdrawals_api.reject(request.id, note)
        self._report(result, "Withdrawal rejected.")
        self.load_withdrawals()

    def _report(self, result, done: str) -> None:
        if result.is_success:
            self.notify(result.message or done)
        else:
            self.notify(result.message, severity="error")
