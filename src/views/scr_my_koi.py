from datetime import date
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Label, MarkdownViewer, TabbedContent, TabPane

import api.consignments as consignments_api
import api.diets as diets_api
import api.fish as fish_api
import api.sale_requests as sale_requests_api
from api.client import ApiError
from api.models import KoiFish, RequestForSale
from cart.models import DateRange
from cart.pricing import duration
from utils.config import settings
from utils.pure import format_date, format_vnd, page_count
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal
from views.modal_form import FormField, FormModal
from views.modal_koi_detail import koi_markdown


class MyKoiScreen(BaseScreen):
    """
    Koi owned by the customer: send one to nurture, or offer it back to the shop.
    """

    req_page_idx = reactive(1)
    req_page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._koi: List[KoiFish] = []
        self._requests: List[RequestForSale] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="tabs-my-koi"):
            with TabPane("My Koi", id="tab-koi"):
                with Vertical():
                    yield MarkdownViewer(id="md-koi", show_table_of_contents=False)
                    yield DataTable(id="table-koi")
                    with Horizontal(id="hort-koi-actions"):
                        yield Button("Send to Nurture", id="btn-nurture", variant="primary")
                        yield Button("Cancel Nurture", id="btn-cancel-nurture", variant="error")
                        yield Button("Sell to Shop", id="btn-sell", variant="success")
                        yield Button("Edit", id="btn-edit-koi")
                        yield Button("Register Koi", id="btn-register-koi")
            with TabPane("Sale Requests", id="tab-requests"):
                with Vertical():
                    yield DataTable(id="table-requests")
                    with Horizontal(id="hort-table-control"):
                        yield Button("Cancel Request", id="btn-cancel-request", variant="error")
                        yield Button("<", id="btn-prev")
                        yield Label("1 / 1", id="label-page")
                        yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        koi_table = self.query_one("#table-koi", DataTable)
        koi_table.cursor_type = "row"
        koi_table.zebra_stripes = True
        koi_table.add_columns("ID", "Name", "Breeds", "Price", "Nurture")

        req_table = self.query_one("#table-requests", DataTable)
        req_table.cursor_type = "row"
        req_table.zebra_stripes = True
        req_table.add_columns("ID", "Koi", "Price Offered", "Status", "Note", "Updated")

    @on(ScreenResume)
    def handle_reload(self) -> None:
        self.load_koi()
        self.load_requests()

    # ---------------------------
    # Owned koi
    # ---------------------------

    @work(exclusive=True, group="koi")
    async def load_koi(self) -> None:
        result = await fish_api.list_mine()
        table = self.query_one("#table-koi", DataTable)
        table.clear()
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self._koi = result.data
        for koi in self._koi:
            nurture = koi.open_consignment
            table.add_row(
                koi.id,
                koi.name,
                ", ".join(koi.breed_names) or "-",
                format_vnd(koi.price),
                nurture.status.label if nurture else "-",
                key=str(koi.id),
            )
        if self._koi:
            self._show_koi(self._koi[0])
        else:
            self.query_one("#md-koi", MarkdownViewer).document.update("### You do not own any koi yet.")

    def _selected_koi(self) -> Optional[KoiFish]:
        table = self.query_one("#table-koi", DataTable)
        if table.row_count == 0:
            return None
        row = table.get_row_at(table.cursor_row)
        return next((k for k in self._koi if k.id == row[0]), None)

    @on(DataTable.RowHighlighted, "#table-koi")
    def handle_koi_highlight(self) -> None:
        koi = self._selected_koi()
        if koi:
            self._show_koi(koi)

    def _show_koi(self, koi: KoiFish) -> None:
        md = koi_markdown(koi, koi.certificates)
        nurture = koi.open_consignment
        if nurture:
            md += (
                f"\n\n#### Nurture ({nurture.status.label})\n\n"
                f"{format_date(nurture.start_date)} to {format_date(nurture.end_date)}, "
                f"{nurture.total_days} days, projected {format_vnd(nurture.projected_cost)}"
            )
        self.query_one("#md-koi", MarkdownViewer).document.update(md)
        self.query_one("#btn-nurture", Button).disabled = nurture is not None
        self.query_one("#btn-cancel-nurture", Button).disabled = not (
            nurture and nurture.status.is_pending
        )

    @on(Button.Pressed, "#btn-nurture")
    @work(exclusive=True, group="action")
    async def handle_nurture(self) -> None:
        koi = self._selected_koi()
        if not koi:
            return
        diets = await diets_api.get_diet_list()
        if not diets.is_success or not diets.data:
            self.notify(diets.message or "No diets available.", severity="error")
            return

        today = date.today().isoformat()
        values = await self.app.push_screen_wait(
            FormModal(
                f"Nurture {koi.name}",
                [
                    FormField(
                        "diet_id",
                        "Diet",
                        kind="select",
                        choices=[
                            (f"{d.name} ({format_vnd(d.diet_cost)}/day)", d.id) for d in diets.data
                        ],
                    ),
                    FormField("start", "From (YYYY-MM-DD)", value=today),
                    FormField("end", "To (YYYY-MM-DD)", placeholder=today),
                    FormField("note", "Note", required=False),
                ],
                submit_text="Send",
            )
        )
        if not values:
            return
        try:
            rng = DateRange(date.fromisoformat(values["start"]), date.fromisoformat(values["end"]))
        except ValueError:
            self.notify("Dates must be written as YYYY-MM-DD.", severity="error")
            return
        if duration(rng) <= 0:
            self.notify("The end date must not be before the start date.", severity="error")
            return

        result = await consignments_api.create(
            koi.id, values["diet_id"], rng.start, rng.end, values["note"]
        )
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Consignment created successfully.")
        self.load_koi()

    @on(Button.Pressed, "#btn-cancel-nurture")
    @work(exclusive=True, group="action")
    async def handle_cancel_nurture(self) -> None:
        koi = self._selected_koi()
        nurture = koi.open_consignment if koi else None
        if not nurture:
            return
        if not await self.app.push_screen_wait(
            ConfirmModal(f"Cancel the nurture of {koi.name}?", tone="error")
        ):
            return
        result = await consignments_api.cancel(nurture.id)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Consignment cancelled successfully.")
        self.load_koi()

    @on(Button.Pressed, "#btn-sell")
    @work(exclusive=True, group="action")
    async def handle_sell(self) -> None:
        koi = self._selected_koi()
        if not koi or self.app.state.uid is None:
            return
        values = await self.app.push_screen_wait(
            FormModal(
                f"Offer {koi.name} to the shop",
                [
                    FormField("price", "Asking price (₫)", value=koi.price, kind="integer", minimum=1),
                    FormField("note", "Note", required=False),
                ],
                submit_text="Send request",
            )
        )
        if not values:
            return
        result = await sale_requests_api.create(
            self.app.state.uid, koi.id, values["price"], values["note"]
        )
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Request for sale sent.")
        self.load_requests()

    @on(Button.Pressed, "#btn-edit-koi")
    @work(exclusive=True, group="action")
    async def handle_edit(self) -> None:
        koi = self._selected_koi()
        if not koi:
            return
        values = await self.app.push_screen_wait(
            FormModal(
                f"Edit {koi.name}",
                [
                    FormField("name", "Name", koi.name),
                    FormField("length", "Length (cm)", koi.length, kind="number", minimum=0, required=False),
                    FormField("weight", "Weight (kg)", koi.weight, kind="number", minimum=0, required=False),
                    FormField("traits", "Personality", koi.personality_traits, required=False),
                ],
            )
        )
        if not values:
            return
        changes = {"name": values["name"], "personalityTraits": values["traits"] or ""}
        if values["length"] is not None:
            changes["length"] = values["length"]
        if values["weight"] is not None:
            changes["weight"] = values["weight"]
        result = await fish_api.update_by_user(koi.id, fish_api.fish_payload(koi, **changes))
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Koi updated.")
        self.load_koi()

    @on(Button.Pressed, "#btn-register-koi")
    @work(exclusive=True, group="action")
    async def handle_register(self) -> None:
        """Add a koi bought elsewhere, so it can be nurtured or sold to the shop."""
        values = await self.app.push_screen_wait(
            FormModal(
                "Register a koi",
                [
                    FormField("name", "Name"),
                    FormField("origin", "Origin", required=False),
                    FormField(
                        "gender", "Gender", kind="select", choices=[("Male", "Male"), ("Female", "Female")]
                    ),
                    FormField("dob", "Date of birth (YYYY-MM-DD)", required=False),
                    FormField("length", "Length (cm)", kind="number", minimum=0, required=False),
                    FormField("weight", "Weight (kg)", kind="number", minimum=0, required=False),
                ],
                submit_text="Register",
            )
        )
        if not values:
            return
        result = await fish_api.create_by_user(
            {
                "name": values["name"],
                "origin": values["origin"] or "",
                "gender": values["gender"],
                "dob": values["dob"],
                "length": values["length"] or 0,
                "weight": values["weight"] or 0,
                "price": 0,
                "isAvailableForSale": False,
                "isSold": False,
                "koiBreedIds": [],
                "imageUrls": [],
            }
        )
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Koi registered.")
        self.load_koi()

    # ---------------------------
    # Sale requests
    # ---------------------------

    def watch_req_page_idx(self, _, __) -> None:
        self.load_requests()

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.req_page_idx > 1:
            self.req_page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.req_page_idx < self.req_page_cnt:
            self.req_page_idx += 1

    @work(exclusive=True, group="requests")
    async def load_requests(self) -> None:
        query = sale_requests_api.build_query(self.req_page_idx, settings.page_size)
        table = self.query_one("#table-requests", DataTable)
        try:
            page = await sale_requests_api.get_my_request_for_sales(query)
        except ApiError as e:
            self.notify(e.server_message or "Failed to load your requests.", severity="error")
            return
        table.clear()
        self._requests = page.value
        for r in self._requests:
            table.add_row(
                r.id,
                r.koi_fish.name if r.koi_fish else f"Koi #{r.koi_fish_id}",
                format_vnd(r.price_dealed),
                r.status.label,
                r.note or "",
                format_date(r.modified_at or r.created_at),
            )
        self.req_page_cnt = page_count(page.total, settings.page_size)
        self.query_one("#label-page", Label).update(f"{self.req_page_idx} / {self.req_page_cnt}")
        self.query_one("#btn-prev", Button).disabled = self.req_page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.req_page_idx >= self.req_page_cnt

    @on(Button.Pressed, "#btn-cancel-request")
    @work(exclusive=True, group="action")
    async def handle_cancel_request(self) -> None:
        table = self.query_one("#table-requests", DataTable)
        if table.row_count == 0:
            return
        request_id = table.get_row_at(table.cursor_row)[0]
        request = next((r for r in self._requests if r.id == request_id), None)
        if request is None or not request.status.is_pending:
            self.notify("Only pending requests can be cancelled.", severity="warning")
            return
        if not await self.app.push_screen_wait(ConfirmModal("Cancel this request?", tone="error")):
            return
        result = await sale_requests_api.cancel(request.id)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Request cancelled.")
        self.load_requests()
