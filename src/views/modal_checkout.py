from dataclasses import replace
from typing import List

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer

import api.auth as auth
import api.fish as fish_api
from api.models import Diet
from cart.checkout import find_invalid_items, submit_order
from cart.errors import CartConflictError, CheckoutBlockedError
from cart.models import CartItem
from cart.pricing import consignment_price, duration, format_vnd, subtotal
from cart.store import get_cart, update_items
from utils.logger import get_logger
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal

_logger = get_logger(__name__)


class CheckoutModal(ModalScreen[bool]):
    """
    A modal screen for check out: order summary, shipping address and note.
    Return True when the order was placed, False otherwise.
    """

    def __init__(self, diets: List[Diet]):
        super().__init__()
        self._diets = diets
        self._items: List[CartItem] = []

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("Loading...", show_table_of_contents=False)
            yield Label("Shipping Address")
            yield Input(placeholder="123 Le Loi, District 1, Ho Chi Minh City", id="input-address-line")
            yield Label("Note")
            yield Input(placeholder="optional", id="input-order-note")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary", disabled=True)

    def on_mount(self):
        self.load_summary()

    @work(exclusive=True)
    async def load_summary(self) -> None:
        items = await get_cart()
        items = await self._refresh_from_backend(items)
        self._items = items

        user = await auth.cached_user()
        address = self.query_one("#input-address-line", Input)
        if user and user.address and not address.value:
            address.value = user.address

        await self.query_one(MarkdownViewer).document.update(self._summary_markdown(items))
        self.query_one("#btn-submit", Button).disabled = not items
        address.focus()

    async def _refresh_from_backend(self, items: List[CartItem]) -> List[CartItem]:
        """Pick up current names and prices; the cart may be days old."""
        fresh = await fish_api.get_many(i.id for i in items)

        def refresh(item: CartItem) -> CartItem:
            if item.id not in fresh:
                return item
            return replace(item, name=fresh[item.id].name, price=fresh[item.id].price)

        if all(refresh(i) == i for i in items):
            return items
        try:
            updated = await update_items(refresh)
        except CartConflictError:
            _logger.warning("Cart changed while refreshing prices, showing stored prices.")
            return items
        self.notify("Some prices were updated since the koi were added.", severity="warning")
        return updated

    def _summary_markdown(self, items: List[CartItem]) -> str:
        headers = ["Koi", "Price", "Nurture days", "Nurture cost", "Line total"]
        rows = []
        for item in items:
            nurture = consignment_price(item, self._diets) if item.consign else 0
            days = duration(item.consignment.date_range) if item.consign and item.consignment else 0
            rows.append(
                [
                    item.name,
                    format_vnd(item.price),
                    days if item.consign else "-",
                    format_vnd(nurture) if item.consign else "-",
                    format_vnd(item.price + nurture),
                ]
            )
        md = "### Order Summary\n\n" + generate_markdown_table(
            headers, rows, ["l", "r", "c", "r", "r"]
        )
        md += f"\n\n**Subtotal:** {format_vnd(subtotal(items, self._diets))}"
        invalid = find_invalid_items(items)
        if invalid:
            md += "\n\n> Nurture settings incomplete for: " + ", ".join(i.name for i in invalid)
        return md

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        address_input = self.query_one("#input-address-line", Input)
        address_line = address_input.value.strip()
        if not address_line:
            address_input.focus()
            address_input.add_class("-invalid")
            self.notify("Address line is required.", severity="error")
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? The amount is paid from your wallet.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        note = self.query_one("#input-order-note", Input).value.strip() or None
        try:
            result = await submit_order(self._items, address_line, note)
        except CheckoutBlockedError as e:
            self.notify(e.message, severity="error")
            return

        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Order placed.")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)
