from datetime import date
from typing import Callable, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, Vertical, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Input, Label, Rule, Select, Switch

import api.diets as diets_api
from api.models import Diet
from cart import consignment
from cart.errors import CartConflictError
from cart.models import CartItem, DateRange
from cart.pricing import consignment_price, duration, format_vnd, subtotal
from cart.store import clear_cart, get_cart, remove_from_cart, update_item
from utils.messages import CartChangedMessage, NewOrderMessage
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal


class CartItemActionRemoveMessage(Message):
    bubble = True

    def __init__(self, item: CartItem) -> None:
        super().__init__()
        self.item = item


class CartItemActionLabel(Label):
    def __init__(self, item: CartItem, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.item = item

    def action_remove(self):
        self.post_message(CartItemActionRemoveMessage(self.item))


def _parse_day(text: str) -> Optional[date]:
    """None for blank input; raises ValueError on anything but YYYY-MM-DD."""
    text = text.strip()
    if not text:
        return None
    return date.fromisoformat(text)


class CartItemWidget(HorizontalGroup):
    """
    One cart line. Edits are written straight to the cart store; the screen
    redraws totals when the store reports the change.
    """

    def __init__(self, item: CartItem, diets: List[Diet]):
        super().__init__()
        self.item = item
        self.diets = diets

    def compose(self):
        config = self.item.consignment
        rng = config.date_range if config else None
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.name, id="label-item-name")
                yield Label(", ".join(self.item.breeds) or "-", id="label-item-breeds")
                yield Label(format_vnd(self.item.price), id="label-item-price")
                yield Label(f"x{self.item.quantity}", id="label-item-qty")
            with Container(id="div-actions"):
                yield Label("Nurture", id="label-consign")
                yield Switch(value=self.item.consign, id="switch-consign")
                yield CartItemActionLabel(
                    self.item, "[@click=remove()]Remove[/]", id="link-item-remove"
                )
            with Vertical(id="div-consign"):
                with Horizontal():
                    yield Select(
                        [(f"{d.name} ({format_vnd(d.diet_cost)}/day)", d.id) for d in self.diets],
                        prompt="Choose a diet",
                        value=config.diet_id if config and config.diet_id else Select.BLANK,
                        id="select-diet",
                    )
                    yield Input(
                        value=consignment.nurture_start(date.today()).isoformat(),
                        id="input-from",
                        disabled=True,
                    )
                    yield Input(
                        value=rng.end.isoformat() if rng and rng.end else "",
                        placeholder="Until YYYY-MM-DD",
                        id="input-to",
                    )
                yield Input(
                    value=(config.note or "") if config else "",
                    placeholder="Note for the nurture staff",
                    id="input-note",
                )
                yield Label("", id="label-consign-price")

    def on_mount(self):
        self.show_item(self.item)

    def show_item(self, item: CartItem) -> None:
        """Refresh labels for an updated version of the same line."""
        self.item = item
        self.query_one("#label-item-qty", Label).update(f"x{item.quantity}")
        self.query_one("#div-consign").display = item.consign
        price_label = self.query_one("#label-consign-price", Label)
        if not item.consign:
            return
        missing = consignment.missing_fields(item.consignment)
        if missing:
            price_label.update("Missing: " + ", ".join(missing))
            price_label.add_class("-incomplete")
        else:
            days = duration(item.consignment.date_range)
            price_label.update(
                f"{days} day(s), nurture cost {format_vnd(consignment_price(item, self.diets))}"
            )
            price_label.remove_class("-incomplete")

        # the default range is set on toggle, show it unless the user is typing
        rng = item.consignment.date_range if item.consignment else None
        to_input = self.query_one("#input-to", Input)
        if rng and rng.end and not to_input.has_focus and to_input.value != rng.end.isoformat():
            to_input.value = rng.end.isoformat()

    async def _save(self, edit: Callable[[CartItem], CartItem]) -> None:
        """Apply `edit` to the stored version of this line."""
        try:
            await update_item(self.item.id, edit)
        except CartConflictError:
            self.notify("The cart is busy, please try again.", severity="error")

    @on(Switch.Changed, "#switch-consign")
    async def handle_toggle(self, event: Switch.Changed) -> None:
        wanted = event.value
        if wanted == self.item.consign:
            return
        today = date.today()
        await self._save(
            lambda i: consignment.toggle_consignment(i, today) if i.consign != wanted else i
        )

    @on(Select.Changed, "#select-diet")
    async def handle_diet(self, event: Select.Changed) -> None:
        diet_id = 0 if event.select.is_blank() else int(event.value)
        config = self.item.consignment
        if config is None or config.diet_id != diet_id:
            await self._save(lambda i: consignment.set_diet(i, diet_id))

    @on(Input.Changed, "#input-to")
    async def handle_end_date(self, event: Input.Changed) -> None:
        try:
            end = _parse_day(event.value)
        except ValueError:
            event.input.add_class("-invalid")
            return
        event.input.remove_class("-invalid")

        today = date.today()
        new_range = consignment.clamp_range(DateRange(None, end), today)
        if end is not None and new_range.end != end:
            self.notify(
                f"Nurture starts tomorrow and lasts at most {consignment.MAX_NURTURE_DAYS} days.",
                severity="warning",
            )
            # rewriting the value fires Changed again with the clamped date
            event.input.value = new_range.end.isoformat()
            return

        config = self.item.consignment
        if config is None or config.date_range != new_range:
            await self._save(lambda i: consignment.set_end_date(i, end, today))

    @on(Input.Changed, "#input-note")
    async def handle_note(self, event: Input.Changed) -> None:
        note = event.value.strip() or None
        config = self.item.consignment
        if config is None or config.note != note:
            await self._save(lambda i: consignment.set_note(i, note))


class CartScreen(BaseScreen):
    """
    cart lines with per-koi nurture settings, plus checkout
    """

    def __init__(self) -> None:
        super().__init__()
        self._diets: List[Diet] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Subtotal: 0 ₫", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self):
        self.load_diets()

    @work(exclusive=True, group="diets")
    async def load_diets(self) -> None:
        result = await diets_api.get_diet_list()
        if result.is_success:
            self._diets = result.data
        else:
            self.notify(result.message, severity="error")
        await self._render_cart(rebuild=True)

    @on(CartChangedMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)  # must be exclusive, two renders would duplicate rows
    async def handle_cart_change(self):
        await self._render_cart(rebuild=False)

    async def _render_cart(self, rebuild: bool) -> None:
        cart_items = await get_cart()
        content = self.query_one("#vertscroll-content")
        widgets = list(content.query(CartItemWidget))

        if not rebuild and [w.item.id for w in widgets] == [i.id for i in cart_items]:
            # same lines, redraw in place so focus stays in the edited field
            for widget, item in zip(widgets, cart_items):
                widget.show_item(item)
        else:
            await content.remove_children()
            await content.mount_all([CartItemWidget(item, self._diets) for item in cart_items])

        content.set_class(not cart_items, "no-items")
        self.query_one("#label-cart-total", Label).update(
            f"Subtotal: {format_vnd(subtotal(cart_items, self._diets))}"
        )

    @on(CartItemActionRemoveMessage)
    @work()
    async def handle_remove_item(self, message: CartItemActionRemoveMessage):
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Remove {message.item.name} from the cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return
        await remove_from_cart(message.item.id)
        self.notify("Koi removed from cart.", severity="information")

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if not await get_cart():
            self.app.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all koi from the cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            await clear_cart()

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if not await get_cart():
            self.app.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(CheckoutModal(self._diets)):
            self.app.post_message(NewOrderMessage())
        self.handle_cart_change()
