from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, MarkdownViewer

import api.certificates as certificates_api
import api.fish as fish_api
from api.models import KoiFish
from cart.errors import CartConflictError
from cart.models import CartItem
from cart.store import add_to_cart, get_cart
from utils.pure import format_date, format_vnd, generate_markdown_table


def koi_markdown(koi: KoiFish, certificates=()) -> str:
    rows = [
        ["Name", koi.name],
        ["Breeds", ", ".join(koi.breed_names)],
        ["Origin", koi.origin],
        ["Gender", koi.gender],
        ["Date of birth", format_date(koi.dob)],
        ["Length (cm)", koi.length],
        ["Weight (kg)", koi.weight],
        ["Personality", koi.personality_traits],
        ["Daily feed (g)", koi.daily_feed_amount],
        ["Last health check", format_date(koi.last_health_check)],
        ["Price", format_vnd(koi.price)],
    ]
    md = f"### {koi.name}\n\n" + generate_markdown_table(["Attribute", "Value"], rows)
    if koi.image_url:
        md += f"\n\nImage: {koi.image_url}"
    if certificates:
        cert_rows = [[c.certificate_type, c.certificate_url] for c in certificates]
        md += "\n\n#### Certificates\n\n" + generate_markdown_table(["Type", "Link"], cert_rows)
    return md


class KoiDetailModal(ModalScreen[bool]):
    """
    Koi detail with certificates, plus add to cart.
    Will return true if the cart changed, false if not
    """

    def __init__(self, fish_id: int) -> None:
        super().__init__()
        self._fish_id = fish_id
        self._koi: KoiFish | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-koi-detail"):
            yield MarkdownViewer("Loading...", show_table_of_contents=False)
            with Vertical(id="vert-koi-actions"):
                yield Button("Add to Cart", id="btn-addcart", variant="primary", disabled=True)
                yield Button("Go Back", id="btn-quit")

    def on_mount(self):
        self.load_koi()

    @work(exclusive=True)
    async def load_koi(self) -> None:
        result = await fish_api.get_by_id(self._fish_id)
        if not result.is_success:
            self.notify(result.message, severity="error")
            self.dismiss(False)
            return
        self._koi = result.data

        certs = await certificates_api.get_by_koi_fish_id(self._fish_id)
        # certificates are optional decoration, a failure only hides them
        md = koi_markdown(self._koi, certs.data if certs.is_success else ())
        await self.query_one(MarkdownViewer).document.update(md)

        btn = self.query_one("#btn-addcart", Button)
        if self._koi.is_sold or self._koi.is_available_for_sale is False:
            btn.label = "Not for Sale"
            btn.variant = "warning"
            return
        if any(item.id == self._fish_id for item in await get_cart()):
            btn.label = "Add Again"
        btn.disabled = False
        btn.focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        try:
            await add_to_cart(CartItem.from_fish(self._koi))
        except CartConflictError:
            self.notify("The cart is busy, please try again.", severity="error")
            return
        self.app.notify(f"{self._koi.name} added to cart.")
        self.dismiss(True)
