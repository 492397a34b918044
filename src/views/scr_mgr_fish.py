from __future__ import annotations

from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer, OptionList, Switch

import api.breeds as breeds_api
import api.certificates as certificates_api
import api.fish as fish_api
import api.images as images_api
from api.models import CERTIFICATE_TYPES, KoiCertificate, KoiFish
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal, PromptModal
from views.modal_form import FormField, FormModal
from views.modal_koi_detail import koi_markdown


class ManageFishScreen(BaseScreen):
    """
    Managers search the whole inventory, then update price and availability,
    manage certificates, delete koi or add new ones.
    """

    current_koi: Optional[KoiFish] = None

    def __init__(self) -> None:
        super().__init__()
        self._certificates: List[KoiCertificate] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-search"):
                yield Input(id="input-search", placeholder="Search koi by name...")
                yield Button("New Koi", id="btn-new", variant="primary")
            yield OptionList(id="optlist-koi")
            yield MarkdownViewer(id="md-koi", show_table_of_contents=False)
            with Horizontal(id="hort-controls"):
                with Horizontal(id="div-new-inputs"):
                    with Vertical():
                        yield Label("Price (₫):")
                        yield Input(
                            id="input-price",
                            type="integer",
                            validators=[Number(minimum=0)],
                        )
                    with Vertical():
                        yield Label("For sale:")
                        yield Switch(id="switch-available")
                with Horizontal(id="div-button"):
                    yield Button("Update", id="btn-update", variant="success")
                    yield Button("Add Certificate", id="btn-add-cert")
                    yield Button("Remove Certificate", id="btn-del-cert", variant="warning")
                    yield Button("Delete", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        self.query_one("#input-search", Input).focus()
        self.query_one("#md-koi").add_class("hidden")
        self.query_one("#hort-controls").add_class("hidden")
        self.update_optlist("")

    @on(Input.Changed, "#input-search")
    def handle_search(self, message: Input.Changed) -> None:
        self.query_one("#optlist-koi").remove_class("hidden")
        self.update_optlist(message.value)

    def on_option_list_option_selected(self, message: OptionList.OptionSelected):
        self.render_koi(int(message.option.id))

        self.query_one("#optlist-koi").add_class("hidden")
        self.query_one("#md-koi").remove_class("hidden")
        self.query_one("#hort-controls").remove_class("hidden")

    @work(exclusive=True)
    async def update_optlist(self, query: str):
        """
        fill option list with search results
        """
        search = fish_api.FishSearch(search_term=query, page_size=50, only_available=False)
        result = await fish_api.search_or_fail(search)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return

        opt_list = self.query_one("#optlist-koi", OptionList)
        opt_list.clear_options()
        opt_list.add_options(
            [
                _option(koi)
                for koi in result.data.value
            ]
        )

    @work(exclusive=True, group="koi")
    async def render_koi(self, fish_id: int) -> None:
        result = await fish_api.get_by_id(fish_id)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.current_koi = result.data
        certs = await certificates_api.get_by_koi_fish_id(fish_id)
        self._certificates = certs.data if certs.is_success else []

        await self.query_one("#md-koi", MarkdownViewer).document.update(
            koi_markdown(self.current_koi, self._certificates)
        )
        # prefill inputs with current values for convenience
        self.query_one("#input-price", Input).value = str(self.current_koi.price)
        self.query_one("#switch-available", Switch).value = bool(
            self.current_koi.is_available_for_sale
        )
        self.query_one("#btn-del-cert", Button).disabled = not self._certificates

    @on(Button.Pressed, "#btn-update")
    @work(exclusive=True, group="action")
    async def handle_update(self) -> None:
        koi = self.current_koi
        if koi is None:
            return
        price_input = self.query_one("#input-price", Input)
        if not price_input.value or not price_input.is_valid:
            price_input.focus()
            price_input.add_class("-invalid")
            return

        new_price = int(price_input.value)
        available = self.query_one("#switch-available", Switch).value
        if new_price == koi.price and available == bool(koi.is_available_for_sale):
            self.notify("Nothing to update.", severity="warning")
            return

        result = await fish_api.update(
            koi.id, fish_api.fish_payload(koi, price=new_price, isAvailableForSale=available)
        )
        if result.is_success:
            self.notify(result.message or "Koi updated successfully.")
        else:
            self.notify(result.message, severity="error")
        self.render_koi(koi.id)

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="action")
    async def handle_delete(self) -> None:
        koi = self.current_koi
        if koi is None:
            return
        if not await self.app.push_screen_wait(ConfirmModal(f"Delete {koi.name}?", tone="error")):
            return
        result = await fish_api.delete(koi.id)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Koi deleted.")
        self.current_koi = None
        self.query_one("#md-koi").add_class("hidden")
        self.query_one("#hort-controls").add_class("hidden")
        self.update_optlist(self.query_one("#input-search", Input).value)

    @on(Button.Pressed, "#btn-add-cert")
    @work(exclusive=True, group="action")
    async def handle_add_certificate(self) -> None:
        koi = self.current_koi
        if koi is None:
            return
        values = await self.app.push_screen_wait(
            FormModal(
                f"Certificate for {koi.name}",
                [
                    FormField(
                        "type",
                        "Type",
                        kind="select",
                        choices=[(t, t) for t in CERTIFICATE_TYPES],
                    ),
                    FormField("path", "Scan (local image file)", placeholder="/path/to/scan.png"),
                ],
                submit_text="Upload",
            )
        )
        if not values:
            return
        upload = await images_api.upload_image(values["path"])
        if not upload.is_success:
            self.notify(upload.message, severity="error")
            return
        result = await certificates_api.create(koi.id, values["type"], upload.data)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify("Certificate added.")
        self.render_koi(koi.id)

    @on(Button.Pressed, "#btn-del-cert")
    @work(exclusive=True, group="action")
    async def handle_remove_certificate(self) -> None:
        koi = self.current_koi
        if koi is None or not self._certificates:
            return
        listing = ", ".join(f"{c.id} ({c.certificate_type})" for c in self._certificates)
        answer = await self.app.push_screen_wait(
            PromptModal(f"Certificate ID to remove: {listing}", confirm_text="Remove", tone="error")
        )
        if not answer:
            return
        if not answer.isdigit() or int(answer) not in {c.id for c in self._certificates}:
            self.notify("No such certificate on this koi.", severity="error")
            return
        result = await certificates_api.delete(int(answer))
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify("Certificate removed.")
        self.render_koi(koi.id)

    @on(Button.Pressed, "#btn-new")
    @work(exclusive=True, group="action")
    async def handle_new(self) -> None:
        breeds = await breeds_api.get_all()
        if not breeds.is_success:
            self.notify(breeds.message, severity="error")
            return
        values = await self.app.push_screen_wait(
            FormModal(
                "New koi",
                [
                    FormField("name", "Name"),
                    FormField("origin", "Origin", placeholder="Japan"),
                    FormField(
                        "gender", "Gender", kind="select", choices=[("Male", "Male"), ("Female", "Female")]
                    ),
                    FormField("dob", "Date of birth (YYYY-MM-DD)"),
                    FormField(
                        "breed_id",
                        "Breed",
                        kind="select",
                        choices=[(b.name, b.id) for b in breeds.data if not b.is_deleted],
                    ),
                    FormField("price", "Price (₫)", kind="integer", minimum=0),
                    FormField("length", "Length (cm)", kind="number", minimum=0, required=False),
                    FormField("weight", "Weight (kg)", kind="number", minimum=0, required=False),
                    FormField("daily_feed", "Daily feed (g)", kind="number", minimum=0, required=False),
                    FormField("traits", "Personality", required=False),
                    FormField("image", "Photo (local image file)", required=False),
                ],
                submit_text="Create",
            )
        )
        if not values:
            return

        image_urls = []
        if values["image"]:
            upload = await images_api.upload_image(values["image"])
            if not upload.is_success:
                self.notify(upload.message, severity="error")
                return
            image_urls.append(upload.data)

        result = await fish_api.create(
            {
                "name": values["name"],
                "origin": values["origin"],
                "gender": values["gender"],
                "dob": values["dob"],
                "length": values["length"] or 0,
                "weight": values["weight"] or 0,
                "price": values["price"],
                "dailyFeedAmount": values["daily_feed"] or 0,
                "personalityTraits": values["traits"] or "",
                "isAvailableForSale": True,
                "isSold": False,
                "koiBreedIds": [values["breed_id"]],
                "imageUrls": image_urls,
                "ownerId": None,
            }
        )
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Koi created.")
        self.update_optlist(self.query_one("#input-search", Input).value)


def _option(koi: KoiFish):
    from textual.widgets.option_list import Option

    state = "sold" if koi.is_sold else ("for sale" if koi.is_available_for_sale else "hidden")
    return Option(f"{koi.id} {koi.name} ({state})", id=str(koi.id))
