from typing import Any, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, TabbedContent, TabPane

import api.breeds as breeds_api
import api.diets as diets_api
import api.faqs as faqs_api
from utils.pure import format_vnd
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal
from views.modal_form import FormField, FormModal


def _shorten(text: Optional[str], width: int = 40) -> str:
    text = (text or "").replace("\n", " ")
    return text if len(text) <= width else text[: width - 1] + "…"


class ManageCatalogScreen(BaseScreen):
    """
    Reference data the storefront depends on: koi breeds, nurture diets, FAQs.
    Each tab lists rows and offers New / Edit / Delete on the highlighted row.
    """

    def __init__(self) -> None:
        super().__init__()
        self._rows: dict[str, dict[int, Any]] = {"breed": {}, "diet": {}, "faq": {}}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="tabs-catalog"):
            for kind, title in (("breed", "Breeds"), ("diet", "Diets"), ("faq", "FAQs")):
                with TabPane(title, id=f"tab-{kind}"):
                    with Vertical():
                        yield DataTable(
                            id=f"table-{kind}", cursor_type="row", zebra_stripes=True
                        )
                        with Horizontal(classes="hort-crud"):
                            yield Button("New", id=f"btn-new-{kind}", variant="primary")
                            yield Button("Edit", id=f"btn-edit-{kind}")
                            yield Button("Delete", id=f"btn-del-{kind}", variant="error")

    def on_mount(self) -> None:
        self.query_one("#table-breed", DataTable).add_columns("ID", "Name", "About")
        self.query_one("#table-diet", DataTable).add_columns(
            "ID", "Name", "Cost / day", "Description", "Status"
        )
        self.query_one("#table-faq", DataTable).add_columns("ID", "Question", "Answer")
        self.handle_reload()

    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        await self.load_breeds()
        await self.load_diets()
        await self.load_faqs()

    async def load_breeds(self) -> None:
        result = await breeds_api.get_all()
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        table = self.query_one("#table-breed", DataTable)
        table.clear()
        self._rows["breed"] = {b.id: b for b in result.data if not b.is_deleted}
        for b in self._rows["breed"].values():
            table.add_row(b.id, b.name, _shorten(b.content), key=str(b.id))

    async def load_diets(self) -> None:
        result = await diets_api.get_diet_list(include_deleted=True)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        table = self.query_one("#table-diet", DataTable)
        table.clear()
        self._rows["diet"] = {d.id: d for d in result.data}
        for d in result.data:
            table.add_row(
                d.id,
                d.name,
                format_vnd(d.diet_cost),
                _shorten(d.description),
                "deleted" if d.is_deleted else "active",
                key=str(d.id),
            )

    async def load_faqs(self) -> None:
        result = await faqs_api.get_all()
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        table = self.query_one("#table-faq", DataTable)
        table.clear()
        self._rows["faq"] = {f.id: f for f in result.data}
        for f in result.data:
            table.add_row(f.id, _shorten(f.question), _shorten(f.answer), key=str(f.id))

    def _selected(self, kind: str) -> Optional[Any]:
        table = self.query_one(f"#table-{kind}", DataTable)
        if not table.row_count:
            self.notify("Nothing selected.", severity="warning")
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._rows[kind].get(int(row_key.value))

    async def _finish(self, result, done: str) -> bool:
        if not result.is_success:
            self.notify(result.message, severity="error")
            return False
        self.notify(result.message or done)
        return True

    # breeds

    def _breed_form(self, title: str, breed=None) -> FormModal:
        return FormModal(
            title,
            [
                FormField("name", "Name", breed.name if breed else ""),
                FormField("content", "About", breed.content if breed else "", required=False),
                FormField("image_url", "Image URL", breed.image_url if breed else "", required=False),
            ],
        )

    @on(Button.Pressed, "#btn-new-breed")
    @work(exclusive=True, group="action")
    async def handle_new_breed(self) -> None:
        values = await self.app.push_screen_wait(self._breed_form("New breed"))
        if values and await self._finish(
            await breeds_api.create(values["name"], values["content"] or "", values["image_url"]),
            "Breed created.",
        ):
            await self.load_breeds()

    @on(Button.Pressed, "#btn-edit-breed")
    @work(exclusive=True, group="action")
    async def handle_edit_breed(self) -> None:
        breed = self._selected("breed")
        if breed is None:
            return
        values = await self.app.push_screen_wait(self._breed_form(f"Edit {breed.name}", breed))
        if values and await self._finish(
            await breeds_api.update(
                breed.id, values["name"], values["content"] or "", values["image_url"]
            ),
            "Breed updated.",
        ):
            await self.load_breeds()

    @on(Button.Pressed, "#btn-del-breed")
    @work(exclusive=True, group="action")
    async def handle_delete_breed(self) -> None:
        breed = self._selected("breed")
        if breed is None:
            return
        if await self.app.push_screen_wait(
            ConfirmModal(f"Delete breed {breed.name}?", tone="error")
        ) and await self._finish(await breeds_api.delete(breed.id), "Breed deleted."):
            await self.load_breeds()

    # diets

    def _diet_form(self, title: str, diet=None) -> FormModal:
        return FormModal(
            title,
            [
                FormField("name", "Name", diet.name if diet else ""),
                FormField(
                    "diet_cost", "Cost per day (₫)", diet.diet_cost if diet else "",
                    kind="integer", minimum=0,
                ),
                FormField("description", "Description", diet.description if diet else "", required=False),
            ],
        )

    @on(Button.Pressed, "#btn-new-diet")
    @work(exclusive=True, group="action")
    async def handle_new_diet(self) -> None:
        values = await self.app.push_screen_wait(self._diet_form("New diet"))
        if values and await self._finish(
            await diets_api.create_diet(
                values["name"], values["diet_cost"], values["description"] or ""
            ),
            "Diet created.",
        ):
            await self.load_diets()

    @on(Button.Pressed, "#btn-edit-diet")
    @work(exclusive=True, group="action")
    async def handle_edit_diet(self) -> None:
        diet = self._selected("diet")
        if diet is None:
            return
        values = await self.app.push_screen_wait(self._diet_form(f"Edit {diet.name}", diet))
        if values and await self._finish(
            await diets_api.update_diet(
                diet.id, values["name"], values["diet_cost"], values["description"] or ""
            ),
            "Diet updated.",
        ):
            await self.load_diets()

    @on(Button.Pressed, "#btn-del-diet")
    @work(exclusive=True, group="action")
    async def handle_delete_diet(self) -> None:
        diet = self._selected("diet")
        if diet is None:
            return
        if diet.is_deleted:
            self.notify("Diet is already deleted.", severity="warning")
            return
        if await self.app.push_screen_wait(
            ConfirmModal(f"Delete diet {diet.name}? Open carts using it become incomplete.", tone="error")
        ) and await self._finish(await diets_api.delete_diet(diet.id), "Diet deleted."):
            await self.load_diets()

    # faqs

    def _faq_form(self, title: str, faq=None) -> FormModal:
        return FormModal(
            title,
            [
                FormField("question", "Question", faq.question if faq else ""),
                FormField("answer", "Answer", faq.answer if faq else ""),
            ],
        )

    @on(Button.Pressed, "#btn-new-faq")
    @work(exclusive=True, group="action")
    async def handle_new_faq(self) -> None:
        values = await self.app.push_screen_wait(self._faq_form("New FAQ"))
        if values and await self._finish(
            await faqs_api.create(values["question"], values["answer"]), "FAQ created."
        ):
            await self.load_faqs()

    @on(Button.Pressed, "#btn-edit-faq")
    @work(exclusive=True, group="action")
    async def handle_edit_faq(self) -> None:
        faq = self._selected("faq")
        if faq is None:
            return
        values = await self.app.push_screen_wait(self._faq_form("Edit FAQ", faq))
        if values and await self._finish(
            await faqs_api.update(faq.id, values["question"], values["answer"]), "FAQ updated."
        ):
            await self.load_faqs()

    @on(Button.Pressed, "#btn-del-faq")
    @work(exclusive=True, group="action")
    async def handle_delete_faq(self) -> None:
        faq = self._selected("faq")
        if faq is None:
            return
        if await self.app.push_screen_wait(
            ConfirmModal("Delete this FAQ?", tone="error")
        ) and await self._finish(await faqs_api.delete(faq.id), "FAQ deleted."):
            await self.load_faqs()
