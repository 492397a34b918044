from typing import Any, Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input

import api.users as users_api
from api.models import User
from api.statuses import Role
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal
from views.modal_form import FormField, FormModal

_ROLE_CHOICES = [(r.label, r.value) for r in Role if r is not Role.ADMIN]
_ACTIVE_CHOICES = [("Active", True), ("Disabled", False)]


def user_payload(values: Dict[str, Any]) -> Dict[str, Any]:
    """Form values to the backend body; blank optional fields are left out."""
    keys = {
        "full_name": "fullName",
        "email": "email",
        "password": "password",
        "phone_number": "phoneNumber",
        "dob": "dob",
        "address": "address",
        "is_active": "isActive",
    }
    body = {wire: values[key] for key, wire in keys.items() if values.get(key) is not None}
    if values.get("role"):
        body["role"] = str(values["role"]).lower()
    return body


def search_users(users: List[User], term: str) -> List[User]:
    term = term.strip().lower()
    if not term:
        return users
    return [
        u
        for u in users
        if term in u.email.lower()
        or term in u.full_name.lower()
        or term in (u.phone_number or "")
    ]


class ManageUsersScreen(BaseScreen):
    """
    Account administration: list, create, edit and delete users.
    """

    def __init__(self) -> None:
        super().__init__()
        self._users: List[User] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-search"):
                yield Input(id="input-search", placeholder="Name, email or phone...")
                yield Button("Refresh", id="btn-refresh")
            yield DataTable(id="table-users", cursor_type="row", zebra_stripes=True)
            with Horizontal(classes="hort-crud"):
                yield Button("New", id="btn-new", variant="primary")
                yield Button("Edit", id="btn-edit")
                yield Button("Delete", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        self.query_one(DataTable).add_columns(
            "ID", "Name", "Email", "Phone", "Role", "Active", "Points"
        )

    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="users")
    async def handle_reload(self) -> None:
        result = await users_api.list_users()
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self._users = result.data
        self._fill_table()

    @on(Input.Changed, "#input-search")
    def _fill_table(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for u in search_users(self._users, self.query_one("#input-search", Input).value):
            table.add_row(
                u.id,
                u.full_name or "-",
                u.email,
                u.phone_number or "-",
                u.role.label if u.role else "-",
                "yes" if u.is_active else "no",
                u.loyalty_points,
                key=str(u.id),
            )

    def _selected(self) -> Optional[User]:
        table = self.query_one(DataTable)
        if not table.row_count:
            self.notify("Nothing selected.", severity="warning")
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return next((u for u in self._users if str(u.id) == row_key.value), None)

    @on(Button.Pressed, "#btn-new")
    @work(exclusive=True, group="action")
    async def handle_new(self) -> None:
        values = await self.app.push_screen_wait(
            FormModal(
                "New user",
                [
                    FormField("full_name", "Full name"),
                    FormField("email", "Email"),
                    FormField("password", "Password", kind="password"),
                    FormField("phone_number", "Phone", required=False),
                    FormField("dob", "Date of birth (YYYY-MM-DD)", required=False),
                    FormField("address", "Address", required=False),
                    FormField("role", "Role", Role.CUSTOMER.value, kind="select", choices=_ROLE_CHOICES),
                ],
                submit_text="Create",
            )
        )
        if not values:
            return
        if len(values["password"]) < 8:
            self.notify("Password must be at least 8 characters.", severity="error")
            return
        result = await users_api.create_user(user_payload(values))
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "User created.")
        self.handle_reload()

    @on(Button.Pressed, "#btn-edit")
    @work(exclusive=True, group="action")
    async def handle_edit(self) -> None:
        user = self._selected()
        if user is None:
            return
        values = await self.app.push_screen_wait(
            FormModal(
                f"Edit {user.email}",
                [
                    FormField("full_name", "Full name", user.full_name),
                    FormField("phone_number", "Phone", user.phone_number, required=False),
                    FormField("address", "Address", user.address, required=False),
                    FormField(
                        "role",
                        "Role",
                        user.role.value if user.role else "",
                        kind="select",
                        choices=_ROLE_CHOICES,
                        required=False,
                    ),
                    FormField("is_active", "Status", user.is_active, kind="select", choices=_ACTIVE_CHOICES),
                ],
            )
        )
        if not values:
            return
        result = await users_api.update_user(user.id, user_payload(values))
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "User updated.")
        self.handle_reload()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="action")
    async def handle_delete(self) -> None:
        user = self._selected()
        if user is None:
            return
        if user.id == self.app.state.uid:
            self.notify("You cannot delete your own account.", severity="error")
            return
        if not await self.app.push_screen_wait(
            ConfirmModal(f"Delete {user.full_name or user.email}?", tone="error")
        ):
            return
        result = await users_api.delete_user(user.id)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "User deleted.")
        self.handle_reload()
