from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.validation import Function, Length
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

import api.auth as auth
from utils.messages import UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal, QuitDialogModal


def _looks_like_email(value: str) -> bool:
    name, _, domain = value.partition("@")
    return bool(name) and "." in domain


class LoginScreen(BaseScreen):
    """
    Dismissed once the user is logged in and the profile is cached in app.state.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        email_validators = [Function(_looks_like_email, "Not an email address.")]
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(
                        placeholder="user@example.com",
                        id="input-login-email",
                        validators=email_validators,
                    )
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Full name")
                    yield Input(placeholder="Nguyen Van A", id="input-reg-name")
                    yield Label("Email")
                    yield Input(
                        placeholder="user@example.com",
                        id="input-reg-email",
                        validators=email_validators,
                    )
                    yield Label("Password")
                    yield Input(
                        placeholder="at least 6 characters",
                        password=True,
                        id="input-reg-pwd",
                        validators=[Length(minimum=6)],
                    )
                    yield Label("Confirm password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd2"
                    )
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    @on(Input.Submitted, "#input-login-pwd")
    def handle_login_enter(self) -> None:
        self.handle_login_submit()

    @on(Input.Submitted, "#input-reg-pwd2")
    def handle_reg_enter(self) -> None:
        self.handle_registration_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email_input = self.query_one("#input-login-email", Input)
        email = email_input.value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        if not email or not pwd:
            self.notify("Email or password cannot be empty!", severity="error")
            return
        if not email_input.is_valid:
            email_input.focus()
            self.notify("Please enter a valid email.", severity="error")
            return

        result = await self.app.state.login(email, pwd)

        if result.is_success:
            self.notify(f"Hello {result.data.full_name or result.data.email}!")
            self.app.post_message(UserLoginMessage())
            self.dismiss()
        else:
            self.notify(result.message, severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        name = self.query_one("#input-reg-name", Input).value.strip()
        email_input = self.query_one("#input-reg-email", Input)
        pwd_input = self.query_one("#input-reg-pwd", Input)
        pwd2 = self.query_one("#input-reg-pwd2", Input).value

        if not name or not email_input.value.strip() or not pwd_input.value:
            self.notify("Make sure all inputs are filled.", severity="error")
            return
        if not email_input.is_valid:
            email_input.focus()
            self.notify("Please enter a valid email.", severity="error")
            return
        if not pwd_input.is_valid:
            pwd_input.focus()
            self.notify("Password must have at least 6 characters.", severity="error")
            return
        if pwd_input.value != pwd2:
            self.query_one("#input-reg-pwd2", Input).add_class("-invalid")
            self.notify("Passwords do not match.", severity="error")
            return

        email = email_input.value.strip()
        result = await auth.register(email, pwd_input.value, name)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return

        await self.app.push_screen_wait(
            DialogModal(result.message or "Registration successful, you can log in now.")
        )
        self.get_child_by_type(TabbedContent).active = "tab-login"
        self.query_one("#input-login-email", Input).value = email
        input_login_pwd = self.query_one("#input-login-pwd", Input)
        input_login_pwd.value = pwd_input.value
        input_login_pwd.focus()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
