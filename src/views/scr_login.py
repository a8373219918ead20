from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

import db.crud as crud
from utils.errors import AuthError, StoreError
from utils.logger import get_logger
from views.base_screen import BaseScreen
from views.modal_dialog import SimpleDialogModal

_logger = get_logger(__name__)


class LoginScreen(BaseScreen):
    """
    Admin login. Dismisses with True once the signed-in account has passed
    the admin guard, False if the user goes back to the shop.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Admin Login")

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="admin@example.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Back to Shop", id="btn-back")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="at least 6 characters",
                        password=True,
                        id="input-reg-pwd",
                    )
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        if not email or not pwd:
            self.notify("Email or password cannot be empty!", severity="error")
            return

        btn_login = self.query_one("#btn-login", Button)
        btn_login.disabled = True
        try:
            await self.app.state.sign_in(email, pwd)
            await self.app.state.require_admin()
        except AuthError as e:
            self.notify(str(e), severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return
        except StoreError as e:
            self.notify(f"Login failed: {e}", severity="error")
            return
        finally:
            btn_login.disabled = False

        _logger.info(f"Admin {self.app.state.email} logged in")
        self.notify("Login successful!")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value

        if not email or not pwd:
            self.notify("Make sure all inputs are filled.", severity="error")
            return

        try:
            user = await crud.sign_up(email, pwd)
        except StoreError as e:
            self.notify(str(e), severity="error")
            return

        await self.app.push_screen_wait(
            SimpleDialogModal(
                f"Account {user.email} created.",
                detail="An administrator must grant access before you can open the dashboard.",
            )
        )

        self.get_child_by_type(TabbedContent).active = "tab-login"
        input_login_email = self.query_one("#input-login-email", Input)
        input_login_pwd = self.query_one("#input-login-pwd", Input)
        input_login_email.value = user.email
        input_login_pwd.value = ""
        input_login_pwd.focus()

    @on(Button.Pressed, "#btn-back")
    def handle_back(self) -> None:
        self.dismiss(False)
