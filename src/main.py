from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

import db.crud as crud
from utils import config
from utils.errors import AuthError, StoreError
from utils.logger import get_logger
from utils.messages import (
    AdminRequestedMessage,
    AuthRequiredMessage,
    QuitRequestedMessage,
    UserLogoutMessage,
)
from utils.state import AppState
from views.scr_admin_ledger import AdminLedgerScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_catalog import CatalogScreen
from views.scr_login import LoginScreen

_logger = get_logger(__name__)


class FlashStoreApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "ledger": AdminLedgerScreen,
        "products": AdminProductsScreen,
    }

    ADMIN_MODES = {"ledger": "Purchase History", "products": "Product Management"}
    MODE_TITLES = {"catalog": "Shop", **ADMIN_MODES}

    CSS_PATH = "styles/app.tcss"

    state: AppState

    def __init__(self):
        super().__init__()
        self.state = AppState()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @work
    async def main_flow(self):
        if config.ADMIN_EMAIL and config.ADMIN_PASSWORD:
            try:
                await crud.ensure_admin(config.ADMIN_EMAIL, config.ADMIN_PASSWORD)
            except StoreError as e:
                _logger.error(f"Admin bootstrap failed: {e}")
        try:
            buyer = await self.state.resume_buyer()
        except StoreError as e:
            _logger.error(f"Could not resume buyer identity: {e}")
        else:
            if buyer is not None:
                _logger.info(f"Resumed buyer identity {buyer.uid}")
        await self.switch_mode("catalog")

    @on(AdminRequestedMessage)
    @on(AuthRequiredMessage)
    @work(exclusive=True, group="auth")
    async def open_admin(self):
        """Route to the admin dashboard, through the login screen unless already admitted."""
        if self.current_mode != "catalog":
            await self.switch_mode("catalog")

        admitted = False
        if self.state.session is not None:
            try:
                await self.state.require_admin()
                admitted = True
            except AuthError:
                admitted = False
        if not admitted:
            admitted = await self.push_screen_wait(LoginScreen())
        if admitted:
            await self.switch_mode("ledger")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.sign_out()
        await self.switch_mode("catalog")
        self.notify("Logged out successfully")

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await self.state.sign_out()
        self.exit()


def run() -> None:
    FlashStoreApp().run()


if __name__ == "__main__":
    run()
