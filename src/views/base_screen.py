from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.errors import AuthError
from utils.messages import AuthRequiredMessage, UserLogoutMessage
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal


class Sidebar(Container):
    """Admin info, log-out button and the admin menu."""

    def compose(self) -> ComposeResult:
        yield Label("Signed in as", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        await self.show_user_info()

        list_menu: ListView = self.query_one("#list-menu", ListView)
        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(v), id="list-menu-item-" + k)
                for k, v in {**self.app.ADMIN_MODES, "catalog": "Back to Shop"}.items()
            ]
        )
        self.highlight_item(self.app.current_mode)

    async def show_user_info(self) -> None:
        table_rows = [
            ["Email", self.app.state.email or "-"],
            ["User ID", self.app.state.uid or "-"],
            ["Role", "Admin"],
        ]
        md_table_str = generate_markdown_table(None, table_rows, ["l", "l"])
        await self.query_one("#md-userinfo", Markdown).update(md_table_str)

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.app.current_mode)
        if self.app.current_mode != selected_mode:
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu", ListView)
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = False,
    ) -> None:
        """
        configure behavior of the base screen
        """
        self.app.title = "Flash Drive Store"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v) and k in self.app.MODE_TITLES:
                self.sub_title = self.app.MODE_TITLES[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())


class AdminScreen(BaseScreen):
    """
    Base for management screens. Nothing is fetched or rendered until the
    admin guard has passed; on failure the app routes back to the login screen.
    """

    def __init__(self):
        super().__init__()
        self.configure(show_sidebar=True)

    async def guard(self) -> bool:
        try:
            await self.app.state.require_admin()
        except AuthError as e:
            self.notify(str(e), severity="error")
            self.app.post_message(AuthRequiredMessage())
            return False
        return True

    @on(ScreenResume)
    @work(exclusive=True, group="admin-load")
    async def handle_resume(self) -> None:
        if await self.guard():
            await self.query_one(Sidebar).show_user_info()
            await self.load()

    async def load(self) -> None:
        """Fetch and render the screen's data. Runs only after the guard."""
        raise NotImplementedError
