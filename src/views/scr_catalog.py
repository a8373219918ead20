from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label

import db.crud as crud
from db.models import Order, Product
from services.ledger import format_price
from utils.errors import DataAccessError
from utils.logger import get_logger
from utils.messages import AdminRequestedMessage
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal

_logger = get_logger(__name__)


class CatalogScreen(BaseScreen):
    """
    Public storefront: available products, Buy Now opens the checkout form.
    """

    BINDINGS = [
        Binding("enter", "noop", "Buy Selected", show=True, key_display="⏎"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="vert-catalog"):
            yield Label("Flash Drive Collection", id="label-catalog-title")
            yield Label("Premium storage solutions for students", id="label-catalog-sub")
            yield DataTable(id="table-catalog", cursor_type="row", zebra_stripes=True)
        with Horizontal(id="hort-catalog-buttons"):
            yield Button("Admin", id="btn-admin")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Buy Now", id="btn-buy", variant="primary")

    def on_mount(self) -> None:
        self.query_one(DataTable).focus()

    def action_noop(self) -> None:
        pass

    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="catalog")
    async def load_catalog(self) -> None:
        try:
            products = await crud.list_available_products()
        except DataAccessError as e:
            _logger.error(f"Catalog unavailable: {e}")
            self.notify("Could not load products. Please try again later.", severity="error")
            products = []

        self._products = products
        table = self.query_one(DataTable)
        table.clear()
        if not table.columns:
            table.add_columns("ID", "Product", "Price", "Image")
        for p in products:
            table.add_row(p.pid, p.name, format_price(p.price), p.image, key=str(p.pid))
        self.query_one("#btn-buy", Button).disabled = not products

    def _selected_product(self, pid: Optional[int] = None) -> Optional[Product]:
        if pid is None:
            table = self.query_one(DataTable)
            if table.row_count == 0:
                return None
            pid = int(table.get_row_at(table.cursor_row)[0])
        return next((p for p in self._products if p.pid == pid), None)

    @on(DataTable.RowSelected, "#table-catalog")
    def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        self.open_checkout(int(event.row_key.value))

    @on(Button.Pressed, "#btn-buy")
    def handle_buy(self) -> None:
        self.open_checkout(None)

    @work(exclusive=True, group="checkout")
    async def open_checkout(self, pid: Optional[int]) -> None:
        product = self._selected_product(pid)
        if product is None:
            self.notify("Select a product first.", severity="warning")
            return
        order: Optional[Order] = await self.app.push_screen_wait(CheckoutModal(product))
        if order is not None:
            _logger.debug(f"Checkout finished with order {order.ono}")

    @on(Button.Pressed, "#btn-admin")
    def handle_admin(self) -> None:
        self.post_message(AdminRequestedMessage())
