from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable

import services.admin as admin
from db.models import Product
from services.ledger import format_price
from utils.errors import AuthError, StoreError
from utils.messages import AuthRequiredMessage
from views.base_screen import AdminScreen
from views.modal_dialog import ConfirmDeleteModal
from views.modal_product_form import ProductFormModal


class AdminProductsScreen(AdminScreen):
    """
    Product management: list every product (available or not), add, edit, delete.
    The list is re-queried after each write.
    """

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-products", cursor_type="row", zebra_stripes=True)
        with Horizontal(id="hort-product-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Delete", id="btn-delete", variant="error")
            yield Button("Edit", id="btn-edit")
            yield Button("Add Product", id="btn-add", variant="primary")

    async def load(self) -> None:
        try:
            products = await admin.load_products(self.app.state)
        except AuthError as e:
            self.notify(str(e), severity="error")
            self.app.post_message(AuthRequiredMessage())
            return
        except StoreError as e:
            self.notify(f"Could not load products: {e}", severity="error")
            return

        self._products = products
        table = self.query_one(DataTable)
        table.clear()
        if not table.columns:
            table.add_columns("ID", "Name", "Price", "Image", "Available")
        for p in products:
            table.add_row(
                p.pid,
                p.name,
                format_price(p.price),
                p.image,
                "yes" if p.available else "no",
                key=str(p.pid),
            )

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="admin-load")
    async def handle_refresh(self) -> None:
        if await self.guard():
            await self.load()

    def _selected(self) -> Optional[Product]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        pid = int(table.get_row_at(table.cursor_row)[0])
        return next((p for p in self._products if p.pid == pid), None)

    @on(Button.Pressed, "#btn-add")
    @work(exclusive=True, group="product-edit")
    async def handle_add(self) -> None:
        if await self.app.push_screen_wait(ProductFormModal()):
            await self.load()

    @on(DataTable.RowSelected, "#table-products")
    @on(Button.Pressed, "#btn-edit")
    @work(exclusive=True, group="product-edit")
    async def handle_edit(self) -> None:
        product = self._selected()
        if product is None:
            self.notify("Select a product first.", severity="warning")
            return
        if await self.app.push_screen_wait(ProductFormModal(product)):
            await self.load()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="product-edit")
    async def handle_delete(self) -> None:
        product = self._selected()
        if product is None:
            self.notify("Select a product first.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            ConfirmDeleteModal(
                "this product",
                detail=f"{product.name} - {format_price(product.price)}. "
                "Existing purchases keep their recorded name and price.",
            )
        ):
            return

        try:
            deleted = await admin.delete_product(self.app.state, product.pid)
        except AuthError as e:
            self.notify(str(e), severity="error")
            self.app.post_message(AuthRequiredMessage())
            return
        except StoreError as e:
            self.notify(f"Delete failed: {e}", severity="error")
            return

        if deleted:
            self.notify("Product deleted successfully")
        else:
            self.notify("Product was already gone.", severity="warning")
        await self.load()
