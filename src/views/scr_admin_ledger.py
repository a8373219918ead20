from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Markdown

import services.admin as admin
from services.ledger import LedgerStats, format_price, write_csv_export
from utils.errors import AuthError, StoreError
from utils.messages import AuthRequiredMessage
from utils.pure import generate_markdown_table
from views.base_screen import AdminScreen
from views.modal_dialog import ConfirmDeleteModal


class AdminLedgerScreen(AdminScreen):
    """
    Purchase history: revenue and count, sales per product, every order
    newest first, CSV export and deletion.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Markdown("", id="md-stats")
            yield DataTable(id="table-orders", cursor_type="row", zebra_stripes=True)
        with Horizontal(id="hort-ledger-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Delete", id="btn-delete", variant="error")
            yield Button("Export CSV", id="btn-export", variant="primary")

    async def _fetch(self) -> Optional[tuple]:
        try:
            return await admin.load_ledger(self.app.state)
        except AuthError as e:
            self.notify(str(e), severity="error")
            self.app.post_message(AuthRequiredMessage())
        except StoreError as e:
            self.notify(f"Could not load purchases: {e}", severity="error")
        return None

    async def load(self) -> None:
        fetched = await self._fetch()
        if fetched is None:
            return
        orders, stats = fetched
        await self._render_stats(stats)

        table = self.query_one(DataTable)
        table.clear()
        if not table.columns:
            table.add_columns(
                "Order", "Buyer Name", "Class", "Student Number", "Product", "Price", "Date/Time"
            )
        for o in orders:
            table.add_row(
                o.ono,
                o.buyer_name,
                o.class_label,
                o.student_number,
                o.product_name,
                format_price(o.price),
                o.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                key=str(o.ono),
            )
        self.query_one("#btn-export", Button).disabled = not orders
        self.query_one("#btn-delete", Button).disabled = not orders

    async def _render_stats(self, stats: LedgerStats) -> None:
        md = (
            "### Sales Summary\n\n"
            f"- Total Revenue: **{format_price(stats.total_revenue)}**\n"
            f"- Total Purchases: **{stats.purchase_count}**\n\n"
            "#### Sales by Product\n\n"
        )
        if stats.sales_by_product:
            md += generate_markdown_table(
                ["Product", "Sales"],
                [[name, count] for name, count in stats.sales_by_product],
                ["l", "r"],
            )
        else:
            md += "_No products in the catalog._"
        await self.query_one("#md-stats", Markdown).update(md)

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="admin-load")
    async def handle_refresh(self) -> None:
        if await self.guard():
            await self.load()

    @on(Button.Pressed, "#btn-export")
    @work(exclusive=True, group="ledger-action")
    async def handle_export(self) -> None:
        # export what the store holds now, not what was rendered earlier
        fetched = await self._fetch()
        if fetched is None:
            return
        orders, _ = fetched
        try:
            path = write_csv_export(orders)
        except OSError as e:
            self.notify(f"Export failed: {e}", severity="error")
            return
        self.notify(f"CSV exported successfully to {path}")

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="ledger-action")
    async def handle_delete(self) -> None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return
        ono = int(table.get_row_at(table.cursor_row)[0])
        # confirm against the stored row, not the rendered one
        try:
            order = await admin.get_order(self.app.state, ono)
        except AuthError as e:
            self.notify(str(e), severity="error")
            self.app.post_message(AuthRequiredMessage())
            return
        except StoreError as e:
            self.notify(f"Could not load purchase: {e}", severity="error")
            return
        if order is None:
            self.notify("This purchase was already deleted.", severity="warning")
            await self.load()
            return

        if not await self.app.push_screen_wait(
            ConfirmDeleteModal(
                f"order #{order.ono}",
                detail=f"{order.buyer_name} ({order.class_label}) - "
                f"{order.product_name}, {format_price(order.price)}",
            )
        ):
            return

        try:
            deleted = await admin.delete_order(self.app.state, order.ono)
        except AuthError as e:
            self.notify(str(e), severity="error")
            self.app.post_message(AuthRequiredMessage())
            return
        except StoreError as e:
            self.notify(f"Delete failed: {e}", severity="error")
            return

        if deleted:
            self.notify("Purchase deleted.")
        await self.load()
