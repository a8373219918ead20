from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label

from db.models import Order, Product
from services.checkout import remaining_wait, submit_checkout
from services.ledger import format_price
from utils.errors import RateLimitError, StoreError, ValidationError
from utils.logger import get_logger
from utils.validation import BuyerName, CheckoutRequest, ClassLabel, StudentNumber

_logger = get_logger(__name__)

_FIELD_INPUTS = {
    "buyer_name": "#input-buyer-name",
    "class_label": "#input-class",
    "student_number": "#input-student-number",
}


class CheckoutModal(ModalScreen[Optional[Order]]):
    """
    Checkout form for one product.
    Dismisses with the created Order, or None if the buyer backs out.
    """

    def __init__(self, product: Product):
        super().__init__()
        self.product = product

    def compose(self) -> ComposeResult:
        with Vertical(id="div-checkout"):
            yield Label("Complete Your Purchase", id="label-checkout-title")
            yield Label(
                f"{self.product.name} - {format_price(self.product.price)}",
                id="label-checkout-product",
            )
            yield Label("", id="label-checkout-wait")
            yield Label("Full Name")
            yield Input(
                placeholder="Enter your full name",
                id="input-buyer-name",
                validators=[BuyerName()],
            )
            yield Label("Class")
            yield Input(
                placeholder="e.g. 10A", id="input-class", validators=[ClassLabel()]
            )
            yield Label("Student Number in Class")
            yield Input(
                placeholder="Enter your number",
                id="input-student-number",
                type="integer",
                validators=[StudentNumber()],
            )
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Confirm Purchase", id="btn-submit", variant="primary")

    def on_mount(self):
        self.query_one("#input-buyer-name").focus()
        self.show_wait()

    @work(exclusive=True, group="checkout-wait")
    async def show_wait(self) -> None:
        try:
            wait = await remaining_wait(self.app.state)
        except StoreError as e:
            _logger.warning(f"Could not read purchase throttle: {e}")
            return
        if wait:
            self.query_one("#label-checkout-wait", Label).update(
                f"You placed an order recently. You can order again in {wait} second(s)."
            )

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    def _request(self) -> CheckoutRequest:
        return CheckoutRequest(
            pid=self.product.pid,
            buyer_name=self.query_one("#input-buyer-name", Input).value,
            class_label=self.query_one("#input-class", Input).value,
            student_number=self.query_one("#input-student-number", Input).value,
        )

    @on(Input.Submitted, "#input-student-number")
    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        btn_submit = self.query_one("#btn-submit", Button)
        if btn_submit.disabled:
            return
        btn_submit.disabled = True
        btn_submit.label = "Processing..."
        try:
            order = await submit_checkout(self.app.state, self._request())
        except ValidationError as e:
            if e.field in _FIELD_INPUTS:
                field_input = self.query_one(_FIELD_INPUTS[e.field], Input)
                field_input.add_class("-invalid")
                field_input.focus()
            self.notify(str(e), title="Check your details", severity="error")
            return
        except RateLimitError as e:
            self.notify(str(e), title="Too many purchases", severity="warning")
            return
        except StoreError as e:
            self.notify(f"Purchase failed: {e}", severity="error")
            return
        finally:
            btn_submit.disabled = False
            btn_submit.label = "Confirm Purchase"

        for selector in _FIELD_INPUTS.values():
            self.query_one(selector, Input).clear()
        self.app.notify(
            f"{order.product_name} - {format_price(order.price)}",
            title="Thank you for your purchase!",
        )
        self.dismiss(order)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
