from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.validation import Length, Number
from textual.widgets import Button, Checkbox, Input, Label

import services.admin as admin
from db.models import Product
from services.ledger import format_amount
from utils.errors import AuthError, StoreError, ValidationError
from utils.messages import AuthRequiredMessage

_FIELD_INPUTS = {
    "name": "#input-prod-name",
    "price": "#input-prod-price",
    "image": "#input-prod-image",
}


class ProductFormModal(ModalScreen[bool]):
    """
    Add a product (product=None) or edit an existing one.
    Saves through the admin services; dismisses with True after a write.
    On a failed write the form stays open and populated.
    """

    def __init__(self, product: Optional[Product] = None) -> None:
        super().__init__()
        self.product = product

    def compose(self) -> ComposeResult:
        editing = self.product is not None
        with Vertical(id="div-product-form"):
            yield Label("Edit Product" if editing else "Add New Product", id="label-form-title")
            yield Label("Product Name")
            yield Input(
                value=self.product.name if editing else "",
                placeholder="e.g. SanDisk Flashdrive 64GB",
                id="input-prod-name",
                validators=[Length(minimum=1, maximum=100)],
            )
            yield Label("Price (EGP)")
            yield Input(
                value=format_amount(self.product.price) if editing else "",
                placeholder="e.g. 200",
                id="input-prod-price",
                type="number",
                validators=[Number(minimum=0.01)],
            )
            yield Label("Image filename")
            yield Input(
                value=self.product.image if editing else "",
                placeholder="e.g. image4.jpg",
                id="input-prod-image",
            )
            yield Checkbox(
                "Available in catalog",
                value=self.product.available if editing else True,
                id="chk-prod-available",
            )
            with Horizontal():
                yield Button("Cancel", id="btn-cancel")
                yield Button(
                    "Save Changes" if editing else "Add Product",
                    id="btn-save",
                    variant="primary",
                )

    def on_mount(self) -> None:
        self.query_one("#input-prod-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        name = self.query_one("#input-prod-name", Input).value
        price = self.query_one("#input-prod-price", Input).value
        image = self.query_one("#input-prod-image", Input).value
        available = self.query_one("#chk-prod-available", Checkbox).value

        btn_save = self.query_one("#btn-save", Button)
        btn_save.disabled = True
        try:
            if self.product is None:
                await admin.add_product(self.app.state, name, price, image, available)
                self.app.notify("Product added successfully")
            else:
                saved = await admin.update_product(
                    self.app.state,
                    self.product.pid,
                    name=name,
                    price=price,
                    image=image,
                    available=available,
                )
                if saved is None:
                    self.app.notify("This product no longer exists.", severity="warning")
                else:
                    self.app.notify("Product updated successfully")
        except ValidationError as e:
            if e.field in _FIELD_INPUTS:
                field_input = self.query_one(_FIELD_INPUTS[e.field], Input)
                field_input.add_class("-invalid")
                field_input.focus()
            self.notify(str(e), severity="error")
            return
        except AuthError as e:
            self.app.notify(str(e), severity="error")
            self.app.post_message(AuthRequiredMessage())
            self.dismiss(False)
            return
        except StoreError as e:
            self.notify(f"Save failed: {e}", severity="error")
            return
        finally:
            btn_save.disabled = False

        self.dismiss(True)
