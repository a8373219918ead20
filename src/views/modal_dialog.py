from typing import Dict, Literal, Tuple

from typing_extensions import override

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from utils.messages import QuitRequestedMessage

Tone = Literal["default", "positive", "warning", "error"]
ButtonVariant = Literal["primary", "default", "success", "warning", "error"]


class DialogModal(ModalScreen[bool]):
    """
    Confirmation dialog with an optional detail line.
    Dismisses with True for the primary button, False for the secondary one.
    """

    # tone -> (primary variant, secondary variant)
    TONES: Dict[Tone, Tuple[ButtonVariant, ButtonVariant]] = {
        "default": ("primary", "default"),
        "positive": ("success", "default"),
        "warning": ("warning", "default"),
        "error": ("error", "primary"),
    }

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: str = "",
        tone: Tone = "default",
        detail: str = "",
    ):
        super().__init__()
        self.caption = caption
        self.detail = detail
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        primary_variant, secondary_variant = self.TONES[self.tone]
        with Container(id="div-dialog"):
            yield Label(self.caption, id="caption")
            if self.detail:
                yield Label(self.detail, id="detail")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(self.secondary_text, variant=secondary_variant, id="btn-secondary")
                yield Button(self.primary_text, variant=primary_variant, id="btn-primary")

    def on_mount(self):
        # destructive dialogs focus the safe option
        safe_first = self.secondary_text and self.tone == "error"
        self.query_one("#btn-secondary" if safe_first else "#btn-primary").focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        choice = {"btn-primary": True, "btn-secondary": False}.get(event.button.id)
        if choice is not None:
            self.dismiss(choice)


class SimpleDialogModal(DialogModal):
    """Notice with a single acknowledge button."""

    def __init__(self, caption: str, detail: str = "", button_text: str = "Got it"):
        super().__init__(caption, primary_text=button_text, detail=detail)


class ConfirmDeleteModal(DialogModal):
    """Explicit confirmation step before a destructive call."""

    def __init__(self, what: str, detail: str = ""):
        super().__init__(
            f"Delete {what}? This cannot be undone.",
            primary_text="Delete",
            secondary_text="Cancel",
            tone="error",
            detail=detail,
        )


class QuitDialogModal(DialogModal):
    """Asks before closing the store; on confirm the app signs out and exits."""

    def __init__(self):
        super().__init__(
            "Close the Flash Drive Store?",
            primary_text="Quit",
            secondary_text="Stay",
            tone="error",
            detail="A signed-in admin will be logged out.",
        )

    @override
    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.post_message(QuitRequestedMessage())
        super().on_button_pressed(event)
