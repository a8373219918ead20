import unittest

from textual.app import App
from textual.widgets import Button

from utils.messages import QuitRequestedMessage
from views.modal_dialog import ConfirmDeleteModal, QuitDialogModal, SimpleDialogModal


class DialogHostApp(App):
    """Pushes one dialog and records how it was dismissed."""

    def __init__(self, dialog):
        super().__init__()
        self.dialog = dialog
        self.result = None
        self.quit_requests = 0

    def on_mount(self) -> None:
        self.push_screen(self.dialog, self._dismissed)

    def _dismissed(self, result) -> None:
        self.result = result

    def on_quit_requested_message(self, message: QuitRequestedMessage) -> None:
        self.quit_requests += 1


class DialogTestCase(unittest.IsolatedAsyncioTestCase):
    async def _answer(self, dialog, *keys) -> DialogHostApp:
        app = DialogHostApp(dialog)
        async with app.run_test() as pilot:
            await pilot.pause()
            await pilot.press(*keys)
            await pilot.pause()
        return app

    async def test_quit_dialog_focuses_stay(self):
        app = await self._answer(QuitDialogModal(), "enter")
        self.assertIs(app.result, False)
        self.assertEqual(app.quit_requests, 0)

    async def test_quit_dialog_confirm_requests_quit(self):
        app = await self._answer(QuitDialogModal(), "tab", "enter")
        self.assertIs(app.result, True)
        self.assertEqual(app.quit_requests, 1)

    async def test_confirm_delete_focuses_cancel(self):
        app = await self._answer(ConfirmDeleteModal("order #1"), "enter")
        self.assertIs(app.result, False)

    async def test_simple_dialog_has_one_button(self):
        dialog = SimpleDialogModal("Account created.", detail="Ask an admin for access.")
        app = DialogHostApp(dialog)
        async with app.run_test() as pilot:
            await pilot.pause()
            self.assertEqual(len(dialog.query(Button)), 1)
            self.assertEqual(str(dialog.query_one("#btn-primary", Button).label), "Got it")
            await pilot.press("enter")
            await pilot.pause()
        self.assertIs(app.result, True)
