from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the admin logs out from the sidebar
    """

    bubble = True


class AdminRequestedMessage(Message):
    """
    Fired by the catalog's Admin button.
    The app shows the login screen unless an admin is already signed in.
    """

    bubble = True


class AuthRequiredMessage(Message):
    """
    Fired when the admin guard rejects the current session.
    Must reach the app, which routes back to the login screen.
    """

    bubble = True
