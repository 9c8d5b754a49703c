from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class LeaveSideMessage(Message):
    """
    broadcasted when the user goes back to the welcome screen
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever the cart store is mutated (product detail, cart screen,
    checkout). Refreshes the cart screen and the sidebar summary.

    If posted from a modal, post it at App level.
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when an order is placed.
    Listened to by the admin dashboard and orders screen.
    """

    bubble = True

    def __init__(self, order_number: str) -> None:
        super().__init__()
        self.order_number = order_number


class InboxChangedMessage(Message):
    """
    Fired when a contact message is sent or its read flag changes.
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
