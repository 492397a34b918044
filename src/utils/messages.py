from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out, tokens are already dropped by then
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired once the profile of the logged in user is cached, so screens can refresh
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Posted at App level by the cart store listener after every cart write.
    Screens showing the cart (cart screen, sidebar badge) refresh on it.
    """

    bubble = True

    def __init__(self, item_count: int) -> None:
        super().__init__()
        self.item_count = item_count


class NewOrderMessage(Message):
    """
    Fired when an order was accepted by the backend.
    Listened to by order history and wallet screens
    """

    bubble = True

    def __init__(self, order_id: int | None = None) -> None:
        super().__init__()
        self.order_id = order_id


class WalletChangedMessage(Message):
    """
    Fired after a deposit or withdrawal request, the wallet screen reloads on it
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
