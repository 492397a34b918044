from typing import Dict, Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

import cart.store as cart_store
from api.statuses import Role
from utils.logger import get_logger
from utils.messages import (
    CartChangedMessage,
    ModeSwitchedMessage,
    QuitRequestedMessage,
    UserLogoutMessage,
)
from utils.state import GlobalState
from views.scr_cart import CartScreen
from views.scr_koi_search import KoiSearchScreen
from views.scr_login import LoginScreen
from views.scr_mgr_catalog import ManageCatalogScreen
from views.scr_mgr_fish import ManageFishScreen
from views.scr_mgr_orders import ManageOrdersScreen
from views.scr_mgr_overview import ManagerOverviewScreen
from views.scr_mgr_requests import ManageRequestsScreen
from views.scr_mgr_users import ManageUsersScreen
from views.scr_my_koi import MyKoiScreen
from views.scr_order_history import OrderHistoryScreen
from views.scr_staff_tasks import StaffTasksScreen
from views.scr_wallet import WalletScreen

_logger = get_logger(__name__)


class KoiStoreApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "koi_search": KoiSearchScreen,
        "cart": CartScreen,
        "orders": OrderHistoryScreen,
        "wallet": WalletScreen,
        "my_koi": MyKoiScreen,
        "mgr_overview": ManagerOverviewScreen,
        "mgr_fish": ManageFishScreen,
        "mgr_orders": ManageOrdersScreen,
        "mgr_requests": ManageRequestsScreen,
        "mgr_catalog": ManageCatalogScreen,
        "mgr_users": ManageUsersScreen,
        "staff_tasks": StaffTasksScreen,
    }

    CUSTOMER_MODES = {
        "koi_search": "Find Koi",
        "cart": "Cart",
        "orders": "My Orders",
        "wallet": "Wallet",
        "my_koi": "My Koi",
    }
    MANAGER_MODES = {
        "mgr_overview": "Overview",
        "mgr_fish": "Koi Inventory",
        "mgr_orders": "Orders",
        "mgr_requests": "Requests",
        "mgr_catalog": "Catalog",
        "mgr_users": "Users",
    }
    STAFF_MODES = {"staff_tasks": "My Tasks"}

    CSS_PATH = ["styles/koistore.tcss"]

    state: GlobalState

    def __init__(self):
        super().__init__()
        self.state = GlobalState()

    def modes_for(self, role: Optional[Role]) -> Dict[str, str]:
        """Sidebar menu (mode -> label) offered to a role."""
        if role is not None and role.is_back_office:
            return self.MANAGER_MODES
        if role is Role.STAFF:
            return self.STAFF_MODES
        return self.CUSTOMER_MODES

    def mode_label(self, mode: str) -> Optional[str]:
        for modes in (self.CUSTOMER_MODES, self.MANAGER_MODES, self.STAFF_MODES):
            if mode in modes:
                return modes[mode]
        return None

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        # cart writes may come from any screen, the active one relays the change
        cart_store.subscribe(
            lambda items: self.screen.post_message(CartChangedMessage(len(items)))
        )
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.logout()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    @work
    async def main_flow(self):
        if await self.state.restore():
            _logger.info(f"Session restored for user {self.state.uid}.")
        else:
            await self.push_screen_wait(LoginScreen())

        first_mode = next(iter(self.modes_for(self.state.role)))
        self.post_message(ModeSwitchedMessage(self.current_mode, first_mode))
        await self.switch_mode(first_mode)


def main() -> None:
    KoiStoreApp().run()


if __name__ == "__main__":
    main()
