from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from utils.cart import CartStore
from utils.logger import get_logger
from utils.messages import LeaveSideMessage, ModeSwitchedMessage, QuitRequestedMessage
from utils.notifier import notifier
from utils.state import GlobalState
from views.scr_admin_media import AdminMediaScreen
from views.scr_admin_messages import AdminMessagesScreen
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_cart import CartScreen
from views.scr_contact import ContactScreen
from views.scr_dashboard import DashboardScreen
from views.scr_gallery import GalleryScreen
from views.scr_shop import ShopScreen
from views.scr_welcome import WelcomeScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "shop": ShopScreen,
        "cart": CartScreen,
        "gallery": GalleryScreen,
        "contact": ContactScreen,
        "dashboard": DashboardScreen,
        "products": AdminProductsScreen,
        "orders": AdminOrdersScreen,
        "messages": AdminMessagesScreen,
        "media": AdminMediaScreen,
    }

    SHOP_MODES = {
        "shop": "Shop",
        "cart": "Cart",
        "gallery": "Gallery",
        "contact": "Contact",
    }
    ADMIN_MODES = {
        "dashboard": "Dashboard",
        "products": "Products",
        "orders": "Orders",
        "messages": "Messages",
        "media": "Media",
    }

    # recorded as page views
    PAGE_PATHS = {
        "shop": "/shop",
        "cart": "/cart",
        "gallery": "/gallery",
        "contact": "/contact",
        "dashboard": "/admin",
        "products": "/admin/products",
        "orders": "/admin/orders",
        "messages": "/admin/messages",
        "media": "/admin/media",
    }

    CSS_PATH = [
        "styles/index.tcss",
        "styles/welcome.tcss",
        "styles/shop.tcss",
        "styles/cart.tcss",
        "styles/admin.tcss",
    ]

    state: GlobalState

    def __init__(self, cart: Optional[CartStore] = None):
        super().__init__()
        self.state = GlobalState(cart=cart if cart is not None else CartStore.load())

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(ModeSwitchedMessage)
    @work
    async def handle_mode_switched(self, message: ModeSwitchedMessage):
        path = self.PAGE_PATHS.get(message.new_mode)
        if path:
            await self.state.track_page(path)

    @on(LeaveSideMessage)
    @work
    async def handle_leave(self):
        self.state.leave()
        self.main_flow()

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await notifier.drain()
        self.exit()

    @work
    async def main_flow(self):
        role = await self.push_screen_wait(WelcomeScreen())
        self.state.enter(role)
        _logger.info(f"Entered {role} side")
        first_mode = "shop" if role == "shopper" else "dashboard"
        self.post_message(ModeSwitchedMessage(self.current_mode, first_mode))
        await self.switch_mode(first_mode)


def run() -> None:
    StorefrontApp().run()


if __name__ == "__main__":
    run()
