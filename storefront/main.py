"""Entry point for the storefront Textual app."""

from __future__ import annotations

import argparse
import logging

from textual.app import App
from textual.binding import Binding
from textual.screen import Screen

from storefront.api import StorefrontAPI
from storefront.checkout import BrowserCheckout, CheckoutHandshake, HostedCheckout
from storefront.checkout_screen import CheckoutScreen
from storefront.config import DEFAULT_RESTAURANT_ID
from storefront.images import ImageLoader
from storefront.logging_config import configure_logging
from storefront.menu_screen import MenuScreen

logger = logging.getLogger(__name__)


class StorefrontApp(App):
    """Restaurant menu browsing and checkout in the terminal."""

    TITLE = "Storefront"
    SUB_TITLE = "Menu / Checkout"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        restaurant_id: str = DEFAULT_RESTAURANT_ID,
        api: StorefrontAPI | None = None,
        checkout: HostedCheckout | None = None,
        start_on_checkout: bool = False,
        load_images: bool = True,
    ) -> None:
        super().__init__()
        self.restaurant_id = restaurant_id
        self.api = api or StorefrontAPI()
        self.checkout = checkout or BrowserCheckout()
        self.handshake = CheckoutHandshake(self.api, self.checkout)
        self.start_on_checkout = start_on_checkout
        self.image_loader = ImageLoader(self.api.fetch_bytes) if load_images else None

    def get_default_screen(self) -> Screen:
        if self.start_on_checkout:
            return CheckoutScreen(self.handshake)
        return MenuScreen(self.api, self.restaurant_id, image_loader=self.image_loader)

    def action_open_checkout(self) -> None:
        if isinstance(self.screen, CheckoutScreen):
            return
        logger.info("open_checkout from=%s", type(self.screen).__name__)
        self.push_screen(CheckoutScreen(self.handshake))

    async def on_unmount(self) -> None:
        if isinstance(self.checkout, BrowserCheckout):
            self.checkout.cleanup()
        await self.api.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront", description="Browse a restaurant menu and check out.")
    parser.add_argument("--restaurant", default=DEFAULT_RESTAURANT_ID, help="restaurant ID whose menu to open")
    parser.add_argument("--checkout", action="store_true", help="start on the payment checkout screen")
    parser.add_argument("--no-images", action="store_true", help="skip downloading menu item images")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Run the Textual application."""
    args = build_parser().parse_args(argv)
    if not args.restaurant and not args.checkout:
        build_parser().error("--restaurant is required unless --checkout is given")
    configure_logging()
    logger.info("app_start restaurant=%s checkout=%s", args.restaurant, args.checkout)
    StorefrontApp(
        restaurant_id=args.restaurant,
        start_on_checkout=args.checkout,
        load_images=not args.no_images,
    ).run()


if __name__ == "__main__":
    main()
