"""Menu browsing screen with per-item quantity and add-to-cart."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.reactive import reactive
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from storefront.constant import EMPTY_MENU_MESSAGE
from storefront.images import ImageLoader, ImageSource
from storefront.menu import MenuAPI, MenuBrowser, MenuPageState
from storefront.models import MenuItem
from storefront.prompt_modal import PromptModal
from storefront.rendering import (
    format_error_banner,
    format_feedback,
    format_item_detail,
    format_menu_row,
    image_preview,
)

logger = logging.getLogger(__name__)


class MenuScreen(Screen):
    """Browse one restaurant's menu and add items to the cart."""

    CSS = """
    #main-layout {
        height: 1fr;
    }

    #menu-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #detail-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #menu-banner {
        height: auto;
        margin-bottom: 1;
    }

    #menu-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #item-feedback {
        height: auto;
        margin-top: 1;
    }

    #item-image {
        height: auto;
        margin-top: 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        ("j", "move_selection(1)", "Next"),
        ("k", "move_selection(-1)", "Previous"),
        ("down", "move_selection(1)", "Next"),
        ("up", "move_selection(-1)", "Previous"),
        ("plus", "adjust_quantity(1)", "Qty +"),
        ("minus", "adjust_quantity(-1)", "Qty -"),
        ("e", "edit_quantity", "Quantity"),
        ("enter", "add_to_cart", "Add to cart"),
        ("a", "add_to_cart", "Add to cart"),
        ("x", "dismiss_error", "Dismiss"),
        ("r", "reload", "Reload"),
        ("b", "choose_restaurant", "Restaurants"),
        ("c", "view_cart", "View cart"),
    ]

    selected_index = reactive(0)

    def __init__(self, api: MenuAPI, restaurant_id: str, image_loader: ImageLoader | None = None) -> None:
        super().__init__()
        self.browser = MenuBrowser(
            api,
            restaurant_id,
            schedule=self.set_timer,
            on_change=self._refresh_all,
        )
        self.image_loader = image_loader
        self._image_sources: dict[str, ImageSource] = {}
        self._previews: dict[str, Text] = {}

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="menu-pane"):
                yield Static("Menu", classes="pane-title")
                yield Static(id="menu-banner")
                yield Static(id="menu-list")
            with Vertical(id="detail-pane"):
                yield Static(id="item-detail")
                yield Static(id="item-feedback")
                yield Static(id="item-image")
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = f"Restaurant {self.browser.restaurant_id}"
        self._start_load()

    def _start_load(self, restaurant_id: str | None = None) -> None:
        self.selected_index = 0
        self.run_worker(self.browser.load(restaurant_id), group="menu", exclusive=True)

    def selected_item(self) -> MenuItem | None:
        if self.browser.state != MenuPageState.POPULATED:
            return None
        if not (0 <= self.selected_index < len(self.browser.items)):
            return None
        return self.browser.items[self.selected_index]

    def action_move_selection(self, delta: int) -> None:
        items = self.browser.items
        if not items:
            return
        self.selected_index = (self.selected_index + delta) % len(items)
        self._refresh_all()

    def action_adjust_quantity(self, delta: int) -> None:
        item = self.selected_item()
        if item is None:
            return
        self.browser.adjust_quantity(item, delta)

    def action_edit_quantity(self) -> None:
        item = self.selected_item()
        if item is None or not item.is_available:
            return

        def apply(value: str | None) -> None:
            if value is None:
                return
            self.browser.set_quantity(item, value)

        self.app.push_screen(
            PromptModal(
                "Quantity",
                f"How many {item.name}?",
                value=str(self.browser.quantities.get(item.item_id)),
                max_length=6,
            ),
            apply,
        )

    def action_add_to_cart(self) -> None:
        item = self.selected_item()
        if item is None or not item.is_available:
            return
        if item.item_id in self.browser.submitting:
            return
        self.run_worker(self.browser.add_to_cart(item), group="cart")

    def action_dismiss_error(self) -> None:
        self.browser.dismiss_error()

    def action_reload(self) -> None:
        self._start_load()

    def action_choose_restaurant(self) -> None:
        def apply(value: str | None) -> None:
            if value is None:
                return
            restaurant_id = value.strip()
            logger.info("restaurant_selected restaurant=%s", restaurant_id)
            self.sub_title = f"Restaurant {restaurant_id}"
            self._image_sources.clear()
            self._previews.clear()
            self._start_load(restaurant_id)

        self.app.push_screen(
            PromptModal(
                "Restaurants",
                "Enter a restaurant ID to browse",
                value=self.browser.restaurant_id,
                validate=lambda text: None if text.strip() else "Restaurant ID is required.",
            ),
            apply,
        )

    def action_view_cart(self) -> None:
        self.app.action_open_checkout()

    def _load_preview(self, item: MenuItem) -> None:
        if self.image_loader is None or item.item_id in self._image_sources:
            return
        source = ImageSource.for_item(item)
        self._image_sources[item.item_id] = source
        self.run_worker(self._render_preview(item.item_id, source), group="images")

    async def _render_preview(self, item_id: str, source: ImageSource) -> None:
        image = await self.image_loader.load(source)
        if image is None:
            self._previews[item_id] = Text("(image unavailable)", style="dim")
        else:
            self._previews[item_id] = image_preview(image)
        self._refresh_detail()

    def _refresh_all(self) -> None:
        self._refresh_banner()
        self._refresh_list()
        self._refresh_detail()

    def _refresh_banner(self) -> None:
        try:
            banner = self.query_one("#menu-banner", Static)
        except NoMatches:
            return
        banner.update(format_error_banner(self.browser.error))

    def _refresh_list(self) -> None:
        try:
            menu_list = self.query_one("#menu-list", Static)
        except NoMatches:
            return

        menu_list.update(self.menu_list_text())

    def menu_list_text(self) -> Text:
        state = self.browser.state
        if state == MenuPageState.LOADING:
            return Text("Loading menu items…", style="dim italic")
        if state == MenuPageState.ERROR:
            return Text("Menu unavailable. Press R to retry or B to pick another restaurant.", style="dim")
        if state == MenuPageState.EMPTY:
            text = Text(EMPTY_MENU_MESSAGE)
            text.append("\n\nPress B to go back to restaurants.", style="bold")
            return text

        if self.selected_index >= len(self.browser.items):
            self.selected_index = 0

        lines = Text()
        for idx, item in enumerate(self.browser.items):
            if idx > 0:
                lines.append("\n")
            lines.append_text(
                format_menu_row(
                    item,
                    self.browser.quantities.get(item.item_id),
                    selected=idx == self.selected_index,
                    submitting=item.item_id in self.browser.submitting,
                )
            )
        return lines

    def _refresh_detail(self) -> None:
        try:
            detail = self.query_one("#item-detail", Static)
            feedback = self.query_one("#item-feedback", Static)
            image = self.query_one("#item-image", Static)
        except NoMatches:
            return

        item = self.selected_item()
        if item is None:
            detail.update("")
            feedback.update("")
            image.update("")
            return

        detail.update(format_item_detail(item, self.browser.quantities.get(item.item_id)))
        feedback.update(format_feedback(self.browser.feedback_for(item.item_id)))
        image.update(self._previews.get(item.item_id, Text()))
        self._load_preview(item)
