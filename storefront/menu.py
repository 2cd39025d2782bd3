"""Menu browsing and add-to-cart state, independent of any widget."""

from __future__ import annotations

import logging
import math
import re
from enum import Enum
from itertools import count
from typing import Any, Callable, Protocol

from storefront.config import CART_SUCCESS_CLEAR_SECONDS
from storefront.constant import MENU_LOAD_FAILED_MESSAGE
from storefront.exceptions import StorefrontError
from storefront.models import CartFeedback, CartLineRequest, MenuItem

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

Scheduler = Callable[[float, Callable[[], None]], Any]


class MenuAPI(Protocol):
    async def get_menu_items(self, restaurant_id: str) -> list[MenuItem]: ...

    async def add_to_cart(self, line: CartLineRequest) -> None: ...


class MenuPageState(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    POPULATED = "populated"


def clamp_quantity(value: object) -> int:
    """
    Coerce user input into a quantity of at least one.

    Integer parsing takes the leading integer prefix of the text, so "3.9"
    reads as 3 and "abc" as nothing; nothing, zero and negatives become 1.
    """
    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return max(1, value)
    if isinstance(value, float):
        return max(1, int(value)) if math.isfinite(value) else 1

    match = _LEADING_INT.match(str(value))
    parsed = int(match.group(1)) if match else 0
    return max(1, parsed or 1)


class QuantityStore:
    """Per-item quantity selections with default-on-miss."""

    DEFAULT = 1

    def __init__(self) -> None:
        self._values: dict[str, int] = {}

    def get(self, item_id: str) -> int:
        return self._values.get(item_id, self.DEFAULT)

    def set(self, item_id: str, raw: object) -> int:
        quantity = clamp_quantity(raw)
        self._values[item_id] = quantity
        return quantity

    def adjust(self, item_id: str, delta: int) -> int:
        return self.set(item_id, self.get(item_id) + delta)

    def reset(self) -> None:
        self._values.clear()


class MenuBrowser:
    """
    Loads one restaurant's menu and adds items to the server-side cart.

    Add-to-cart feedback is kept per item id. A success message is cleared by
    a timer registered through ``schedule(delay, callback)``; each message
    carries a token so a timer left over from an earlier add never clears a
    newer message for the same item.
    """

    def __init__(
        self,
        api: MenuAPI,
        restaurant_id: str,
        schedule: Scheduler,
        clear_after: float = CART_SUCCESS_CLEAR_SECONDS,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.api = api
        self.restaurant_id = restaurant_id
        self.schedule = schedule
        self.clear_after = clear_after
        self.on_change = on_change
        self.state = MenuPageState.LOADING
        self.items: list[MenuItem] = []
        self.error = ""
        self.quantities = QuantityStore()
        self.submitting: set[str] = set()
        self._feedback: dict[str, CartFeedback] = {}
        self._tokens = count(1)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    async def load(self, restaurant_id: str | None = None) -> None:
        """Fetch the menu, ending in ERROR, EMPTY or POPULATED."""
        if restaurant_id is not None and restaurant_id != self.restaurant_id:
            self.restaurant_id = restaurant_id
            self.quantities.reset()
        self.state = MenuPageState.LOADING
        self.items = []
        self.error = ""
        self._feedback.clear()
        self._changed()

        try:
            items = await self.api.get_menu_items(self.restaurant_id)
        except StorefrontError as e:
            self.error = e.message or MENU_LOAD_FAILED_MESSAGE
            self.state = MenuPageState.ERROR
            logger.warning("menu_load_failed restaurant=%s error=%r", self.restaurant_id, self.error)
        else:
            self.items = items
            self.state = MenuPageState.POPULATED if items else MenuPageState.EMPTY
        self._changed()

    def dismiss_error(self) -> None:
        if not self.error:
            return
        self.error = ""
        self._changed()

    def item_by_id(self, item_id: str) -> MenuItem | None:
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None

    def feedback_for(self, item_id: str) -> CartFeedback | None:
        return self._feedback.get(item_id)

    def set_quantity(self, item: MenuItem, raw: object) -> int | None:
        if not item.is_available:
            return None
        quantity = self.quantities.set(item.item_id, raw)
        self._changed()
        return quantity

    def adjust_quantity(self, item: MenuItem, delta: int) -> int | None:
        if not item.is_available:
            return None
        quantity = self.quantities.adjust(item.item_id, delta)
        self._changed()
        return quantity

    async def add_to_cart(self, item: MenuItem) -> bool:
        """Submit one cart line for ``item``; returns True on success."""
        if not item.is_available:
            logger.info("cart_add_refused item=%s reason=unavailable", item.item_id)
            return False

        self._feedback.pop(item.item_id, None)
        self.submitting.add(item.item_id)
        self._changed()

        line = CartLineRequest(
            restaurant_id=self.restaurant_id,
            menu_item_id=item.item_id,
            quantity=self.quantities.get(item.item_id),
            price=item.price,
        )
        try:
            await self.api.add_to_cart(line)
        except StorefrontError as e:
            self._feedback[item.item_id] = CartFeedback(kind="error", text=e.message, token=next(self._tokens))
            logger.warning("cart_add_failed item=%s error=%r", item.item_id, e.message)
            return False
        finally:
            self.submitting.discard(item.item_id)
            self._changed()

        token = next(self._tokens)
        self._feedback[item.item_id] = CartFeedback(kind="success", text=f"{item.name} added to cart!", token=token)
        self.schedule(self.clear_after, lambda: self._expire_feedback(item.item_id, token))
        self._changed()
        return True

    def _expire_feedback(self, item_id: str, token: int) -> None:
        current = self._feedback.get(item_id)
        if current is None or current.token != token:
            return
        del self._feedback[item_id]
        self._changed()
