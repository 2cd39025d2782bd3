"""Tests for menu browsing, quantities and add-to-cart feedback."""

import asyncio

import pytest
from conftest import FakeAPI

from storefront.exceptions import APIError
from storefront.menu import MenuBrowser, MenuPageState, QuantityStore, clamp_quantity

# =============================================================================
# Quantity coercion
# =============================================================================


class TestClampQuantity:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("5", 5),
            ("12", 12),
            (" 7", 7),
            ("3.9", 3),
            ("4abc", 4),
            ("abc", 1),
            ("", 1),
            ("0", 1),
            ("-4", 1),
            (0, 1),
            (-2, 1),
            (8, 8),
            (2.7, 2),
            (None, 1),
        ],
    )
    def test_clamp(self, raw, expected):
        assert clamp_quantity(raw) == expected

    def test_nan_and_infinity_become_one(self):
        assert clamp_quantity(float("nan")) == 1
        assert clamp_quantity(float("inf")) == 1


class TestQuantityStore:
    def test_default_on_miss(self):
        store = QuantityStore()

        assert store.get("anything") == 1

    def test_set_clamps_and_keys_by_item(self):
        store = QuantityStore()

        assert store.set("a", "6") == 6
        assert store.set("b", "nope") == 1
        assert store.get("a") == 6
        assert store.get("b") == 1

    def test_adjust_never_goes_below_one(self):
        store = QuantityStore()

        store.adjust("a", -1)
        assert store.get("a") == 1
        store.adjust("a", 3)
        assert store.get("a") == 4


# =============================================================================
# Page loading
# =============================================================================


class TestMenuLoading:
    def test_starts_loading(self, scheduler):
        browser = MenuBrowser(FakeAPI(), "r1", schedule=scheduler)

        assert browser.state == MenuPageState.LOADING

    @pytest.mark.asyncio
    async def test_populated(self, scheduler, burger, soup):
        api = FakeAPI(items=[burger, soup])
        browser = MenuBrowser(api, "r1", schedule=scheduler)

        await browser.load()

        assert browser.state == MenuPageState.POPULATED
        assert browser.items == [burger, soup]
        assert api.menu_calls == ["r1"]

    @pytest.mark.asyncio
    async def test_empty(self, scheduler):
        browser = MenuBrowser(FakeAPI(items=[]), "r1", schedule=scheduler)

        await browser.load()

        assert browser.state == MenuPageState.EMPTY
        assert browser.items == []

    @pytest.mark.asyncio
    async def test_error_uses_server_message(self, scheduler):
        api = FakeAPI(menu_error=APIError("Restaurant not found", status_code=404))
        browser = MenuBrowser(api, "missing", schedule=scheduler)

        await browser.load()

        assert browser.state == MenuPageState.ERROR
        assert browser.error == "Restaurant not found"

    @pytest.mark.asyncio
    async def test_error_is_dismissable(self, scheduler):
        changes = []
        api = FakeAPI(menu_error=APIError("Failed to load menu items"))
        browser = MenuBrowser(api, "r1", schedule=scheduler, on_change=lambda: changes.append(browser.error))

        await browser.load()
        browser.dismiss_error()

        assert browser.error == ""
        assert changes[-1] == ""

    @pytest.mark.asyncio
    async def test_switching_restaurant_resets_quantities(self, scheduler, burger):
        api = FakeAPI(items=[burger])
        browser = MenuBrowser(api, "r1", schedule=scheduler)
        await browser.load()
        browser.set_quantity(burger, "4")

        await browser.load("r2")

        assert api.menu_calls == ["r1", "r2"]
        assert browser.restaurant_id == "r2"
        assert browser.quantities.get(burger.item_id) == 1


# =============================================================================
# Add to cart
# =============================================================================


class TestAddToCart:
    @pytest.mark.asyncio
    async def test_sends_line_with_selected_quantity(self, scheduler, burger):
        api = FakeAPI(items=[burger])
        browser = MenuBrowser(api, "r1", schedule=scheduler)
        await browser.load()
        browser.set_quantity(burger, "3")

        assert await browser.add_to_cart(burger) is True

        line = api.cart_calls[0]
        assert line.restaurant_id == "r1"
        assert line.menu_item_id == burger.item_id
        assert line.quantity == 3
        assert line.price == burger.price

    @pytest.mark.asyncio
    async def test_default_quantity_is_one(self, scheduler, pizza):
        api = FakeAPI(items=[pizza])
        browser = MenuBrowser(api, "r1", schedule=scheduler)

        await browser.add_to_cart(pizza)

        assert api.cart_calls[0].quantity == 1

    @pytest.mark.asyncio
    async def test_success_message_clears_after_three_seconds(self, scheduler, burger):
        browser = MenuBrowser(FakeAPI(items=[burger]), "r1", schedule=scheduler)

        await browser.add_to_cart(burger)

        assert browser.feedback_for(burger.item_id).text == "Chicken Burger added to cart!"
        assert [delay for delay, _ in scheduler.calls] == [3.0]

        # Nothing clears the message until the timer fires.
        assert browser.feedback_for(burger.item_id) is not None

        scheduler.fire(0)
        assert browser.feedback_for(burger.item_id) is None

    @pytest.mark.asyncio
    async def test_stale_timer_keeps_newer_message(self, scheduler, burger):
        browser = MenuBrowser(FakeAPI(items=[burger]), "r1", schedule=scheduler)

        await browser.add_to_cart(burger)
        await browser.add_to_cart(burger)
        scheduler.fire(0)

        assert browser.feedback_for(burger.item_id) is not None

        scheduler.fire(1)
        assert browser.feedback_for(burger.item_id) is None

    @pytest.mark.asyncio
    async def test_error_persists_with_server_message(self, scheduler, burger, cart_error):
        api = FakeAPI(items=[burger], cart_errors={burger.item_id: cart_error})
        browser = MenuBrowser(api, "r1", schedule=scheduler)

        assert await browser.add_to_cart(burger) is False

        feedback = browser.feedback_for(burger.item_id)
        assert feedback.kind == "error"
        assert feedback.text == "Item is out of stock"
        assert scheduler.calls == []
        assert burger.item_id not in browser.submitting

    @pytest.mark.asyncio
    async def test_next_action_clears_previous_error(self, scheduler, burger, cart_error):
        api = FakeAPI(items=[burger], cart_errors={burger.item_id: cart_error})
        browser = MenuBrowser(api, "r1", schedule=scheduler)
        await browser.add_to_cart(burger)

        api.cart_errors.clear()
        await browser.add_to_cart(burger)

        assert browser.feedback_for(burger.item_id).kind == "success"

    @pytest.mark.asyncio
    async def test_unavailable_item_is_refused_locally(self, scheduler, soup):
        api = FakeAPI(items=[soup])
        browser = MenuBrowser(api, "r1", schedule=scheduler)

        assert await browser.add_to_cart(soup) is False
        assert browser.set_quantity(soup, "2") is None
        assert browser.adjust_quantity(soup, 1) is None
        assert api.cart_calls == []

    @pytest.mark.asyncio
    async def test_concurrent_items_keep_their_own_messages(self, scheduler, burger, pizza, cart_error):
        api = FakeAPI(items=[burger, pizza], cart_errors={pizza.item_id: cart_error})
        browser = MenuBrowser(api, "r1", schedule=scheduler)

        results = await asyncio.gather(browser.add_to_cart(burger), browser.add_to_cart(pizza))

        assert results == [True, False]
        assert browser.feedback_for(burger.item_id).kind == "success"
        assert browser.feedback_for(pizza.item_id).kind == "error"

    @pytest.mark.asyncio
    async def test_submitting_flag_during_request(self, scheduler, burger):
        seen = []

        class SlowAPI(FakeAPI):
            async def add_to_cart(self, line):
                seen.append(set(browser.submitting))
                await super().add_to_cart(line)

        browser = MenuBrowser(SlowAPI(items=[burger]), "r1", schedule=scheduler)

        await browser.add_to_cart(burger)

        assert seen == [{burger.item_id}]
        assert browser.submitting == set()
