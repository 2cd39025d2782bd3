"""Rendering helpers for menu cards, statuses and the order summary."""

from __future__ import annotations

from decimal import Decimal

from PIL import Image
from rich.table import Table
from rich.text import Text

from storefront.models import CartFeedback, MenuItem, OrderLine
from storefront.order_summary import format_amount, order_total


def availability_style(is_available: bool) -> str:
    if is_available:
        return "bold #0b1f0f on #5fbf72"
    return "bold #ffffff on #b23a48"


def format_price(price: Decimal) -> str:
    return f"${price:.2f}"


def format_menu_row(item: MenuItem, quantity: int, selected: bool, submitting: bool = False) -> Text:
    """One line of the menu list. Unavailable rows carry no quantity."""
    text = Text()
    text.append("➤ " if selected else "  ")
    label = "Available" if item.is_available else "Unavailable"
    text.append(f" {label[0]} ", style=availability_style(item.is_available))
    text.append(f" {item.name}")
    text.append(f"  {format_price(item.price)}", style="dim")
    if item.is_available:
        text.append(f"  x{quantity}", style="bold")
        if submitting:
            text.append("  adding…", style="italic")
    return text


def format_item_detail(item: MenuItem, quantity: int) -> Text:
    """Detail card for the selected menu item."""
    text = Text()
    text.append(item.name, style="bold")
    text.append(f"\n{format_price(item.price)}")
    if item.category:
        text.append(f"\n{item.category.capitalize()}", style="dim")
    if item.description:
        text.append(f"\n{item.description}")
    text.append("\n")
    label = "Available" if item.is_available else "Unavailable"
    text.append(f"\n {label} ", style=availability_style(item.is_available))
    if item.is_available:
        text.append(f"\nQuantity: {quantity}   (+/- adjust, e type, Enter add to cart)")
    return text


def format_feedback(feedback: CartFeedback | None) -> Text:
    if feedback is None:
        return Text()
    if feedback.kind == "success":
        return Text(f"✔ {feedback.text}", style="bold #5fbf72")
    return Text(f"✖ {feedback.text}", style="bold #ff6b6b")


def format_error_banner(message: str) -> Text:
    text = Text()
    if not message:
        return text
    text.append(" ! ", style="bold #ffffff on #b23a48")
    text.append(f" {message}", style="#ffb3b3")
    text.append("   (x dismiss)", style="dim")
    return text


def payment_status_style(status: str) -> str:
    if status == "Success":
        return "bold #5fbf72"
    if status == "Failed":
        return "bold #ff6b6b"
    return "bold #f0a830"


def format_payment_status(status: str) -> Text:
    text = Text()
    text.append("Payment Status: ", style="bold")
    text.append(status or "-", style=payment_status_style(status))
    return text


def order_summary_table(lines: list[OrderLine], currency: str) -> Table:
    table = Table(expand=True, show_edge=False)
    table.add_column("Item")
    table.add_column("Quantity", justify="right")
    table.add_column(f"Price ({currency})", justify="right")
    for line in lines:
        table.add_row(line.item, str(line.quantity), format_amount(line.price))
    table.add_section()
    table.add_row(Text("Total", style="bold"), "", Text(format_amount(order_total(lines)), style="bold"))
    return table


def image_preview(image: Image.Image, width: int = 24) -> Text:
    """Render an image as half-block characters, two pixel rows per line."""
    rgb = image.convert("RGB")
    src_width, src_height = rgb.size
    width = max(1, width)
    height = max(2, round(width * src_height / max(1, src_width)))
    height += height % 2
    small = rgb.resize((width, height))
    pixels = small.load()

    text = Text()
    for y in range(0, height, 2):
        if y > 0:
            text.append("\n")
        for x in range(width):
            top = pixels[x, y]
            bottom = pixels[x, y + 1]
            text.append("▀", style=f"rgb({top[0]},{top[1]},{top[2]}) on rgb({bottom[0]},{bottom[1]},{bottom[2]})")
    return text
