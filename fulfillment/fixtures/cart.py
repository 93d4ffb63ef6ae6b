# Role: The demo's hardcoded book-store cart. build_order() constructs a fresh, immutable Order
# from the same fixture data every time; only the order id varies.

from __future__ import annotations

from typing import Any, Mapping, Optional

from fulfillment.models.order import (
    Cart,
    LineItem,
    LineItemType,
    Merchant,
    Money,
    Order,
    Price,
    PriceType,
    SubLine,
)

MERCHANT = Merchant(id="book_store_1", name="Book Store")
CART_NOTES = "The Memoir collection"
TAX = Money.of("2.78")


def _book(item_id: str, name: str, amount: str, sub_line: SubLine) -> LineItem:
    return LineItem(
        id=item_id,
        name=name,
        price=Price(amount=Money.of(amount), type=PriceType.ACTUAL),
        quantity=1,
        type=LineItemType.REGULAR,
        sub_lines=(sub_line,),
    )


EPILOGUE = LineItem(
    id="memoirs_epilogue",
    name="Special memoir epilogue",
    price=Price(amount=Money.of("3.99"), type=PriceType.ACTUAL),
    quantity=1,
    type=LineItemType.REGULAR,
)

LINE_ITEMS = (
    _book("memoirs_1", "My Memoirs", "3.99", SubLine(note="Note from the author")),
    _book("memoirs_2", "Memoirs of a person", "5.99", SubLine(note="Special introduction by author")),
    _book("memoirs_3", "Their memoirs", "15.75", SubLine(line_item=EPILOGUE)),
    _book("memoirs_4", "Our memoirs", "6.49", SubLine(note="Special introduction by author")),
)


def build_order(order_id: str, delivery_location: Optional[Mapping[str, Any]] = None) -> Order:
    """
    Build the fixture order.
    Subtotal is the sum of top-level line item prices (sub-line items are included in their
    parent's price); total = subtotal + tax. `delivery_location` is the platform location object
    stored after the delivery-address step; its postalAddress becomes a DELIVERY extension.
    """
    if not order_id:
        raise ValueError("order_id must be non-empty")

    cart = Cart(merchant=MERCHANT, line_items=LINE_ITEMS, notes=CART_NOTES, other_items=())

    subtotal = LINE_ITEMS[0].price.amount
    for item in LINE_ITEMS[1:]:
        subtotal = subtotal + item.price.amount

    order = Order(
        id=order_id,
        cart=cart,
        other_items=(
            LineItem(
                id="subtotal",
                name="Subtotal",
                price=Price(amount=subtotal, type=PriceType.ESTIMATE),
                type=LineItemType.SUBTOTAL,
            ),
            LineItem(
                id="tax",
                name="Tax",
                price=Price(amount=TAX, type=PriceType.ESTIMATE),
                type=LineItemType.TAX,
            ),
        ),
        total_price=Price(amount=subtotal + TAX, type=PriceType.ESTIMATE),
    )

    postal_address = delivery_location.get("postalAddress") if isinstance(delivery_location, Mapping) else None
    if isinstance(postal_address, Mapping) and postal_address:
        order = order.with_delivery_address(dict(postal_address))
    return order
