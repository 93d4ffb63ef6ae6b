# Role: Immutable order vocabulary (merchant, line items, sub-lines, prices, totals).
# Models are frozen and serialize with the platform's camelCase keys via to_payload().

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import Field, model_validator

from fulfillment.models.base import PlatformModel

GENERIC_EXTENSION_TYPE = "type.googleapis.com/google.actions.v2.orders.GenericExtension"

_NANOS_PER_UNIT = 1_000_000_000


class PriceType(str, Enum):
    ACTUAL = "ACTUAL"
    ESTIMATE = "ESTIMATE"


class LineItemType(str, Enum):
    REGULAR = "REGULAR"
    SUBTOTAL = "SUBTOTAL"
    TAX = "TAX"


class Money(PlatformModel):
    currency_code: str = "USD"
    units: int
    nanos: int = 0

    @model_validator(mode="after")
    def _check_nanos(self):
        if not 0 <= self.nanos < _NANOS_PER_UNIT:
            raise ValueError("nanos must be in [0, 1e9)")
        return self

    @classmethod
    def of(cls, amount: str, currency_code: str = "USD") -> "Money":
        # Key line: parse from a decimal string so fixture prices never touch float rounding.
        value = Decimal(amount)
        units = int(value)
        nanos = int((value - units) * _NANOS_PER_UNIT)
        return cls(currency_code=currency_code, units=units, nanos=nanos)

    def to_decimal(self) -> Decimal:
        return Decimal(self.units) + Decimal(self.nanos) / _NANOS_PER_UNIT

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        if other.currency_code != self.currency_code:
            raise ValueError(f"Cannot add {self.currency_code} and {other.currency_code}")
        return Money.of(str(self.to_decimal() + other.to_decimal()), self.currency_code)


class Price(PlatformModel):
    amount: Money
    type: PriceType = PriceType.ACTUAL


class Merchant(PlatformModel):
    id: str
    name: str


class LineItem(PlatformModel):
    id: str
    name: str
    price: Price
    quantity: Optional[int] = None
    type: LineItemType = LineItemType.REGULAR
    sub_lines: Optional[Tuple["SubLine", ...]] = None


class SubLine(PlatformModel):
    # Exactly one of note / line_item.
    note: Optional[str] = None
    line_item: Optional[LineItem] = None

    @model_validator(mode="after")
    def _check_one_of(self):
        if (self.note is None) == (self.line_item is None):
            raise ValueError("SubLine needs exactly one of note or line_item")
        return self


LineItem.model_rebuild()


class Cart(PlatformModel):
    merchant: Merchant
    line_items: Tuple[LineItem, ...]
    notes: Optional[str] = None
    other_items: Tuple[LineItem, ...] = ()


class Location(PlatformModel):
    # Passed through verbatim from the platform's delivery-address result.
    postal_address: Dict[str, Any]


class OrderLocation(PlatformModel):
    type: str = "DELIVERY"
    location: Location


class OrderExtension(PlatformModel):
    type_: str = Field(default=GENERIC_EXTENSION_TYPE, alias="@type")
    locations: Tuple[OrderLocation, ...] = ()


class Order(PlatformModel):
    id: str
    cart: Cart
    other_items: Tuple[LineItem, ...] = ()
    total_price: Price
    extension: Optional[OrderExtension] = None

    def with_delivery_address(self, postal_address: Dict[str, Any]) -> "Order":
        # Orders are immutable: attaching a location yields a new Order.
        extension = OrderExtension(
            locations=(
                OrderLocation(location=Location(postal_address=dict(postal_address))),
            )
        )
        return self.model_copy(update={"extension": extension})

