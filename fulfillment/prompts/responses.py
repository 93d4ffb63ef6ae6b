# Role: User-facing copy for the transaction flow. Kept in one place so handlers stay about routing
# and tests can assert on exact strings.

from __future__ import annotations

from typing import List

WELCOME_SPEECH = (
    "  Hey there! I can help you go through a transaction with Google "
    "Pay and Merchant-managed payments."
)
WELCOME_TEXT = (
    "  Hi there! I can help you go through a transaction with Google "
    "Pay and Merchant-managed payments."
)

SUGGEST_PAYMENT_PATHS: List[str] = ["Merchant Transaction", "Google Pay Transaction"]

REQUIREMENTS_OK = 'Looks like you\'re good to go! Try saying "Get Delivery Address".'
SUGGEST_DELIVERY_ADDRESS = "Get Delivery Address"

ADDRESS_REASON = "To know where to send the order"
ADDRESS_ACCEPTED = 'Great, got your address! Now say "confirm transaction".'
SUGGEST_CONFIRM = "Confirm Transaction"

TRANSACTION_FAILED = "Transaction failed."
ADDRESS_FAILED = "I failed to get your delivery address."

ORDER_CREATED_LABEL = "Order created"
NOTIFICATION_TITLE = "Notification Title"
NOTIFICATION_TEXT = "Notification text."
CUSTOMER_SERVICE_TITLE = "Customer Service"


def order_confirmed(order_id: str) -> str:
    return f"Transaction completed! Your order {order_id} is all set!"
