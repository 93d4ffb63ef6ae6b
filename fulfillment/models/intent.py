# Role: Central enum of supported intents and the platform argument names they read.
# Values are the platform display names, so a decoded request maps onto an Intent directly.

from enum import Enum


class Intent(str, Enum):
    WELCOME = "Default Welcome Intent"
    TRANSACTION_MERCHANT = "Transaction Merchant"
    TRANSACTION_GOOGLE = "Transaction Google"
    TRANSACTION_CHECK_COMPLETE = "Transaction Check Complete"
    DELIVERY_ADDRESS = "Delivery Address"
    DELIVERY_ADDRESS_COMPLETE = "Delivery Address Complete"
    TRANSACTION_DECISION = "Transaction Decision"
    TRANSACTION_DECISION_COMPLETE = "Transaction Decision Complete"


class Argument(str, Enum):
    REQUIREMENTS_CHECK_RESULT = "TRANSACTION_REQUIREMENTS_CHECK_RESULT"
    DELIVERY_ADDRESS_VALUE = "DELIVERY_ADDRESS_VALUE"
    TRANSACTION_DECISION_VALUE = "TRANSACTION_DECISION_VALUE"
