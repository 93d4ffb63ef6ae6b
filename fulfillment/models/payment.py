# Role: Payment and order option payloads sent with transaction requirement/decision requests.
# Two payment paths exist: action-provided (merchant-managed card) and Google-provided (tokenized card).

from __future__ import annotations

from typing import Dict, Optional, Tuple

from fulfillment.models.base import PlatformModel

SUPPORTED_CARD_NETWORKS = ("VISA", "AMEX", "DISCOVER", "MASTERCARD")


class OrderOptions(PlatformModel):
    request_delivery_address: bool = False


class ActionProvidedOptions(PlatformModel):
    payment_type: str = "PAYMENT_CARD"
    display_name: str = "VISA-1234"


class TokenizationParameters(PlatformModel):
    parameters: Dict[str, str]
    tokenization_type: str = "PAYMENT_GATEWAY"


class GoogleProvidedOptions(PlatformModel):
    prepaid_card_disallowed: bool = False
    supported_card_networks: Tuple[str, ...] = SUPPORTED_CARD_NETWORKS
    tokenization_parameters: TokenizationParameters


class PaymentOptions(PlatformModel):
    action_provided_options: Optional[ActionProvidedOptions] = None
    google_provided_options: Optional[GoogleProvidedOptions] = None

    @classmethod
    def action_provided(cls) -> "PaymentOptions":
        return cls(action_provided_options=ActionProvidedOptions())

    @classmethod
    def google_provided(cls, gateway_parameters: Dict[str, str]) -> "PaymentOptions":
        return cls(
            google_provided_options=GoogleProvidedOptions(
                tokenization_parameters=TokenizationParameters(parameters=dict(gateway_parameters)),
            )
        )
