# Role: Central configuration module. Loads .env into environment variables and builds one explicit,
# immutable FulfillmentConfig that is handed to the dispatcher, handlers and API at construction time.

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Literal, Mapping, Optional

from dotenv import load_dotenv

UnknownIntentPolicy = Literal["error", "fallback"]
OrderIdStrategy = Literal["secure", "counter"]

_TRUTHY = {"1", "true", "yes"}

DEFAULT_FALLBACK_MESSAGE = (
    "Sorry, I didn't get that. "
    'Try saying "Merchant Transaction" or "Google Pay Transaction".'
)


@dataclass(frozen=True)
class BraintreeConfig:
    # Placeholder tokenization values; a real payment processor supplies these.
    merchant_id: str = "xxxxxxxxxxx"
    client_key: str = "sandbox_xxxxxxxxxxxxxxx"
    authorization_fingerprint: str = "sandbox_xxxxxxxxxxxxxxx"
    sdk_version: str = "1.4.0"
    api_version: str = "v1"

    def tokenization_parameters(self) -> Dict[str, str]:
        return {
            "gateway": "braintree",
            "braintree:sdkVersion": self.sdk_version,
            "braintree:apiVersion": self.api_version,
            "braintree:merchantId": self.merchant_id,
            "braintree:clientKey": self.client_key,
            "braintree:authorizationFingerprint": self.authorization_fingerprint,
        }


@dataclass(frozen=True)
class FulfillmentConfig:
    debug: bool = False
    unknown_intent_policy: UnknownIntentPolicy = "error"
    fallback_message: str = DEFAULT_FALLBACK_MESSAGE
    payment_context_lifespan: int = 5
    enforce_transitions: bool = False
    order_id_strategy: OrderIdStrategy = "secure"
    customer_service_url: str = "http://example.com/customer-service"
    session_ttl_minutes: int = 60
    braintree: BraintreeConfig = field(default_factory=BraintreeConfig)

    def __post_init__(self) -> None:
        if self.unknown_intent_policy not in ("error", "fallback"):
            raise ValueError(f"unknown_intent_policy must be 'error' or 'fallback', got {self.unknown_intent_policy!r}")
        if self.order_id_strategy not in ("secure", "counter"):
            raise ValueError(f"order_id_strategy must be 'secure' or 'counter', got {self.order_id_strategy!r}")
        if self.payment_context_lifespan <= 0:
            raise ValueError("payment_context_lifespan must be > 0")


def _env_flag(source: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = source.get(name)
    if raw is None:
        return default
    # Key line: accept common truthy values.
    return raw.strip().lower() in _TRUTHY


def load_env() -> None:
    """Load .env into os.environ (existing variables win)."""
    load_dotenv()


def load_config(env: Optional[Dict[str, str]] = None) -> FulfillmentConfig:
    """
    Build a FulfillmentConfig from environment variables.
    Pass `env` to read from an explicit mapping instead of os.environ (handy in tests).
    """
    if env is None:
        load_env()
        source: Mapping[str, str] = os.environ
    else:
        source = env

    def get(name: str, default: str) -> str:
        value = source.get(name)
        return value.strip() if value and value.strip() else default

    debug = _env_flag(source, "DEBUG")
    enforce = _env_flag(source, "ENFORCE_TRANSITIONS")

    braintree = BraintreeConfig(
        merchant_id=get("BRAINTREE_MERCHANT_ID", BraintreeConfig.merchant_id),
        client_key=get("BRAINTREE_CLIENT_KEY", BraintreeConfig.client_key),
        authorization_fingerprint=get(
            "BRAINTREE_AUTHORIZATION_FINGERPRINT", BraintreeConfig.authorization_fingerprint
        ),
        sdk_version=get("BRAINTREE_SDK_VERSION", BraintreeConfig.sdk_version),
        api_version=get("BRAINTREE_API_VERSION", BraintreeConfig.api_version),
    )

    return FulfillmentConfig(
        debug=debug,
        unknown_intent_policy=get("UNKNOWN_INTENT_POLICY", "error").lower(),  # type: ignore[arg-type]
        fallback_message=get("FALLBACK_MESSAGE", DEFAULT_FALLBACK_MESSAGE),
        payment_context_lifespan=int(get("PAYMENT_CONTEXT_LIFESPAN", "5")),
        enforce_transitions=enforce,
        order_id_strategy=get("ORDER_ID_STRATEGY", "secure").lower(),  # type: ignore[arg-type]
        customer_service_url=get("CUSTOMER_SERVICE_URL", FulfillmentConfig.customer_service_url),
        session_ttl_minutes=int(get("SESSION_TTL_MINUTES", "60")),
        braintree=braintree,
    )


def configure_logging(config: FulfillmentConfig) -> None:
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
