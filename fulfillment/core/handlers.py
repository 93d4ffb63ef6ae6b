# Role: Per-intent handlers for the transaction demo. Each handler is a pure function of the TurnContext
# (arguments, session state, contexts) that returns a HandlerResult; nothing is mutated in place.
# Unexpected platform result codes end the session with a fixed message (no retries).

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from fulfillment.config import FulfillmentConfig
from fulfillment.core.dispatcher import Dispatcher
from fulfillment.core.errors import UnexpectedDecisionCode
from fulfillment.core.order_ids import OrderIdGenerator
from fulfillment.fixtures.cart import build_order
from fulfillment.models.context import GOOGLE_PAY, MERCHANT_PAY
from fulfillment.models.conversation import ConversationState
from fulfillment.models.directive import PayloadKind, StructuredPayload, close, say, suggest
from fulfillment.models.intent import Argument, Intent
from fulfillment.models.payment import OrderOptions, PaymentOptions
from fulfillment.models.turn import HandlerResult, TurnContext
from fulfillment.prompts import responses

logger = logging.getLogger(__name__)

ORDER_ID_KEY = "orderId"
DELIVERY_ADDRESS_KEY = "deliveryAddress"

RESULT_OK = "OK"
ADDRESS_ACCEPTED = "ACCEPTED"
ORDER_ACCEPTED = "ORDER_ACCEPTED"
DELIVERY_ADDRESS_UPDATED = "DELIVERY_ADDRESS_UPDATED"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _expect_code(argument: Argument, value: Any, field: str, expected: Iterable[str]) -> str:
    # Pull a result/decision code out of a platform argument; anything unexpected raises.
    expected_set = set(expected)
    code = value.get(field) if isinstance(value, Mapping) else None
    if not isinstance(code, str) or code not in expected_set:
        raise UnexpectedDecisionCode(argument.value, code, expected_set)
    return code


class TransactionHandlers:
    def __init__(
        self,
        config: Optional[FulfillmentConfig] = None,
        order_ids: Optional[OrderIdGenerator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        # Key line: dependencies are injectable for testing (deterministic ids and timestamps).
        self.config = config or FulfillmentConfig()
        self.order_ids = order_ids or OrderIdGenerator(self.config.order_id_strategy)
        self.clock = clock or _utc_now

    def register(self, dispatcher: Dispatcher) -> Dispatcher:
        dispatcher.register(Intent.WELCOME, self.welcome)
        dispatcher.register(Intent.TRANSACTION_MERCHANT, self.transaction_merchant)
        dispatcher.register(Intent.TRANSACTION_GOOGLE, self.transaction_google)
        dispatcher.register(Intent.TRANSACTION_CHECK_COMPLETE, self.transaction_check_complete)
        dispatcher.register(Intent.DELIVERY_ADDRESS, self.delivery_address)
        dispatcher.register(Intent.DELIVERY_ADDRESS_COMPLETE, self.delivery_address_complete)
        dispatcher.register(Intent.TRANSACTION_DECISION, self.transaction_decision)
        dispatcher.register(Intent.TRANSACTION_DECISION_COMPLETE, self.transaction_decision_complete)
        return dispatcher

    # ------------------------------------------------------------------
    # Payload builders
    # ------------------------------------------------------------------
    def _google_payment_options(self) -> PaymentOptions:
        return PaymentOptions.google_provided(self.config.braintree.tokenization_parameters())

    def _requirements_check(self, payment_options: PaymentOptions) -> StructuredPayload:
        return StructuredPayload(
            kind=PayloadKind.TRANSACTION_REQUIREMENTS_CHECK,
            data={
                "orderOptions": OrderOptions(request_delivery_address=False).to_payload(),
                "paymentOptions": payment_options.to_payload(),
            },
        )

    @staticmethod
    def _delivery_address_request() -> StructuredPayload:
        return StructuredPayload(
            kind=PayloadKind.DELIVERY_ADDRESS,
            data={"addressOptions": {"reason": responses.ADDRESS_REASON}},
        )

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------
    def welcome(self, turn: TurnContext) -> HandlerResult:
        return HandlerResult(
            directives=[
                say(responses.WELCOME_SPEECH, responses.WELCOME_TEXT),
                suggest(*responses.SUGGEST_PAYMENT_PATHS),
            ]
        )

    def transaction_merchant(self, turn: TurnContext) -> HandlerResult:
        return HandlerResult(
            directives=[self._requirements_check(PaymentOptions.action_provided())],
            context_delta={MERCHANT_PAY: self.config.payment_context_lifespan},
        )

    def transaction_google(self, turn: TurnContext) -> HandlerResult:
        return HandlerResult(
            directives=[self._requirements_check(self._google_payment_options())],
            context_delta={GOOGLE_PAY: self.config.payment_context_lifespan},
        )

    def transaction_check_complete(self, turn: TurnContext) -> HandlerResult:
        arg = turn.argument(Argument.REQUIREMENTS_CHECK_RESULT.value)
        try:
            _expect_code(Argument.REQUIREMENTS_CHECK_RESULT, arg, "resultType", {RESULT_OK})
        except UnexpectedDecisionCode as e:
            logger.info("Requirements check failed: %s", e)
            return HandlerResult(directives=[close(responses.TRANSACTION_FAILED)])

        return HandlerResult(
            directives=[
                say(responses.REQUIREMENTS_OK),
                suggest(responses.SUGGEST_DELIVERY_ADDRESS),
            ]
        )

    def delivery_address(self, turn: TurnContext) -> HandlerResult:
        return HandlerResult(directives=[self._delivery_address_request()])

    def delivery_address_complete(self, turn: TurnContext) -> HandlerResult:
        arg = turn.argument(Argument.DELIVERY_ADDRESS_VALUE.value)
        try:
            _expect_code(Argument.DELIVERY_ADDRESS_VALUE, arg, "userDecision", {ADDRESS_ACCEPTED})
        except UnexpectedDecisionCode as e:
            logger.info("Delivery address not provided: %s", e)
            return HandlerResult(directives=[close(responses.ADDRESS_FAILED)])

        location = arg.get("location")
        location = location if isinstance(location, Mapping) else {}
        postal_address = location.get("postalAddress")
        lines = postal_address.get("addressLines") if isinstance(postal_address, Mapping) else None
        lines = lines if isinstance(lines, list) else []
        logger.info("DELIVERY ADDRESS: %s", lines[0] if lines else "<no address lines>")

        return HandlerResult(
            directives=[
                say(responses.ADDRESS_ACCEPTED),
                suggest(responses.SUGGEST_CONFIRM),
            ],
            state_delta={DELIVERY_ADDRESS_KEY: dict(location)},
        )

    def transaction_decision(self, turn: TurnContext) -> HandlerResult:
        # 1) Fresh order id per order, remembered for the confirmation turn
        # 2) Build the fixture order, with a delivery location if one was collected
        # 3) Payment options follow the payment path chosen earlier (google_pay context)
        order_id = self.order_ids.new_id(turn.session_id)
        order = build_order(order_id, turn.session_state.get(DELIVERY_ADDRESS_KEY))

        if turn.contexts.is_active(GOOGLE_PAY):
            payment_options = self._google_payment_options()
        else:
            payment_options = PaymentOptions.action_provided()

        payload = StructuredPayload(
            kind=PayloadKind.TRANSACTION_DECISION,
            data={
                "orderOptions": OrderOptions(request_delivery_address=True).to_payload(),
                "paymentOptions": payment_options.to_payload(),
                "proposedOrder": order.to_payload(),
            },
        )
        return HandlerResult(directives=[payload], state_delta={ORDER_ID_KEY: order_id})

    def transaction_decision_complete(self, turn: TurnContext) -> HandlerResult:
        arg = turn.argument(Argument.TRANSACTION_DECISION_VALUE.value)
        try:
            decision = _expect_code(
                Argument.TRANSACTION_DECISION_VALUE,
                arg,
                "userDecision",
                {ORDER_ACCEPTED, DELIVERY_ADDRESS_UPDATED},
            )
        except UnexpectedDecisionCode as e:
            logger.info("Transaction decision not accepted: %s", e)
            return HandlerResult(directives=[close(responses.TRANSACTION_FAILED)])

        if decision == DELIVERY_ADDRESS_UPDATED:
            # Loop back: ask for the address again.
            return HandlerResult(
                directives=[self._delivery_address_request()],
                next_state=ConversationState.ADDRESS_REQUESTED,
            )

        order_info = arg.get("order")
        order_info = order_info if isinstance(order_info, Mapping) else {}
        final_order = order_info.get("finalOrder")
        stored_id = turn.session_state.get(ORDER_ID_KEY)
        final_order_id = (final_order.get("id") if isinstance(final_order, Mapping) else None) or stored_id
        receipt_id = stored_id or final_order_id
        if not receipt_id:
            logger.warning("Order accepted but no order id is known (session=%s)", turn.session_id)
            return HandlerResult(directives=[close(responses.TRANSACTION_FAILED)])

        if turn.contexts.is_active(GOOGLE_PAY):
            payment_info = order_info.get("paymentInfo")
            display_name = payment_info.get("displayName") if isinstance(payment_info, Mapping) else None
            logger.debug("Google Pay payment display name: %s", display_name)

        update = StructuredPayload(kind=PayloadKind.ORDER_UPDATE, data=self._order_update(final_order_id, receipt_id))
        return HandlerResult(directives=[update, say(responses.order_confirmed(receipt_id))])

    def _order_update(self, action_order_id: Optional[str], receipt_id: Optional[str]) -> Dict[str, Any]:
        update_time = self.clock().astimezone(timezone.utc).isoformat(timespec="milliseconds")
        return {
            "actionOrderId": action_order_id,
            "orderState": {"label": responses.ORDER_CREATED_LABEL, "state": "CREATED"},
            "lineItemUpdates": {},
            "updateTime": update_time.replace("+00:00", "Z"),
            "receipt": {"confirmedActionOrderId": receipt_id},
            "orderManagementActions": [
                {
                    "button": {
                        "openUrlAction": {"url": self.config.customer_service_url},
                        "title": responses.CUSTOMER_SERVICE_TITLE,
                    },
                    "type": "CUSTOMER_SERVICE",
                }
            ],
            "userNotification": {
                "text": responses.NOTIFICATION_TEXT,
                "title": responses.NOTIFICATION_TITLE,
            },
        }


def build_dispatcher(
    config: Optional[FulfillmentConfig] = None,
    order_ids: Optional[OrderIdGenerator] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Dispatcher:
    config = config or FulfillmentConfig()
    dispatcher = Dispatcher(config)
    TransactionHandlers(config=config, order_ids=order_ids, clock=clock).register(dispatcher)
    return dispatcher
