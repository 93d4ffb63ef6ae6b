# Role: Thin HTTP adapter for the platform webhook. Decodes the Dialogflow request, runs exactly one
# dispatch (with the configured unknown-intent policy) and encodes the reply. No flow logic here.

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from fulfillment.api.deps import Services, get_services
from fulfillment.core.fallback_handler import dispatch_with_fallback
from fulfillment.platform.dialogflow import decode_request, encode_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["fulfillment"])


@router.post("/fulfillment")
def fulfillment(
    body: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    # 1) Wire JSON -> TurnRequest (PlatformPayloadError -> 400 via app handler)
    # 2) Dispatch; unknown intents follow config.unknown_intent_policy
    # 3) TurnResponse -> wire JSON (state round-trips through contexts; nothing kept server-side)
    request = decode_request(body)
    logger.debug("Webhook turn session=%s intent=%r args=%s", request.session_id, request.intent, sorted(request.arguments))
    response = dispatch_with_fallback(services.dispatcher, request, services.fallback)
    return encode_response(request, response)
