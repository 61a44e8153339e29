"""
Client for the chat message log, an external service.

Only used to drop system messages into an order's chat (assignment news
for the customer). Delivery is at-least-once from the caller's point of
view and a failure never propagates: the assignment that triggered it
has already been committed.
"""
import os
from typing import Optional

import httpx
import structlog

from shared.observability import bakery_side_effect_failures_total
from shared.security import INTERNAL_API_HEADERS

logger = structlog.get_logger(__name__)

CHAT_MESSAGES_URL = os.getenv("CHAT_MESSAGES_URL", "http://localhost:8005/messages")
SYSTEM_SENDER = "system"


async def post_system_message(
    order_id: int,
    recipient_id: int,
    message: str,
    client: Optional[httpx.AsyncClient] = None,
) -> bool:
    payload = {
        "order_id": order_id,
        "receiver_id": recipient_id,
        "sender": SYSTEM_SENDER,
        "message": message,
    }
    try:
        if client is not None:
            resp = await client.post(CHAT_MESSAGES_URL, json=payload, headers=INTERNAL_API_HEADERS)
        else:
            async with httpx.AsyncClient(headers=INTERNAL_API_HEADERS, timeout=5.0) as owned:
                resp = await owned.post(CHAT_MESSAGES_URL, json=payload)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("system_message_failed", order_id=order_id, recipient_id=recipient_id, error=str(e))
        bakery_side_effect_failures_total.labels(effect="notification").inc()
        return False

    logger.info("system_message_posted", order_id=order_id, recipient_id=recipient_id)
    return True
