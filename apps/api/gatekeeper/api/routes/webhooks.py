"""
Inbound webhooks. Payloads are handed to ``webhook.received`` listeners.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, Request, status

from gatekeeper.api.dependencies import Hooks, rate_limit
from gatekeeper.core.hooks import WebhookReceived
from gatekeeper.utils.context import get_client_ip

logger = structlog.get_logger()

router = APIRouter()


@router.post(
    "/{name}",
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(rate_limit("webhook"))],
)
async def receive_webhook(
    name: str,
    request: Request,
    hooks: Hooks,
    payload: dict[str, Any] = Body(default_factory=dict),
):
    client_ip = get_client_ip(request)
    logger.info("Webhook received", name=name, client_ip=client_ip)
    await hooks.dispatch(WebhookReceived(name=name, payload=payload, client_ip=client_ip))
    return {"data": {"type": "webhook", "id": name, "attributes": {"accepted": True}}}
