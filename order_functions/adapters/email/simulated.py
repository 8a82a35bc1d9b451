"""Log-only sender used when no email provider is configured."""

from __future__ import annotations

import logging

from order_functions.adapters.email.base import AbstractEmailSender, DeliveryReceipt, OutboundEmail

logger = logging.getLogger(__name__)


class SimulatedEmailSender(AbstractEmailSender):
    simulated = True

    def __init__(self) -> None:
        self.outbox: list[OutboundEmail] = []

    async def send(self, message: OutboundEmail) -> DeliveryReceipt:
        self.outbox.append(message)
        logger.info(
            "email.simulated",
            extra={
                "recipient": message.to_email,
                "subject": message.subject,
                "text_length": len(message.text),
                "html_length": len(message.html),
            },
        )
        return DeliveryReceipt(simulated=True, provider="simulated")
