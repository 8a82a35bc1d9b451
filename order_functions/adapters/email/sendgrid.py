"""SendGrid email sender adapter."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from order_functions.adapters.email.base import AbstractEmailSender, DeliveryReceipt, OutboundEmail
from order_functions.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)


class SendGridEmailSender(AbstractEmailSender):
    """Sends mail through the SendGrid v3 ``mail/send`` endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        from_email: str,
        from_name: str,
        url: str = "https://api.sendgrid.com/v3/mail/send",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.url = url
        self._timeout = timeout_seconds
        self._transport = transport

    def build_payload(self, message: OutboundEmail) -> dict[str, Any]:
        """Build the SendGrid request body (text part first, then HTML)."""
        return {
            "personalizations": [
                {
                    "to": [{"email": message.to_email, "name": message.to_name}],
                    "subject": message.subject,
                }
            ],
            "from": {"email": self.from_email, "name": self.from_name},
            "content": [
                {"type": "text/plain", "value": message.text},
                {"type": "text/html", "value": message.html},
            ],
        }

    async def send(self, message: OutboundEmail) -> DeliveryReceipt:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    json=self.build_payload(message),
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as exc:
            logger.error("email.provider_unreachable", extra={"error_type": type(exc).__name__})
            raise UpstreamAppError(
                code="email_provider_unavailable",
                message="Email provider request failed",
                details={"upstream": "sendgrid", "upstream_error": str(exc)},
            ) from exc

        if not response.is_success:
            logger.error(
                "email.provider_rejected",
                extra={"status_code": response.status_code, "response_text": response.text[:500]},
            )
            raise UpstreamAppError(
                code="email_send_failed",
                message=f"Failed to send email: {response.status_code}",
                details={
                    "upstream": "sendgrid",
                    "upstream_status": response.status_code,
                    "upstream_error": response.text[:500],
                },
            )

        return DeliveryReceipt(simulated=False, provider="sendgrid", status_code=response.status_code)
