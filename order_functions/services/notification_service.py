"""Order notification email service.

Loads the customer-facing order summary, renders the requested email kind,
hands it to the configured sender and records an ``email_sent`` event when a
real delivery happened.
"""

from __future__ import annotations

import logging

from order_functions.adapters.email.base import AbstractEmailSender, OutboundEmail
from order_functions.adapters.store.base import AbstractOrderStore
from order_functions.core.errors import NotFoundAppError, UpstreamAppError
from order_functions.schemas.email import SendOrderEmailResponse
from order_functions.services.email_formatter import DEFAULT_SITE_URL, EmailKind, render_email

logger = logging.getLogger(__name__)


class OrderNotificationService:
    """Sends order notification emails.

    Attributes:
        store: Order store adapter.
        sender: Email sender (SendGrid or simulated).
        site_url: Storefront base URL for links in emails.
    """

    def __init__(
        self,
        store: AbstractOrderStore,
        sender: AbstractEmailSender,
        *,
        site_url: str = DEFAULT_SITE_URL,
    ) -> None:
        self.store = store
        self.sender = sender
        self.site_url = site_url

    async def _record_delivery(self, order_id: str, kind: EmailKind, recipient: str) -> None:
        try:
            await self.store.record_event(
                order_id,
                "email_sent",
                f"{kind.value} email sent to {recipient}",
                {"email_type": kind.value, "recipient": recipient},
            )
        except UpstreamAppError as exc:
            logger.warning(
                "email.audit_failed",
                extra={"order_id": order_id, "error_code": exc.code},
            )

    async def send(self, order_id: str, email_type: EmailKind | str | None = None) -> SendOrderEmailResponse:
        """Render and deliver the notification for ``order_id``.

        Raises:
            NotFoundAppError: If the order does not exist.
            UpstreamAppError: If the store or the email provider fails.
        """
        kind = EmailKind.parse(email_type)

        order = await self.store.fetch_order_summary(order_id)
        if order is None:
            raise NotFoundAppError(
                code="order_not_found",
                message="Order not found",
                details={"order_id": order_id},
            )

        content = render_email(order, kind, site_url=self.site_url)
        recipient = order.customer_email or ""

        receipt = await self.sender.send(
            OutboundEmail(
                to_email=recipient,
                to_name=order.customer_name or "",
                subject=content.subject,
                text=content.text,
                html=content.html,
            )
        )

        if receipt.simulated:
            logger.info(
                "email.simulated_response",
                extra={"order_id": order_id, "email_type": kind.value},
            )
            return SendOrderEmailResponse(
                success=True,
                message="Email simulated (no email provider configured)",
                order_id=order_id,
                preview=content,
            )

        await self._record_delivery(order_id, kind, recipient)
        logger.info(
            "email.sent",
            extra={"order_id": order_id, "email_type": kind.value, "provider": receipt.provider},
        )
        return SendOrderEmailResponse(
            success=True,
            message="Email sent successfully",
            order_id=order_id,
        )
