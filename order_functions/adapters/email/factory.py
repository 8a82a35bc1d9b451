"""Factory for the email sender adapter."""

import logging

from order_functions.adapters.email.base import AbstractEmailSender
from order_functions.adapters.email.sendgrid import SendGridEmailSender
from order_functions.adapters.email.simulated import SimulatedEmailSender
from order_functions.core.config import settings

logger = logging.getLogger(__name__)


def create_email_sender() -> AbstractEmailSender:
    """Return a SendGrid sender, or a simulated one when no API key is set."""
    cfg = settings.email

    if not cfg.sendgrid_api_key:
        logger.warning("email.simulation_mode", extra={"reason": "sendgrid_api_key_missing"})
        return SimulatedEmailSender()

    return SendGridEmailSender(
        api_key=cfg.sendgrid_api_key,
        from_email=cfg.from_email,
        from_name=cfg.from_name,
        url=cfg.sendgrid_url,
        timeout_seconds=cfg.timeout_seconds,
    )
