"""Email delivery adapters."""

from order_functions.adapters.email.base import AbstractEmailSender, DeliveryReceipt, OutboundEmail
from order_functions.adapters.email.factory import create_email_sender
from order_functions.adapters.email.sendgrid import SendGridEmailSender
from order_functions.adapters.email.simulated import SimulatedEmailSender

__all__ = [
    "AbstractEmailSender",
    "DeliveryReceipt",
    "OutboundEmail",
    "SendGridEmailSender",
    "SimulatedEmailSender",
    "create_email_sender",
]
