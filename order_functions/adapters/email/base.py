"""Email sender interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class OutboundEmail:
    to_email: str
    to_name: str
    subject: str
    text: str
    html: str


@dataclass(frozen=True)
class DeliveryReceipt:
    """Outcome of a send call.

    Attributes:
        simulated: True when nothing left the process (no provider configured).
        provider: Name of the sender that handled the message.
        status_code: Provider HTTP status, when there was one.
    """

    simulated: bool
    provider: str
    status_code: int | None = None


class AbstractEmailSender(ABC):
    """Interface for transactional email delivery."""

    simulated: bool = False

    @abstractmethod
    async def send(self, message: OutboundEmail) -> DeliveryReceipt:
        """Deliver ``message``.

        Raises:
            UpstreamAppError: If the provider rejects the message or is unreachable.
        """
        raise NotImplementedError
