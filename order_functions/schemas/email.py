"""Pydantic schemas for the order email endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EmailContent(BaseModel):
    """Rendered notification: subject line plus text and HTML bodies."""

    model_config = ConfigDict(frozen=True)

    subject: str = Field(..., description="Email subject line.")
    text: str = Field(..., description="Plain-text body.")
    html: str = Field(..., description="HTML body.")


class SendOrderEmailRequest(BaseModel):
    """Body of ``POST /send-order-email``.

    ``order_id`` is optional at the schema level so a missing value is reported
    as a 400 by the handler rather than a schema error. ``email_type`` is a
    free string; unrecognized values select the status update template.
    """

    order_id: str | None = Field(default=None, description="Order UUID.")
    email_type: str | None = Field(
        default=None,
        description="confirmation (default), status_update, shipped or delivered.",
    )


class SendOrderEmailResponse(BaseModel):
    success: bool = Field(..., description="True when the email was sent or simulated.")
    message: str = Field(..., description="Human-readable outcome.")
    order_id: str = Field(..., description="Order the email refers to.")
    preview: EmailContent | None = Field(
        default=None,
        description="Rendered content, only returned when delivery is simulated.",
    )
