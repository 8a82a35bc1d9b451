from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from order_functions.api.dependencies import get_export_service, get_notification_service
from order_functions.core.errors import ValidationAppError
from order_functions.core.rate_limit import rate_limit
from order_functions.schemas.email import SendOrderEmailRequest, SendOrderEmailResponse
from order_functions.services.export_service import OrderExportService
from order_functions.services.notification_service import OrderNotificationService

router = APIRouter(tags=["Orders"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _require_order_id(order_id: str | None) -> str:
    if not order_id or not order_id.strip():
        raise ValidationAppError(
            code="missing_order_id",
            message="order_id is required",
            details={"parameter": "order_id"},
        )
    return order_id.strip()


@router.get(
    "/export-order-csv",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}, "description": "CSV document"}},
    dependencies=[Depends(rate_limit("export-order-csv"))],
)
async def export_order_csv(
    service: Annotated[OrderExportService, Depends(get_export_service)],
    order_id: Annotated[str | None, Query(description="Order UUID")] = None,
    fmt: Annotated[
        str | None,
        Query(alias="format", description="simple or detailed (default)"),
    ] = None,
) -> Response:
    """Export an order as a CSV attachment.

    Args:
        service: Export service (injected).
        order_id: Order to export.
        fmt: Report variant; unknown values produce the detailed report.

    Returns:
        Response: CSV body with a Content-Disposition attachment header.

    Raises:
        ValidationAppError: 400 when order_id is missing.
        NotFoundAppError: 404 when the order does not exist.
    """
    export = await service.export(_require_order_id(order_id), fmt)
    return Response(
        content=export.content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.post(
    "/send-order-email",
    response_model=SendOrderEmailResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("send-order-email"))],
)
async def send_order_email(
    service: Annotated[OrderNotificationService, Depends(get_notification_service)],
    payload: SendOrderEmailRequest | None = None,
) -> SendOrderEmailResponse:
    """Send (or simulate) an order notification email.

    Without a configured email provider the email is only rendered and logged,
    and the rendered content is returned as ``preview``.

    Raises:
        ValidationAppError: 400 when order_id is missing.
        NotFoundAppError: 404 when the order does not exist.
        UpstreamAppError: 500 when the store or provider fails.
    """
    payload = payload or SendOrderEmailRequest()
    return await service.send(_require_order_id(payload.order_id), payload.email_type)
