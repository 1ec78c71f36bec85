"""Invoice endpoints - payments and upcoming invoices"""

import uuid
from datetime import date
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request

from card_billing.api.v1.schemas import FutureInvoicesResponse, InvoiceSchema, UpdateInvoiceRequest
from card_billing.api.dependencies import (
    get_billing_service,
    get_current_user_id,
    get_publisher,
    get_request_id,
    get_webhook_client,
    schedule_invalidations,
)
from card_billing.domain.models import InvoiceStatus
from card_billing.infrastructure.clients.cache_webhook import InvalidationWebhookClient
from card_billing.infrastructure.observability.logging import log_payment
from card_billing.services.billing import BillingService
from card_billing.services.events import RecordingPublisher

router = APIRouter()


@router.api_route("/cards/{card_id}/invoices/{invoice_id}", methods=["PUT", "PATCH"], response_model=InvoiceSchema)
def update_invoice(
    card_id: uuid.UUID,
    invoice_id: uuid.UUID,
    body: UpdateInvoiceRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    service: BillingService = Depends(get_billing_service),
    publisher: RecordingPublisher = Depends(get_publisher),
    webhook_client: Optional[InvalidationWebhookClient] = Depends(get_webhook_client),
):
    """
    Pay an invoice in full (status=paid) or partially (paid_amount_cents).

    A positive payment is registered as one expense in the cash ledger.
    """
    result = service.apply_invoice_payment(
        card_id,
        user_id,
        invoice_id,
        status=InvoiceStatus(body.status) if body.status else None,
        paid_amount_cents=body.paid_amount_cents,
    )
    schedule_invalidations(background_tasks, publisher, webhook_client)

    log_payment(
        get_request_id(request),
        user_id,
        str(invoice_id),
        result.payment_cents,
        result.invoice.status.value,
    )
    return InvoiceSchema.from_domain(result.invoice, date.today())


@router.get("/invoices/future", response_model=FutureInvoicesResponse)
def get_future_invoices(
    user_id: str = Depends(get_current_user_id),
    service: BillingService = Depends(get_billing_service),
):
    """Invoices for periods after the current month, across active cards"""
    today = date.today()
    invoices = service.list_future_invoices(user_id, today)
    return FutureInvoicesResponse(
        user_id=user_id,
        invoices=[InvoiceSchema.from_domain(inv, today) for inv in invoices],
    )
