"""Card endpoints - card CRUD, limit summary and purchase allocation"""

import time
import uuid
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response

from card_billing.api.v1.schemas import (
    CardResponse,
    CardsSummaryResponse,
    CreateCardRequest,
    CreatePurchaseRequest,
    PurchaseCreatedResponse,
    UpdateCardRequest,
)
from card_billing.api.dependencies import (
    get_billing_service,
    get_current_user_id,
    get_publisher,
    get_request_id,
    get_webhook_client,
    schedule_invalidations,
)
from card_billing.domain.models import PurchaseRequest
from card_billing.infrastructure.clients.cache_webhook import InvalidationWebhookClient
from card_billing.infrastructure.observability.logging import log_allocation
from card_billing.services.billing import BillingService
from card_billing.services.events import RecordingPublisher

router = APIRouter()


@router.post("/cards", response_model=CardResponse, status_code=201)
def create_card(
    body: CreateCardRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    service: BillingService = Depends(get_billing_service),
    publisher: RecordingPublisher = Depends(get_publisher),
    webhook_client: Optional[InvalidationWebhookClient] = Depends(get_webhook_client),
):
    """Register a credit card with its limit and billing cycle days"""
    view = service.create_card(
        user_id=user_id,
        name=body.name,
        limit_cents=body.limit_cents,
        closing_day=body.closing_day,
        due_day=body.due_day,
        last_digits=body.last_digits,
    )
    schedule_invalidations(background_tasks, publisher, webhook_client)
    return CardResponse.from_domain(view, date.today())


@router.get("/cards", response_model=List[CardResponse])
def list_cards(
    user_id: str = Depends(get_current_user_id),
    service: BillingService = Depends(get_billing_service),
):
    """Active cards of the caller, newest first"""
    today = date.today()
    return [CardResponse.from_domain(view, today) for view in service.list_cards(user_id)]


@router.get("/cards/summary", response_model=CardsSummaryResponse)
def get_cards_summary(
    user_id: str = Depends(get_current_user_id),
    service: BillingService = Depends(get_billing_service),
):
    """Total limit, used and available credit over active cards"""
    return CardsSummaryResponse.from_domain(service.cards_summary(user_id))


@router.get("/cards/{card_id}", response_model=CardResponse)
def get_card(
    card_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: BillingService = Depends(get_billing_service),
):
    return CardResponse.from_domain(service.get_card_view(card_id, user_id), date.today())


@router.put("/cards/{card_id}", response_model=CardResponse)
def update_card(
    card_id: uuid.UUID,
    body: UpdateCardRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    service: BillingService = Depends(get_billing_service),
    publisher: RecordingPublisher = Depends(get_publisher),
    webhook_client: Optional[InvalidationWebhookClient] = Depends(get_webhook_client),
):
    """
    Update card attributes.

    Changing closing_day/due_day affects invoices created afterwards only;
    existing invoices keep the dates they were created with.
    """
    view = service.update_card(card_id, user_id, **body.model_dump(exclude_unset=True))
    schedule_invalidations(background_tasks, publisher, webhook_client)
    return CardResponse.from_domain(view, date.today())


@router.delete("/cards/{card_id}", status_code=204)
def delete_card(
    card_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    service: BillingService = Depends(get_billing_service),
    publisher: RecordingPublisher = Depends(get_publisher),
    webhook_client: Optional[InvalidationWebhookClient] = Depends(get_webhook_client),
):
    """Delete a card together with its invoices and purchases"""
    service.delete_card(card_id, user_id)
    schedule_invalidations(background_tasks, publisher, webhook_client)
    return Response(status_code=204)


@router.post("/cards/{card_id}/purchases", response_model=PurchaseCreatedResponse, status_code=201)
def create_purchase(
    card_id: uuid.UUID,
    body: CreatePurchaseRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    service: BillingService = Depends(get_billing_service),
    publisher: RecordingPublisher = Depends(get_publisher),
    webhook_client: Optional[InvalidationWebhookClient] = Depends(get_webhook_client),
):
    """
    Add a purchase to a card, optionally split into monthly installments.

    Flow:
    1. Check the full value against the available limit (400 LIMIT_EXCEEDED)
    2. Bill each installment to the invoice of its period
    3. Return the updated card with invoices and purchases
    """
    start_time = time.time()

    result = service.allocate_purchase(
        card_id,
        user_id,
        PurchaseRequest(
            description=body.description,
            value_cents=body.value_cents,
            category=body.category,
            date=body.date,
            installments=body.installments,
        ),
    )
    schedule_invalidations(background_tasks, publisher, webhook_client)

    duration_ms = (time.time() - start_time) * 1000
    log_allocation(get_request_id(request), user_id, str(card_id), body.value_cents, body.installments, duration_ms)

    message = (
        f"Purchase split into {result.created_count} installments"
        if result.created_count > 1
        else "Purchase added"
    )
    return PurchaseCreatedResponse(
        card=CardResponse.from_domain(result.card, date.today()),
        created_count=result.created_count,
        message=message,
    )
