"""DELETE /v1/purchases/{purchase_id} - remove a purchase or its installment group"""

import uuid
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Response

from card_billing.api.dependencies import (
    get_billing_service,
    get_current_user_id,
    get_publisher,
    get_webhook_client,
    schedule_invalidations,
)
from card_billing.infrastructure.clients.cache_webhook import InvalidationWebhookClient
from card_billing.services.billing import BillingService
from card_billing.services.events import RecordingPublisher

router = APIRouter()


@router.delete("/purchases/{purchase_id}", status_code=204)
def delete_purchase(
    purchase_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    service: BillingService = Depends(get_billing_service),
    publisher: RecordingPublisher = Depends(get_publisher),
    webhook_client: Optional[InvalidationWebhookClient] = Depends(get_webhook_client),
):
    """
    Delete a purchase.

    Deleting any installment removes every installment of the same purchase
    and recalculates all invoices they were billed to.
    """
    service.delete_purchase(purchase_id, user_id)
    schedule_invalidations(background_tasks, publisher, webhook_client)
    return Response(status_code=204)
