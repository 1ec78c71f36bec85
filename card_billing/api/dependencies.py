"""Dependency injection for FastAPI endpoints"""

from typing import Optional
from fastapi import BackgroundTasks, Depends, Header, Request
from sqlalchemy.orm import Session
from card_billing.config import settings
from card_billing.infrastructure.clients.cache_webhook import InvalidationWebhookClient
from card_billing.infrastructure.database.session import get_db
from card_billing.services.billing import BillingService
from card_billing.services.events import RecordingPublisher


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_user_id(x_user_id: str = Header(..., min_length=1, alias="X-User-ID")) -> str:
    """Caller identity, set by the authentication proxy in front of the service"""
    return x_user_id


def get_publisher() -> RecordingPublisher:
    """Request-scoped event publisher; FastAPI caches it per request"""
    return RecordingPublisher()


def get_webhook_client() -> Optional[InvalidationWebhookClient]:
    """Provide the invalidation webhook client when a target URL is configured"""
    if not settings.cache_webhook_url:
        return None
    return InvalidationWebhookClient()


def get_billing_service(
    db: Session = Depends(get_db),
    publisher: RecordingPublisher = Depends(get_publisher),
) -> BillingService:
    return BillingService(db, publisher)


def schedule_invalidations(
    background_tasks: BackgroundTasks,
    publisher: RecordingPublisher,
    webhook_client: Optional[InvalidationWebhookClient],
) -> None:
    """Forward the events published during this request once the response is sent"""
    if webhook_client is None:
        return
    for event in publisher.events:
        background_tasks.add_task(webhook_client.send_invalidation, event.to_payload())
