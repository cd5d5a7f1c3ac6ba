"""
Celery tasks for the emergency alert pipeline

Tasks:
- process_call_event_task: run one call event through the pipeline off the request path
- deliver_pending_notifications: periodic drain of queued alert emails and SMS
"""

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from celery_worker import celery
from extensions import db
from logging_config import get_logger

logger = get_logger(__name__)


@celery.task(bind=True, max_retries=3, default_retry_delay=5)
def process_call_event_task(self, payload):
    """
    Process a single call event payload.

    Storage errors are retried; duplicate redeliveries are harmless because
    the pipeline deduplicates.

    Returns:
        Dict with the pipeline outcome
    """
    alert_service = current_app.services.get('emergency_alert')
    try:
        result = alert_service.process_call_event(payload)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Call event processing failed, retrying",
                     attempt=self.request.retries + 1, error=str(exc))
        raise self.retry(exc=exc)

    outcome = result.data.to_dict() if result.data is not None else {'status': result.error_code}
    if result.is_failure:
        outcome['error'] = result.error
        logger.warning("Call event rejected", **outcome)
    return outcome


@celery.task
def deliver_pending_notifications(limit: int = 100):
    """
    Send queued email and SMS deliveries.

    Returns:
        Dict with sent/failed/retrying counts
    """
    delivery_service = current_app.services.get('notification_delivery')
    stats = delivery_service.deliver_pending(limit=limit)
    return stats.to_dict()
