"""
NotificationDeliveryRepository - Queued email, phone and SMS deliveries
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from alert_database import NotificationDelivery
from repositories.base_repository import BaseRepository
from services.enums import DeliveryStatus
from utils.datetime_utils import utc_now


class NotificationDeliveryRepository(BaseRepository[NotificationDelivery]):

    def __init__(self, session: Session):
        super().__init__(session, NotificationDelivery)

    def find_due(self, channel: str, now: Optional[datetime] = None, limit: int = 100) -> List[NotificationDelivery]:
        """Pending deliveries for a channel whose scheduled time has passed, oldest first"""
        now = now or utc_now().replace(tzinfo=None)
        return self.session.query(NotificationDelivery)\
            .filter(NotificationDelivery.channel == channel,
                    NotificationDelivery.status == DeliveryStatus.PENDING.value,
                    NotificationDelivery.scheduled_for <= now)\
            .order_by(NotificationDelivery.scheduled_for, NotificationDelivery.id)\
            .limit(limit)\
            .all()

    def mark_sent(self, delivery: NotificationDelivery) -> NotificationDelivery:
        return self.update(
            delivery,
            status=DeliveryStatus.SENT.value,
            attempts=(delivery.attempts or 0) + 1,
            sent_at=utc_now().replace(tzinfo=None),
            last_error=None
        )

    def mark_failed(self, delivery: NotificationDelivery, error: str, max_attempts: int = 3) -> NotificationDelivery:
        """Record a failed attempt; the row stays pending until max_attempts is reached"""
        attempts = (delivery.attempts or 0) + 1
        status = DeliveryStatus.FAILED.value if attempts >= max_attempts else DeliveryStatus.PENDING.value
        return self.update(delivery, status=status, attempts=attempts, last_error=error)
