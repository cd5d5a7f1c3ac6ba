"""
NotificationDeliveryService - Sends queued email and SMS alert deliveries

Phone deliveries stay pending for the outbound dialer that polls them.
"""

from dataclasses import dataclass
from typing import Optional

from repositories.notification_delivery_repository import NotificationDeliveryRepository
from services.email_service import EmailService
from services.enums import NotificationChannel
from services.sms_gateway_service import SmsGatewayService
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class DeliveryRunStats:
    sent: int = 0
    failed: int = 0
    retrying: int = 0

    def to_dict(self):
        return {'sent': self.sent, 'failed': self.failed, 'retrying': self.retrying}


class NotificationDeliveryService:

    def __init__(self,
                 delivery_repository: NotificationDeliveryRepository,
                 email_service: Optional[EmailService] = None,
                 sms_gateway: Optional[SmsGatewayService] = None,
                 max_attempts: int = 3):
        self.delivery_repository = delivery_repository
        self.email_service = email_service
        self.sms_gateway = sms_gateway
        self.max_attempts = max_attempts

    def deliver_pending(self, limit: int = 100) -> DeliveryRunStats:
        """Send every due email and SMS delivery, committing once at the end"""
        stats = DeliveryRunStats()
        if self.email_service is not None:
            self._deliver_channel(NotificationChannel.EMAIL.value, self._send_email, limit, stats)
        if self.sms_gateway is not None:
            self._deliver_channel(NotificationChannel.SMS.value, self._send_sms, limit, stats)
        self.delivery_repository.commit()

        if stats.sent or stats.failed or stats.retrying:
            logger.info("Notification delivery run finished", **stats.to_dict())
        return stats

    def _deliver_channel(self, channel: str, send, limit: int, stats: DeliveryRunStats) -> None:
        for delivery in self.delivery_repository.find_due(channel, limit=limit):
            ok, error = send(delivery)
            if ok:
                self.delivery_repository.mark_sent(delivery)
                stats.sent += 1
                continue

            self.delivery_repository.mark_failed(delivery, error, max_attempts=self.max_attempts)
            if delivery.status == 'failed':
                stats.failed += 1
                logger.error("Alert delivery failed permanently",
                             delivery_id=delivery.id, alert_id=delivery.alert_id,
                             channel=channel, error=error)
            else:
                stats.retrying += 1

    def _send_email(self, delivery):
        return self.email_service.send_alert_email(delivery.destination, delivery.subject or '', delivery.body)

    def _send_sms(self, delivery):
        _, error = self.sms_gateway.send_sms(delivery.destination, delivery.body)
        return error is None, error
