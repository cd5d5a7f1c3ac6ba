"""
NotificationDispatcherService - Creates the alert and fans it out to every enabled channel

Channel activation is strictly configuration driven: property defaults,
replaced wholesale by an alert-type override row when one exists.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from alert_database import Property
from repositories.alert_channel_repository import AlertChannelRepository
from repositories.alert_record_repository import AlertRecordRepository
from repositories.event_queue_repository import EventQueueRepository
from repositories.notification_delivery_repository import NotificationDeliveryRepository
from services.audit_log_service import AuditLogService
from services.call_event import AlertContext, ChannelSettings, NormalizedCallEvent, NotificationPayload
from services.common.result import Result
from services.enums import AlertType, AuditStage, DeliveryStatus
from utils.datetime_utils import format_wall_clock, utc_now
from logging_config import get_logger

logger = get_logger(__name__)

EMERGENCY_EVENT_TYPE = 'EMERGENCY_CALL'
SYSTEM_ACTOR = 'SYSTEM'
LEGACY_DELIMITER = '|'


def _legacy_field(value: Optional[str]) -> str:
    """Field of the legacy message; the delimiter must never appear inside one"""
    return (value or '').replace(LEGACY_DELIMITER, '/')


@dataclass
class DispatchResult:
    alert_id: Optional[int]
    created: bool
    channels: ChannelSettings = field(default_factory=ChannelSettings)
    deliveries: int = 0
    event_queued: bool = False
    ack_ip_stamped: bool = False


class NotificationDispatcherService:

    def __init__(self,
                 alert_record_repository: AlertRecordRepository,
                 alert_channel_repository: AlertChannelRepository,
                 delivery_repository: NotificationDeliveryRepository,
                 event_queue_repository: EventQueueRepository,
                 date_format: str = '%m/%d/%Y %H:%M:%S',
                 audit_log: Optional[AuditLogService] = None):
        self.alert_record_repository = alert_record_repository
        self.alert_channel_repository = alert_channel_repository
        self.delivery_repository = delivery_repository
        self.event_queue_repository = event_queue_repository
        self.date_format = date_format
        self.audit_log = audit_log

    def resolve_channels(self, prop: Property, alert_type: int = AlertType.EMERGENCY_CALL) -> ChannelSettings:
        override = self.alert_channel_repository.find_override(prop.id, alert_type)
        if override is not None:
            return ChannelSettings(email=override.email_enabled,
                                   phone=override.phone_enabled,
                                   sms=override.sms_enabled,
                                   popup=override.popup_enabled)
        return ChannelSettings(email=prop.email_alerts_enabled,
                               phone=prop.phone_alerts_enabled,
                               sms=prop.sms_alerts_enabled,
                               popup=prop.popup_alerts_enabled)

    def compose(self, event: NormalizedCallEvent, prop: Property, context: AlertContext) -> NotificationPayload:
        """Human-readable subject/body plus the pipe-delimited legacy message"""
        call_time = format_wall_clock(event.local_time, self.date_format)
        guest = context.guest_name or ''
        room = context.room_number or ''

        subject = f"911 EMERGENCY CALL - {prop.name}"
        body_lines = [
            f"A 911 call was placed at {prop.name}.",
            f"Property: {prop.name} ({prop.id})",
            f"Extension: {event.extension}",
            f"Location: {context.display_location}",
            f"Room: {room or 'N/A'}",
            f"Guest: {guest or 'N/A'}",
            f"Call time: {call_time}",
            f"Digits dialed: {event.dialed_digits}",
            f"Caller: {event.event.caller_name or 'N/A'}",
            f"Reference: {event.event.raw_sequence or 'N/A'}",
        ]
        legacy_message = LEGACY_DELIMITER.join(_legacy_field(value) for value in [
            '911',
            str(prop.id),
            event.extension or '',
            room,
            guest,
            call_time,
            event.dialed_digits or '',
            event.event.raw_sequence or '',
        ])
        fields = {
            'property_id': prop.id,
            'property_name': prop.name,
            'extension': event.extension,
            'room_number': context.room_number,
            'guest_name': context.guest_name,
            'call_time': call_time,
            'dialed_digits': event.dialed_digits,
            'raw_reference': event.event.raw_sequence,
        }
        return NotificationPayload(subject=subject, body='\n'.join(body_lines),
                                   legacy_message=legacy_message, fields=fields)

    def short_message(self, payload: NotificationPayload, context: AlertContext) -> str:
        """Text for SMS and phone call scripts"""
        return (f"911 call at {payload.fields['property_name']}: "
                f"{context.display_location}, ext {payload.fields['extension']}, "
                f"{payload.fields['call_time']}")

    def dispatch(self, event: NormalizedCallEvent, prop: Property, context: AlertContext,
                 dedup_key: Optional[str], alert_type: int = AlertType.EMERGENCY_CALL) -> Result[DispatchResult]:
        """
        Persist the alert and create its deliveries.

        Returns:
            Result[DispatchResult]: created=False when a concurrent delivery of
            the same call claimed the natural key first
        """
        channels = self.resolve_channels(prop, alert_type)
        payload = self.compose(event, prop, context)

        alert = self.alert_record_repository.create_if_absent(
            alert_type=int(alert_type),
            property_id=prop.id,
            event_time=event.local_time,
            extension=event.extension,
            dialed_digits=event.dialed_digits,
            source_ip=event.source_ip or None,
            room_number=context.room_number,
            guest_id=context.guest_id,
            guest_name=context.guest_name,
            subject=payload.subject,
            message=payload.body,
            legacy_message=payload.legacy_message,
            raw_reference=event.event.raw_sequence or None,
            dedup_key=dedup_key,
            acknowledged=not channels.popup,
            acknowledged_by=None if channels.popup else SYSTEM_ACTOR,
            acknowledged_at=None if channels.popup else utc_now().replace(tzinfo=None),
        )
        if alert is None:
            if self.audit_log is not None:
                self.audit_log.record(AuditStage.DUPLICATE_FOUND, event.event, property_id=prop.id,
                                      local_time=event.local_time, note="natural_key:concurrent")
            return Result.success(DispatchResult(alert_id=None, created=False, channels=channels))

        result = DispatchResult(alert_id=alert.id, created=True, channels=channels)
        result.deliveries = self._queue_deliveries(alert.id, prop, payload, context, channels, alert_type)

        if prop.subscribes_emergency_events:
            self.event_queue_repository.create(
                event_type=EMERGENCY_EVENT_TYPE,
                property_id=prop.id,
                alert_id=alert.id,
                payload={
                    'room_number': context.room_number,
                    'extension': event.extension,
                    'guest_name': context.guest_name,
                    'alert_time': event.local_time.isoformat(),
                },
            )
            result.event_queued = True

        self.alert_record_repository.commit()

        logger.info("Emergency alert dispatched",
                    alert_id=alert.id,
                    property_id=prop.id,
                    channels=channels.enabled_channels(),
                    popup=channels.popup,
                    deliveries=result.deliveries,
                    event_queued=result.event_queued)
        if self.audit_log is not None:
            self.audit_log.record(AuditStage.ALERT_CREATED, event.event, property_id=prop.id,
                                  local_time=event.local_time, note=f"alert={alert.id}")

        if event.source_ip:
            result.ack_ip_stamped = self.alert_record_repository.try_stamp_ack_ip(alert.id, event.source_ip)

        return Result.success(result)

    def _queue_deliveries(self, alert_id: int, prop: Property, payload: NotificationPayload,
                          context: AlertContext, channels: ChannelSettings, alert_type: int) -> int:
        count = 0
        text = self.short_message(payload, context)
        for channel in channels.enabled_channels():
            destinations: List[str] = self.alert_channel_repository.find_destinations(prop.id, channel, alert_type)
            if not destinations:
                logger.warning("Channel enabled without destinations", property_id=prop.id, channel=channel)
                continue
            for destination in destinations:
                self.delivery_repository.create(
                    alert_id=alert_id,
                    channel=channel,
                    destination=destination,
                    subject=payload.subject if channel == 'email' else None,
                    body=payload.body if channel == 'email' else text,
                    status=DeliveryStatus.PENDING.value,
                    scheduled_for=utc_now().replace(tzinfo=None),
                )
                count += 1
        return count
