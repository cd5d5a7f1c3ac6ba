"""
Value objects passed between the alert pipeline stages.

CallEvent is what the PBX integration hands us; everything else is derived
while the event moves through the pipeline and is never persisted as-is.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, Dict, Any, List

from services.enums import PipelineState, PipelineStatus, ResolutionSource
from utils.datetime_utils import ensure_utc, parse_utc_iso


class InvalidCallEventError(ValueError):
    """Raised when a call event payload is missing required fields"""
    pass


# Webhook field name -> CallEvent attribute
_PAYLOAD_FIELDS = {
    'enterpriseId': 'enterprise_id',
    'groupId': 'group_id',
    'userId': 'user_id',
    'extension': 'extension',
    'phoneNumber': 'phone_number',
    'dialedDigits': 'dialed_digits',
    'callerName': 'caller_name',
    'sourceIp': 'source_ip',
    'rawSequence': 'raw_sequence',
}


@dataclass(frozen=True)
class CallEvent:
    """Inbound 911 call description from the PBX integration"""
    call_start: datetime  # UTC
    enterprise_id: str = ''
    group_id: str = ''
    user_id: str = ''
    extension: str = ''
    phone_number: str = ''
    dialed_digits: str = ''
    caller_name: str = ''
    source_ip: str = ''
    raw_sequence: str = ''

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'CallEvent':
        """
        Build a CallEvent from webhook JSON.

        Accepts camelCase keys as sent by the PBX integration, or the
        snake_case attribute names.

        Raises:
            InvalidCallEventError: If the payload is not an object or the call start time is missing/invalid
        """
        if not isinstance(payload, dict):
            raise InvalidCallEventError("Call event must be a JSON object")

        raw_start = payload.get('callStart', payload.get('call_start'))
        if not raw_start:
            raise InvalidCallEventError("callStart is required")
        try:
            call_start = raw_start if isinstance(raw_start, datetime) else parse_utc_iso(str(raw_start))
        except ValueError as e:
            raise InvalidCallEventError(f"Invalid callStart: {raw_start}") from e

        values = {}
        for camel, snake in _PAYLOAD_FIELDS.items():
            value = payload.get(camel, payload.get(snake))
            values[snake] = '' if value is None else str(value).strip()

        return cls(call_start=ensure_utc(call_start), **values)

    def snapshot(self) -> Dict[str, str]:
        """Flat string view used by the audit log"""
        data = asdict(self)
        data['call_start'] = self.call_start.isoformat()
        return data


@dataclass(frozen=True)
class PropertyMatch:
    """Result of property resolution"""
    property_id: int
    source: ResolutionSource
    extension: Optional[str] = None  # corrected origination extension, when the mapping supplies one


@dataclass(frozen=True)
class NormalizedCallEvent:
    """CallEvent bound to its property and local time"""
    event: CallEvent
    property_id: int
    extension: str
    local_time: datetime  # naive, property-local

    @property
    def source_ip(self) -> str:
        return self.event.source_ip

    @property
    def enterprise_id(self) -> str:
        return self.event.enterprise_id

    @property
    def dialed_digits(self) -> str:
        return self.event.dialed_digits


@dataclass
class AlertContext:
    """Human-readable location context for an alert"""
    extension: str
    primary_extension: str
    extension_name: Optional[str] = None
    room_number: Optional[str] = None
    guest_id: Optional[int] = None
    guest_name: Optional[str] = None
    is_vacant: bool = False
    location_resolved: bool = True

    @property
    def display_location(self) -> str:
        if self.room_number:
            return f"Room {self.room_number}"
        return self.extension_name or 'UNKNOWN LOCATION'


@dataclass(frozen=True)
class ChannelSettings:
    email: bool = False
    phone: bool = False
    sms: bool = False
    popup: bool = False

    def enabled_channels(self) -> List[str]:
        return [name for name in ('email', 'phone', 'sms') if getattr(self, name)]


@dataclass(frozen=True)
class NotificationPayload:
    """Composed notification, shared by every delivery channel"""
    subject: str
    body: str
    legacy_message: str
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PipelineOutcome:
    """What happened to one call event"""
    status: PipelineStatus
    state: PipelineState
    property_id: Optional[int] = None
    alert_id: Optional[int] = None
    local_time: Optional[datetime] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'state': self.state.value,
            'property_id': self.property_id,
            'alert_id': self.alert_id,
            'local_time': self.local_time.isoformat() if self.local_time else None,
            'reason': self.reason,
        }
