"""
Service layer enums
These enums are used by services and should match the values stored in the
database, but allow services to work without importing database models
"""

from enum import Enum, IntEnum


class AlertType(IntEnum):
    """Alert classes stored in AlertRecord.alert_type"""
    EMERGENCY_CALL = 9


class NotificationChannel(str, Enum):
    EMAIL = 'email'
    PHONE = 'phone'
    SMS = 'sms'
    POPUP = 'popup'


class DeliveryStatus(str, Enum):
    PENDING = 'pending'
    SENT = 'sent'
    FAILED = 'failed'


class PipelineState(str, Enum):
    """States a single call event moves through"""
    RECEIVED = 'RECEIVED'
    RESOLVING_PROPERTY = 'RESOLVING_PROPERTY'
    CHECKING_DUPLICATE = 'CHECKING_DUPLICATE'
    ENRICHING = 'ENRICHING'
    DISPATCHING = 'DISPATCHING'
    FAILED = 'FAILED'
    EXEMPT = 'EXEMPT'
    DUPLICATE = 'DUPLICATE'
    DONE = 'DONE'


class PipelineStatus(str, Enum):
    """Reason codes reported to the caller"""
    CREATED = 'CREATED'
    EXEMPT = 'EXEMPT'
    DUPLICATE = 'DUPLICATE'
    NO_EVENT = 'NO_EVENT'
    PROPERTY_NOT_FOUND = 'PROPERTY_NOT_FOUND'
    PARTNER_PROPERTY_NOT_FOUND = 'PARTNER_PROPERTY_NOT_FOUND'
    INVALID_CALL_EVENT = 'INVALID_CALL_EVENT'


class ResolutionSource(str, Enum):
    """Which lookup strategy produced the property id"""
    COMPANY_DIRECTORY = 'company_directory'
    PARTNER_PREFIX = 'partner_prefix'
    USER_EXTENSION = 'user_extension'
    LINE_PORT = 'line_port'
    PARTNER_EXACT = 'partner_exact'


class DedupStrategy(str, Enum):
    IP_ADDRESS = 'ip_address'
    NATURAL_KEY = 'natural_key'


# Audit log stage labels
class AuditStage(str, Enum):
    NO_EVENT = 'No event'
    INVALID_CALL_EVENT = 'Invalid call event'
    ENTRY = 'Entry'
    PROPERTY_RESOLVED = 'Property resolved'
    PROPERTY_NOT_FOUND = 'Property not found'
    PARTNER_PROPERTY_NOT_FOUND = 'Partner property not found'
    EXEMPT = 'Exempt number'
    CONVERTED_TIME = 'Converted time'
    DUPLICATE_FOUND = 'Duplicate found'
    ALERT_CREATED = 'Alert created'
