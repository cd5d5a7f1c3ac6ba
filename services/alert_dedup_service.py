"""
AlertDedupService - Decides whether a call event was already alerted

PBX gateways redeliver the same physical call (retries, redundant trunks).
Some vendors send a stable source IP, others don't, so two matchers are
tried in order:

- IpAddressMatcher: same alert type, property and acknowledgement IP
- NaturalKeyMatcher: same alert type, property, local time and extension
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from alert_database import AlertRecord, Property
from repositories.alert_record_repository import AlertRecordRepository
from services.audit_log_service import AuditLogService
from services.call_event import NormalizedCallEvent
from services.enums import AlertType, AuditStage, DedupStrategy
from logging_config import get_logger

logger = get_logger(__name__)


def natural_key(alert_type: int, property_id: int, local_time, extension: str) -> str:
    """Stable string form of the natural key, stored in AlertRecord.dedup_key"""
    return f"{int(alert_type)}|{property_id}|{local_time.strftime('%Y-%m-%dT%H:%M:%S')}|{extension or ''}"


@dataclass(frozen=True)
class DedupSettings:
    ip_dedup_pbx_types: Tuple[str, ...] = ('ooma', 'peerless')
    key_dedup_bypass_enterprise: str = '9999999999'


@dataclass(frozen=True)
class DedupDecision:
    is_duplicate: bool
    dedup_key: Optional[str] = None  # key the new alert must claim, None when key dedup is bypassed
    strategy: Optional[DedupStrategy] = None
    existing_alert_id: Optional[int] = None


class AlertMatcher:
    """Finds an existing alert equivalent to a normalized call event"""

    strategy: DedupStrategy

    def __init__(self, repository: AlertRecordRepository, settings: DedupSettings):
        self.repository = repository
        self.settings = settings

    def applies_to(self, event: NormalizedCallEvent, prop: Property) -> bool:
        raise NotImplementedError

    def find_match(self, event: NormalizedCallEvent, alert_type: int) -> Optional[AlertRecord]:
        raise NotImplementedError


class IpAddressMatcher(AlertMatcher):
    strategy = DedupStrategy.IP_ADDRESS

    def applies_to(self, event: NormalizedCallEvent, prop: Property) -> bool:
        return bool(event.source_ip) \
            and (prop.pbx_type or '') in self.settings.ip_dedup_pbx_types \
            and not prop.legacy_mode

    def find_match(self, event: NormalizedCallEvent, alert_type: int) -> Optional[AlertRecord]:
        return self.repository.find_by_ack_ip(alert_type, event.property_id, event.source_ip)


class NaturalKeyMatcher(AlertMatcher):
    strategy = DedupStrategy.NATURAL_KEY

    def applies_to(self, event: NormalizedCallEvent, prop: Property) -> bool:
        return event.enterprise_id != self.settings.key_dedup_bypass_enterprise

    def find_match(self, event: NormalizedCallEvent, alert_type: int) -> Optional[AlertRecord]:
        return self.repository.find_by_natural_key(alert_type, event.property_id, event.local_time, event.extension)


class AlertDedupService:

    def __init__(self,
                 alert_record_repository: AlertRecordRepository,
                 settings: Optional[DedupSettings] = None,
                 audit_log: Optional[AuditLogService] = None):
        self.alert_record_repository = alert_record_repository
        self.settings = settings or DedupSettings()
        self.audit_log = audit_log
        self.matchers: List[AlertMatcher] = [
            IpAddressMatcher(alert_record_repository, self.settings),
            NaturalKeyMatcher(alert_record_repository, self.settings),
        ]

    def check(self, event: NormalizedCallEvent, prop: Property,
              alert_type: int = AlertType.EMERGENCY_CALL) -> DedupDecision:
        """
        Look for an existing alert for this event.

        Returns:
            DedupDecision: duplicate with the matched alert id, or new with the
            natural key the dispatcher must claim when creating the alert
        """
        for matcher in self.matchers:
            if not matcher.applies_to(event, prop):
                continue
            existing = matcher.find_match(event, alert_type)
            if existing is not None:
                logger.info("Duplicate alert found",
                            property_id=event.property_id,
                            alert_id=existing.id,
                            strategy=matcher.strategy.value)
                if self.audit_log is not None:
                    self.audit_log.record(AuditStage.DUPLICATE_FOUND, event.event,
                                          property_id=event.property_id,
                                          local_time=event.local_time,
                                          note=f"{matcher.strategy.value}:{existing.id}")
                return DedupDecision(is_duplicate=True, strategy=matcher.strategy, existing_alert_id=existing.id)

        key = None
        if self.matchers[-1].applies_to(event, prop):
            key = natural_key(alert_type, event.property_id, event.local_time, event.extension)
        return DedupDecision(is_duplicate=False, dedup_key=key)
