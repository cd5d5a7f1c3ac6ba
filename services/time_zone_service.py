"""
Time zone services for the alert pipeline.

TimeNormalizerService converts a call's UTC start time to the property's
local wall-clock time. The conversion policy is an ordered list of
strategies; the first non-None result wins and raw UTC is the last resort,
so normalization always yields a value.
"""

from datetime import datetime
from typing import Callable, List, Optional

import pytz

from repositories.property_parameter_repository import PropertyParameterRepository
from repositories.time_zone_repository import PropertyTimeZoneRepository
from services.audit_log_service import AuditLogService
from services.call_event import CallEvent
from services.enums import AuditStage
from utils.datetime_utils import utc_to_zone, shift_hours, to_wall_clock, ensure_utc
from logging_config import get_logger

logger = get_logger(__name__)

HOUR_DIFFERENCE_PARAMETER = 'hour_difference'


class PytzTimeZoneConverter:
    """
    Converts UTC to local time from a time zone table reference.

    A known IANA zone is preferred because it accounts for daylight saving;
    otherwise the whole-hour offset is applied. Returns None when neither is
    usable.
    """

    def convert(self, utc_time: datetime, utc_offset: Optional[int], zone_table: Optional[str]) -> Optional[datetime]:
        if zone_table:
            try:
                return utc_to_zone(utc_time, zone_table)
            except pytz.UnknownTimeZoneError:
                logger.warning("Unknown time zone reference", zone_table=zone_table)
        if utc_offset is not None:
            return shift_hours(utc_time, utc_offset)
        return None


class TimeNormalizerService:

    def __init__(self,
                 time_zone_repository: PropertyTimeZoneRepository,
                 parameter_repository: PropertyParameterRepository,
                 converter: Optional[PytzTimeZoneConverter] = None,
                 audit_log: Optional[AuditLogService] = None):
        self.time_zone_repository = time_zone_repository
        self.parameter_repository = parameter_repository
        self.converter = converter or PytzTimeZoneConverter()
        self.audit_log = audit_log

    @property
    def strategies(self) -> List[Callable[[datetime, int], Optional[datetime]]]:
        return [
            self._convert_with_time_zone_table,
            self._apply_hour_difference,
        ]

    def to_local(self, utc_time: datetime, property_id: int) -> datetime:
        """Local wall-clock time for the property; raw UTC if every strategy fails"""
        for strategy in self.strategies:
            local_time = strategy(utc_time, property_id)
            if local_time is not None:
                return local_time
        logger.warning("No time zone data for property, keeping UTC", property_id=property_id)
        return to_wall_clock(ensure_utc(utc_time))

    def normalize(self, event: CallEvent, property_id: int) -> datetime:
        """Convert the call start time and record the result in the audit log"""
        local_time = self.to_local(event.call_start, property_id)
        if self.audit_log is not None:
            self.audit_log.record(AuditStage.CONVERTED_TIME, event, property_id=property_id, local_time=local_time)
        return local_time

    def _convert_with_time_zone_table(self, utc_time: datetime, property_id: int) -> Optional[datetime]:
        record = self.time_zone_repository.get_for_property(property_id)
        if record is None:
            return None
        return self.converter.convert(utc_time, record.utc_offset, record.zone_table)

    def _apply_hour_difference(self, utc_time: datetime, property_id: int) -> Optional[datetime]:
        value = self.parameter_repository.get_scoped_value(property_id, HOUR_DIFFERENCE_PARAMETER)
        if value is None or not str(value).strip():
            return None
        try:
            hours = int(str(value).strip())
        except ValueError:
            logger.warning("Invalid hour difference parameter", property_id=property_id, value=value)
            return None
        return shift_hours(utc_time, hours)
