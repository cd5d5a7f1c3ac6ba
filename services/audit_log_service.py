"""
AuditLogService - Append-only, per-day audit trail of the emergency alert pipeline

Each line is pipe-delimited: write time, stage label, property id, local
time (when known) and the full call event snapshot, or the raw payload when
it could not be parsed. A "|" inside a field is written as "/". Writing is best effort;
an unwritable log never fails the pipeline.
"""

import os
from datetime import datetime
from typing import Any, Dict, Optional, Union

from services.call_event import CallEvent
from services.enums import AuditStage
from utils.datetime_utils import utc_now, format_wall_clock
from logging_config import get_logger

logger = get_logger(__name__)

DELIMITER = '|'

AuditSubject = Optional[Union[CallEvent, Dict[str, Any]]]


def _audit_field(value) -> str:
    return str(value).replace(DELIMITER, '/').replace('\r', ' ').replace('\n', ' ')


def _snapshot(event: AuditSubject) -> Dict[str, Any]:
    if event is None:
        return {}
    if isinstance(event, CallEvent):
        return event.snapshot()
    # Raw payload that failed validation
    if isinstance(event, dict):
        return dict(event)
    return {'payload': event}


class AuditLogService:
    """Writes one file per calendar day under log_dir"""

    FILE_PREFIX = 'emergency_alerts_'

    def __init__(self, log_dir: str, date_format: str = '%m/%d/%Y %H:%M:%S', clock=utc_now):
        """
        Args:
            log_dir: Directory holding the daily files
            date_format: strftime format for every timestamp written to the log
            clock: Callable returning the current UTC time
        """
        self.log_dir = log_dir
        self.date_format = date_format
        self.clock = clock

    def path_for(self, day: datetime) -> str:
        return os.path.join(self.log_dir, f"{self.FILE_PREFIX}{day.strftime('%Y%m%d')}.log")

    def format_line(self, stage: AuditStage, event: AuditSubject, property_id: Optional[int] = None,
                    local_time: Optional[datetime] = None, note: Optional[str] = None,
                    written_at: Optional[datetime] = None) -> str:
        written_at = written_at or self.clock()
        parts = [
            format_wall_clock(written_at, self.date_format),
            stage.value,
            f"property={property_id if property_id is not None else ''}",
            f"local_time={format_wall_clock(local_time, self.date_format)}",
        ]
        if note:
            parts.append(f"note={note}")
        parts.extend(f"{key}={value}" for key, value in _snapshot(event).items())
        return DELIMITER.join(_audit_field(part) for part in parts)

    def record(self, stage: AuditStage, event: AuditSubject, property_id: Optional[int] = None,
               local_time: Optional[datetime] = None, note: Optional[str] = None) -> bool:
        """
        Append one line for a pipeline stage.

        Returns:
            True if the line was written, False if the write failed
        """
        written_at = self.clock()
        line = self.format_line(stage, event, property_id, local_time, note, written_at)
        try:
            os.makedirs(self.log_dir, exist_ok=True)
            with open(self.path_for(written_at), 'a', encoding='utf-8') as handle:
                handle.write(line + '\n')
            return True
        except OSError as e:
            logger.warning("Could not write alert audit log", stage=stage.value, error=str(e))
            return False
