"""
ExemptionService - Suppresses alerts for dialed numbers a property has exempted
"""

import re
from typing import Optional, Set

from repositories.property_parameter_repository import PropertyParameterRepository
from services.audit_log_service import AuditLogService
from services.call_event import CallEvent
from services.enums import AuditStage
from logging_config import get_logger

logger = get_logger(__name__)

EXEMPT_NUMBERS_PARAMETER = 'emergency_exempt_numbers'

_DELIMITERS = re.compile(r'[,;\s]+')


def parse_exempt_numbers(value: Optional[str]) -> Set[str]:
    """Split a delimited parameter value into a set of numbers"""
    if not value:
        return set()
    return {entry for entry in _DELIMITERS.split(value) if entry}


class ExemptionService:

    def __init__(self, parameter_repository: PropertyParameterRepository, audit_log: Optional[AuditLogService] = None):
        self.parameter_repository = parameter_repository
        self.audit_log = audit_log

    def exempt_numbers_for(self, property_id: int) -> Set[str]:
        """Property-scoped list, or the global list when the property has none"""
        value = self.parameter_repository.get_scoped_value(property_id, EXEMPT_NUMBERS_PARAMETER)
        return parse_exempt_numbers(value)

    def is_exempt(self, property_id: int, event: CallEvent) -> bool:
        """
        Decide whether the call's dialed digits are exempt for the property.

        An exempt call is a successful suppression, not an error.
        """
        digits = (event.dialed_digits or '').strip()
        if not digits:
            return False

        if digits not in self.exempt_numbers_for(property_id):
            return False

        logger.info("Dialed number is exempt", property_id=property_id, dialed_digits=digits)
        if self.audit_log is not None:
            self.audit_log.record(AuditStage.EXEMPT, event, property_id=property_id)
        return True
