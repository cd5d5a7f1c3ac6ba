"""
PropertyResolverService - Maps PBX call identifiers to a property

Resolution is an ordered list of strategies; the first one that returns a
match wins. A strategy returns None to pass, or raises
PartnerPropertyNotFoundError to stop the chain with a gateway-specific
failure.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from alert_database import Property
from repositories.property_repository import PropertyRepository
from repositories.partner_attribute_repository import PartnerAttributeRepository
from repositories.extension_mapping_repository import ExtensionMappingRepository
from services.audit_log_service import AuditLogService
from services.call_event import CallEvent, PropertyMatch
from services.common.result import Result
from services.company_directory_service import CompanyDirectoryService
from services.enums import AuditStage, PipelineStatus, ResolutionSource
from logging_config import get_logger

logger = get_logger(__name__)


class PartnerPropertyNotFoundError(Exception):
    """The named partner gateway sent an enterprise id no property claims"""
    def __init__(self, partner: str, enterprise_id: str):
        super().__init__(f"No {partner} property for enterprise {enterprise_id!r}")
        self.partner = partner
        self.enterprise_id = enterprise_id


@dataclass(frozen=True)
class ResolverSettings:
    """Group identifiers that select a resolution path"""
    partner_gateway_group: str = 'peerless-emergency'
    secondary_gateway_group: str = 'ooma-emergency'
    partner_name: str = 'peerless'
    direct_integration_groups: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def gateway_groups(self) -> Tuple[str, str]:
        return (self.partner_gateway_group, self.secondary_gateway_group)

    def is_direct_integration(self, group_id: str) -> bool:
        return bool(group_id) and group_id in self.direct_integration_groups \
            and group_id not in self.gateway_groups


@dataclass(frozen=True)
class ResolvedProperty:
    match: PropertyMatch
    property: Property

    @property
    def property_id(self) -> int:
        return self.property.id


Strategy = Callable[[CallEvent], Optional[PropertyMatch]]


class PropertyResolverService:
    """Resolves a CallEvent to exactly one Property, or fails"""

    def __init__(self,
                 property_repository: PropertyRepository,
                 partner_attribute_repository: PartnerAttributeRepository,
                 extension_mapping_repository: ExtensionMappingRepository,
                 company_directory: Optional[CompanyDirectoryService] = None,
                 settings: Optional[ResolverSettings] = None,
                 audit_log: Optional[AuditLogService] = None):
        self.property_repository = property_repository
        self.partner_attribute_repository = partner_attribute_repository
        self.extension_mapping_repository = extension_mapping_repository
        self.company_directory = company_directory
        self.settings = settings or ResolverSettings()
        self.audit_log = audit_log

    @property
    def strategies(self) -> List[Strategy]:
        """Resolution policy, in priority order"""
        return [
            self._resolve_via_company_directory,
            self._resolve_via_partner_prefix,
            self._resolve_via_extension_mapping,
            self._resolve_via_partner_exact,
        ]

    def resolve(self, event: CallEvent) -> Result[ResolvedProperty]:
        """
        Run the strategy chain for one call event.

        Returns:
            Result[ResolvedProperty]: success with the property, or failure
            coded PROPERTY_NOT_FOUND / PARTNER_PROPERTY_NOT_FOUND
        """
        self._audit(AuditStage.ENTRY, event)

        try:
            match = self._first_match(event)
        except PartnerPropertyNotFoundError as e:
            logger.warning("Partner property not found", partner=e.partner, enterprise_id=e.enterprise_id)
            self._audit(AuditStage.PARTNER_PROPERTY_NOT_FOUND, event, note=str(e))
            return Result.failure(str(e), code=PipelineStatus.PARTNER_PROPERTY_NOT_FOUND.value)

        prop = self.property_repository.get_property(match.property_id) if match else None
        if prop is None:
            property_id = match.property_id if match else None
            logger.warning("Property not found for call event",
                           group_id=event.group_id,
                           enterprise_id=event.enterprise_id,
                           user_id=event.user_id,
                           matched_property_id=property_id)
            self._audit(AuditStage.PROPERTY_NOT_FOUND, event, property_id=property_id)
            return Result.failure("Property not found", code=PipelineStatus.PROPERTY_NOT_FOUND.value)

        logger.info("Resolved property", property_id=prop.id, source=match.source.value)
        self._audit(AuditStage.PROPERTY_RESOLVED, event, property_id=prop.id, note=match.source.value)
        return Result.success(ResolvedProperty(match=match, property=prop))

    def _first_match(self, event: CallEvent) -> Optional[PropertyMatch]:
        for strategy in self.strategies:
            match = strategy(event)
            if match is not None:
                return match
        return None

    # Strategies

    def _resolve_via_company_directory(self, event: CallEvent) -> Optional[PropertyMatch]:
        if not self.settings.is_direct_integration(event.group_id) or self.company_directory is None:
            return None
        company_number = self.company_directory.lookup_company_number(
            event.group_id, event.enterprise_id, event.user_id
        )
        if not company_number:
            return None
        return PropertyMatch(property_id=company_number, source=ResolutionSource.COMPANY_DIRECTORY)

    def _resolve_via_partner_prefix(self, event: CallEvent) -> Optional[PropertyMatch]:
        if event.group_id != self.settings.partner_gateway_group:
            return None
        attribute = self.partner_attribute_repository.find_by_primary_enterprise_code(
            self.settings.partner_name, event.enterprise_id
        )
        if attribute is None:
            raise PartnerPropertyNotFoundError(self.settings.partner_name, event.enterprise_id)
        return PropertyMatch(property_id=attribute.property_id, source=ResolutionSource.PARTNER_PREFIX)

    def _resolve_via_extension_mapping(self, event: CallEvent) -> Optional[PropertyMatch]:
        if self.settings.is_direct_integration(event.group_id) \
                or event.group_id == self.settings.partner_gateway_group:
            return None

        mapping = self.extension_mapping_repository.find_user_mapping(event.user_id)
        if mapping is not None:
            return PropertyMatch(property_id=mapping.property_id,
                                 source=ResolutionSource.USER_EXTENSION,
                                 extension=mapping.extension)

        mapping = self.extension_mapping_repository.find_line_port_mapping(event.user_id)
        if mapping is not None:
            return PropertyMatch(property_id=mapping.property_id,
                                 source=ResolutionSource.LINE_PORT,
                                 extension=mapping.extension)
        return None

    def _resolve_via_partner_exact(self, event: CallEvent) -> Optional[PropertyMatch]:
        attribute = self.partner_attribute_repository.find_by_exact_enterprise_code(event.enterprise_id)
        if attribute is None:
            return None
        return PropertyMatch(property_id=attribute.property_id, source=ResolutionSource.PARTNER_EXACT)

    def _audit(self, stage: AuditStage, event: CallEvent, property_id: Optional[int] = None, note: Optional[str] = None):
        if self.audit_log is not None:
            self.audit_log.record(stage, event, property_id=property_id, note=note)
