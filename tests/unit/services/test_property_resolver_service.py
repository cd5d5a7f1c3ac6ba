"""
Unit tests for PropertyResolverService
Repositories and the company directory are mocked; only the strategy order is under test
"""

import pytest
from unittest.mock import Mock

from services.call_event import CallEvent
from services.enums import AuditStage, ResolutionSource
from services.property_resolver_service import PropertyResolverService, ResolverSettings
from tests.fixtures.alert_fixtures import make_call_payload


def _event(**overrides):
    return CallEvent.from_payload(make_call_payload(**overrides))


class TestPropertyResolverService:
    """Test suite for PropertyResolverService"""

    @pytest.fixture
    def property_repository(self):
        mock = Mock()
        mock.get_property.side_effect = lambda property_id: Mock(id=property_id)
        return mock

    @pytest.fixture
    def partner_attribute_repository(self):
        mock = Mock()
        mock.find_by_primary_enterprise_code.return_value = None
        mock.find_by_exact_enterprise_code.return_value = None
        return mock

    @pytest.fixture
    def extension_mapping_repository(self):
        mock = Mock()
        mock.find_user_mapping.return_value = None
        mock.find_line_port_mapping.return_value = None
        return mock

    @pytest.fixture
    def company_directory(self):
        mock = Mock()
        mock.lookup_company_number.return_value = None
        return mock

    @pytest.fixture
    def service(self, property_repository, partner_attribute_repository, extension_mapping_repository,
                company_directory, mock_audit_log):
        settings = ResolverSettings(direct_integration_groups=('direct-pbx',))
        return PropertyResolverService(property_repository, partner_attribute_repository,
                                       extension_mapping_repository, company_directory=company_directory,
                                       settings=settings, audit_log=mock_audit_log)

    def test_direct_integration_uses_company_directory(self, service, company_directory,
                                                       extension_mapping_repository):
        """Test a direct-integration group resolves through the company directory only"""
        company_directory.lookup_company_number.return_value = 310

        result = service.resolve(_event(groupId='direct-pbx'))

        assert result.is_success
        assert result.data.property_id == 310
        assert result.data.match.source == ResolutionSource.COMPANY_DIRECTORY
        company_directory.lookup_company_number.assert_called_once_with('direct-pbx', 'ent-42', 'user-42')
        extension_mapping_repository.find_user_mapping.assert_not_called()

    def test_direct_integration_miss_falls_through_to_exact_code(self, service, partner_attribute_repository,
                                                                 extension_mapping_repository):
        """Test the extension tables are skipped for direct groups, the exact code is not"""
        partner_attribute_repository.find_by_exact_enterprise_code.return_value = Mock(property_id=12)

        result = service.resolve(_event(groupId='direct-pbx'))

        assert result.data.property_id == 12
        assert result.data.match.source == ResolutionSource.PARTNER_EXACT
        extension_mapping_repository.find_user_mapping.assert_not_called()

    def test_gateway_group_is_never_direct(self):
        """Test the gateway groups cannot be configured as direct integrations"""
        settings = ResolverSettings(direct_integration_groups=('ooma-emergency', 'direct-pbx'))
        assert settings.is_direct_integration('direct-pbx') is True
        assert settings.is_direct_integration('ooma-emergency') is False
        assert settings.is_direct_integration('') is False

    def test_partner_gateway_uses_primary_code(self, service, partner_attribute_repository):
        """Test the partner gateway group resolves by primary enterprise code"""
        partner_attribute_repository.find_by_primary_enterprise_code.return_value = Mock(property_id=77)

        result = service.resolve(_event(groupId='peerless-emergency', enterpriseId='PEER-77'))

        assert result.data.property_id == 77
        assert result.data.match.source == ResolutionSource.PARTNER_PREFIX
        partner_attribute_repository.find_by_primary_enterprise_code.assert_called_once_with('peerless', 'PEER-77')

    def test_partner_gateway_miss_stops_the_chain(self, service, partner_attribute_repository, mock_audit_log):
        """Test a partner miss fails without consulting the exact-code lookup"""
        partner_attribute_repository.find_by_exact_enterprise_code.return_value = Mock(property_id=5)

        result = service.resolve(_event(groupId='peerless-emergency', enterpriseId='PEER-404'))

        assert result.is_failure
        assert result.error_code == 'PARTNER_PROPERTY_NOT_FOUND'
        assert 'PEER-404' in result.error
        partner_attribute_repository.find_by_exact_enterprise_code.assert_not_called()
        stages = [c.args[0] for c in mock_audit_log.record.call_args_list]
        assert stages == [AuditStage.ENTRY, AuditStage.PARTNER_PROPERTY_NOT_FOUND]

    def test_user_mapping_supplies_extension(self, service, extension_mapping_repository):
        """Test the user table wins and corrects the extension"""
        extension_mapping_repository.find_user_mapping.return_value = Mock(property_id=42, extension='101')

        result = service.resolve(_event())

        assert result.data.property_id == 42
        assert result.data.match.source == ResolutionSource.USER_EXTENSION
        assert result.data.match.extension == '101'
        extension_mapping_repository.find_line_port_mapping.assert_not_called()

    def test_line_port_mapping_after_user_miss(self, service, extension_mapping_repository):
        """Test the line port table is keyed by the event user id"""
        extension_mapping_repository.find_line_port_mapping.return_value = Mock(property_id=9, extension='205')

        result = service.resolve(_event(userId='lp-9'))

        assert result.data.match.source == ResolutionSource.LINE_PORT
        extension_mapping_repository.find_line_port_mapping.assert_called_once_with('lp-9')

    def test_unresolved_is_property_not_found(self, service, mock_audit_log):
        """Test no strategy matching fails with PROPERTY_NOT_FOUND"""
        result = service.resolve(_event())

        assert result.is_failure
        assert result.error_code == 'PROPERTY_NOT_FOUND'
        assert mock_audit_log.record.call_args_list[-1].args[0] == AuditStage.PROPERTY_NOT_FOUND

    def test_match_without_property_row_is_not_found(self, service, property_repository,
                                                     extension_mapping_repository):
        """Test a mapping pointing at an unknown property fails"""
        extension_mapping_repository.find_user_mapping.return_value = Mock(property_id=999, extension='1')
        property_repository.get_property.side_effect = None
        property_repository.get_property.return_value = None

        result = service.resolve(_event())

        assert result.error_code == 'PROPERTY_NOT_FOUND'

    def test_resolved_property_is_audited(self, service, extension_mapping_repository, mock_audit_log):
        """Test entry and resolution are both written to the audit log"""
        extension_mapping_repository.find_user_mapping.return_value = Mock(property_id=42, extension='100')

        service.resolve(_event())

        stages = [c.args[0] for c in mock_audit_log.record.call_args_list]
        assert stages == [AuditStage.ENTRY, AuditStage.PROPERTY_RESOLVED]
        assert mock_audit_log.record.call_args_list[-1].kwargs['property_id'] == 42

    def test_without_company_directory(self, property_repository, partner_attribute_repository,
                                       extension_mapping_repository):
        """Test direct groups still resolve by exact code when no directory is configured"""
        partner_attribute_repository.find_by_exact_enterprise_code.return_value = Mock(property_id=3)
        service = PropertyResolverService(property_repository, partner_attribute_repository,
                                          extension_mapping_repository,
                                          settings=ResolverSettings(direct_integration_groups=('direct-pbx',)))

        result = service.resolve(_event(groupId='direct-pbx'))

        assert result.data.property_id == 3
