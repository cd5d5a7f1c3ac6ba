"""
Unit tests for ExemptionService
"""

import pytest
from unittest.mock import Mock

from services.call_event import CallEvent
from services.enums import AuditStage
from services.exemption_service import ExemptionService, parse_exempt_numbers, EXEMPT_NUMBERS_PARAMETER
from tests.fixtures.alert_fixtures import make_call_payload


class TestParseExemptNumbers:

    def test_mixed_delimiters(self):
        assert parse_exempt_numbers('411, 611;933 811') == {'411', '611', '933', '811'}

    @pytest.mark.parametrize('value', [None, '', ' , ;'])
    def test_empty_values(self, value):
        assert parse_exempt_numbers(value) == set()


class TestExemptionService:
    """Test suite for ExemptionService"""

    @pytest.fixture
    def parameter_repository(self):
        mock = Mock()
        mock.get_scoped_value.return_value = '411,611'
        return mock

    @pytest.fixture
    def service(self, parameter_repository, mock_audit_log):
        return ExemptionService(parameter_repository, audit_log=mock_audit_log)

    def test_exempt_number(self, service, parameter_repository, mock_audit_log):
        """Test an exempt number is suppressed and audited"""
        event = CallEvent.from_payload(make_call_payload(dialedDigits='411'))

        assert service.is_exempt(42, event) is True
        parameter_repository.get_scoped_value.assert_called_once_with(42, EXEMPT_NUMBERS_PARAMETER)
        mock_audit_log.record.assert_called_once_with(AuditStage.EXEMPT, event, property_id=42)

    def test_emergency_number_is_not_exempt(self, service, mock_audit_log):
        """Test 911 passes when it is not on the list"""
        assert service.is_exempt(42, CallEvent.from_payload(make_call_payload())) is False
        mock_audit_log.record.assert_not_called()

    def test_blank_digits_never_exempt(self, service, parameter_repository):
        """Test an event without dialed digits skips the parameter lookup"""
        event = CallEvent.from_payload(make_call_payload(dialedDigits='  '))

        assert service.is_exempt(42, event) is False
        parameter_repository.get_scoped_value.assert_not_called()

    def test_no_parameter_means_nothing_exempt(self, service, parameter_repository):
        parameter_repository.get_scoped_value.return_value = None
        event = CallEvent.from_payload(make_call_payload(dialedDigits='411'))

        assert service.is_exempt(42, event) is False

    def test_numbers_match_whole_entries_only(self, service):
        """Test '41' does not match the '411' entry"""
        event = CallEvent.from_payload(make_call_payload(dialedDigits='41'))
        assert service.is_exempt(42, event) is False
