"""
Tests for the pipeline value objects
"""

import pytest
from datetime import datetime, timezone

from services.call_event import (
    AlertContext, CallEvent, ChannelSettings, InvalidCallEventError, PipelineOutcome,
)
from services.enums import PipelineState, PipelineStatus
from tests.fixtures.alert_fixtures import make_call_payload


class TestCallEventFromPayload:

    def test_camel_case_payload(self):
        event = CallEvent.from_payload(make_call_payload())

        assert event.group_id == 'ooma-emergency'
        assert event.enterprise_id == 'ent-42'
        assert event.user_id == 'user-42'
        assert event.dialed_digits == '911'
        assert event.source_ip == '10.0.0.5'
        assert event.call_start == datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_snake_case_payload(self):
        event = CallEvent.from_payload({'call_start': '2024-03-01T12:00:00+00:00', 'user_id': 'u-1',
                                        'dialed_digits': 911})

        assert event.user_id == 'u-1'
        assert event.dialed_digits == '911'

    def test_offset_converted_to_utc(self):
        event = CallEvent.from_payload(make_call_payload(callStart='2024-03-01T07:00:00-05:00'))
        assert event.call_start == datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_missing_fields_become_empty_strings(self):
        event = CallEvent.from_payload({'callStart': '2024-03-01T12:00:00Z', 'sourceIp': None,
                                        'extension': ' 100 '})

        assert event.source_ip == ''
        assert event.enterprise_id == ''
        assert event.extension == '100'

    @pytest.mark.parametrize('payload', [
        None,
        ['not', 'an', 'object'],
        {'groupId': 'ooma-emergency'},
        {'callStart': 'not-a-date'},
    ])
    def test_invalid_payloads(self, payload):
        with pytest.raises(InvalidCallEventError):
            CallEvent.from_payload(payload)

    def test_snapshot_is_flat(self, call_event):
        snapshot = call_event.snapshot()

        assert snapshot['call_start'] == '2024-03-01T12:00:00+00:00'
        assert snapshot['raw_sequence'] == 'seq-0001'


class TestValueObjects:

    def test_enabled_channels_exclude_popup(self):
        settings = ChannelSettings(email=True, phone=True, sms=False, popup=True)
        assert settings.enabled_channels() == ['email', 'phone']

    def test_display_location(self):
        assert AlertContext(extension='1', primary_extension='1', room_number='12').display_location == 'Room 12'
        assert AlertContext(extension='1', primary_extension='1', extension_name='Lobby').display_location == 'Lobby'
        assert AlertContext(extension='1', primary_extension='1').display_location == 'UNKNOWN LOCATION'

    def test_outcome_to_dict(self):
        outcome = PipelineOutcome(status=PipelineStatus.CREATED, state=PipelineState.DONE, property_id=42,
                                  alert_id=501, local_time=datetime(2024, 3, 1, 7, 0, 0))

        assert outcome.to_dict() == {
            'status': 'CREATED',
            'state': 'DONE',
            'property_id': 42,
            'alert_id': 501,
            'local_time': '2024-03-01T07:00:00',
            'reason': None,
        }
