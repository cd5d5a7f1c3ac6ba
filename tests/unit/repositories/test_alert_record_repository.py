"""
Tests for AlertRecordRepository against the in-memory database
"""

import pytest
from datetime import datetime
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from alert_database import AlertRecord
from repositories.alert_record_repository import AlertRecordRepository
from tests.fixtures.alert_fixtures import create_property

EVENT_TIME = datetime(2024, 3, 1, 7, 0, 0)


def _alert_fields(**overrides):
    fields = dict(alert_type=9, property_id=42, event_time=EVENT_TIME, extension='100',
                  dialed_digits='911', dedup_key='9|42|2024-03-01T07:00:00|100')
    fields.update(overrides)
    return fields


class TestAlertRecordRepository:
    """Test AlertRecordRepository"""

    @pytest.fixture
    def repository(self, db_session):
        create_property(db_session)
        return AlertRecordRepository(db_session)

    def test_create_if_absent(self, repository):
        alert = repository.create_if_absent(**_alert_fields())
        repository.commit()

        assert alert.id is not None
        assert alert.acknowledged is False
        assert alert.created_at is not None

    def test_create_if_absent_duplicate_key(self, repository):
        repository.create_if_absent(**_alert_fields())
        repository.commit()

        assert repository.create_if_absent(**_alert_fields(dialed_digits='9911')) is None
        assert AlertRecord.query.count() == 1

    def test_null_keys_never_collide(self, repository):
        repository.create_if_absent(**_alert_fields(dedup_key=None))
        repository.create_if_absent(**_alert_fields(dedup_key=None))
        repository.commit()

        assert AlertRecord.query.count() == 2

    def test_find_by_natural_key(self, repository):
        alert = repository.create_if_absent(**_alert_fields())
        repository.commit()

        assert repository.find_by_natural_key(9, 42, EVENT_TIME, '100').id == alert.id
        assert repository.find_by_natural_key(9, 42, EVENT_TIME, '101') is None
        assert repository.find_by_natural_key(9, 42, datetime(2024, 3, 1, 7, 0, 1), '100') is None
        assert repository.find_by_natural_key(3, 42, EVENT_TIME, '100') is None

    def test_stamp_and_find_by_ack_ip(self, repository):
        alert = repository.create_if_absent(**_alert_fields())
        repository.commit()

        assert repository.find_by_ack_ip(9, 42, '10.0.0.5') is None
        assert repository.try_stamp_ack_ip(alert.id, '10.0.0.5') is True
        assert repository.find_by_ack_ip(9, 42, '10.0.0.5').id == alert.id
        assert repository.find_by_ack_ip(9, 43, '10.0.0.5') is None
        assert repository.find_by_ack_ip(9, 42, '') is None

    def test_stamp_missing_alert(self, repository):
        assert repository.try_stamp_ack_ip(404, '10.0.0.5') is False

    def test_stamp_gives_up_when_locked(self, repository, db_session):
        alert = repository.create_if_absent(**_alert_fields())
        repository.commit()
        locked = OperationalError('SELECT ... FOR UPDATE NOWAIT', {}, Exception('could not obtain lock'))

        with patch.object(db_session, 'query', side_effect=locked):
            assert repository.try_stamp_ack_ip(alert.id, '10.0.0.5') is False

        assert db_session.get(AlertRecord, alert.id).ack_ip is None

    def test_acknowledge_leaves_ack_ip(self, repository):
        alert = repository.create_if_absent(**_alert_fields())
        repository.commit()
        repository.try_stamp_ack_ip(alert.id, '10.0.0.5')

        acknowledged = repository.acknowledge(alert.id, 'front.desk')

        assert acknowledged.acknowledged is True
        assert acknowledged.acknowledged_by == 'front.desk'
        assert acknowledged.acknowledged_at is not None
        assert acknowledged.ack_ip == '10.0.0.5'

    def test_acknowledge_missing(self, repository):
        assert repository.acknowledge(404, 'front.desk') is None

    def test_find_for_property(self, repository, db_session):
        create_property(db_session, id=43, name='Other')
        first = repository.create_if_absent(**_alert_fields())
        second = repository.create_if_absent(**_alert_fields(extension='101', dedup_key='b'))
        repository.create_if_absent(**_alert_fields(property_id=43, dedup_key='c'))
        repository.commit()
        repository.acknowledge(first.id, 'front.desk')

        assert [a.id for a in repository.find_for_property(42)] == [second.id, first.id]
        assert [a.id for a in repository.find_for_property(42, pending_only=True)] == [second.id]
        assert len(repository.find_for_property(42, limit=1)) == 1
