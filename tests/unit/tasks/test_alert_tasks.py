"""
Tests for the emergency alert Celery tasks and their beat schedule
"""

import pytest
from unittest.mock import Mock, patch
from sqlalchemy.exc import OperationalError

from services.call_event import PipelineOutcome
from services.common.result import Result
from services.enums import PipelineState, PipelineStatus
from services.notification_delivery_service import DeliveryRunStats
from tests.fixtures.alert_fixtures import make_call_payload


@pytest.fixture
def worker_app(app):
    """Run task bodies inside the per-test application"""
    with patch('celery_worker.flask_app', app):
        yield app


class TestProcessCallEventTask:

    @pytest.fixture
    def mock_alert_service(self, worker_app):
        mock = Mock()
        worker_app.services.register('emergency_alert', service=mock)
        return mock

    def test_returns_outcome(self, mock_alert_service):
        from tasks.alert_tasks import process_call_event_task
        mock_alert_service.process_call_event.return_value = Result.success(
            PipelineOutcome(status=PipelineStatus.CREATED, state=PipelineState.DONE, property_id=42, alert_id=501))

        outcome = process_call_event_task(make_call_payload())

        assert outcome['status'] == 'CREATED'
        assert outcome['alert_id'] == 501
        mock_alert_service.process_call_event.assert_called_once_with(make_call_payload())

    def test_failure_includes_error(self, mock_alert_service):
        from tasks.alert_tasks import process_call_event_task
        mock_alert_service.process_call_event.return_value = Result.failure(
            'Property not found', code='PROPERTY_NOT_FOUND',
            data=PipelineOutcome(status=PipelineStatus.PROPERTY_NOT_FOUND, state=PipelineState.FAILED))

        outcome = process_call_event_task(make_call_payload())

        assert outcome['status'] == 'PROPERTY_NOT_FOUND'
        assert outcome['error'] == 'Property not found'

    def test_storage_error_is_retried(self, mock_alert_service):
        from tasks.alert_tasks import process_call_event_task
        error = OperationalError('INSERT', {}, Exception('database is locked'))
        mock_alert_service.process_call_event.side_effect = error

        # Called directly, Celery re-raises the original exception instead of scheduling a retry
        with patch.object(process_call_event_task, 'retry', side_effect=error) as mock_retry:
            with pytest.raises(OperationalError):
                process_call_event_task(make_call_payload())

        mock_retry.assert_called_once_with(exc=error)

    def test_end_to_end_with_real_pipeline(self, worker_app, db_session):
        from tasks.alert_tasks import process_call_event_task
        from tests.fixtures.alert_fixtures import seed_scenario_property
        seed_scenario_property(db_session)

        outcome = process_call_event_task(make_call_payload())

        assert outcome['status'] == 'CREATED'


class TestDeliverPendingNotificationsTask:

    def test_returns_stats(self, worker_app):
        from tasks.alert_tasks import deliver_pending_notifications
        mock_delivery = Mock()
        mock_delivery.deliver_pending.return_value = DeliveryRunStats(sent=2, failed=0, retrying=1)
        worker_app.services.register('notification_delivery', service=mock_delivery)

        assert deliver_pending_notifications(limit=25) == {'sent': 2, 'failed': 0, 'retrying': 1}
        mock_delivery.deliver_pending.assert_called_once_with(limit=25)


class TestCeleryConfiguration:

    def test_tasks_registered(self):
        from celery_worker import celery

        assert 'tasks.alert_tasks.process_call_event_task' in celery.tasks
        assert 'tasks.alert_tasks.deliver_pending_notifications' in celery.tasks

    def test_beat_schedule(self):
        from celery_worker import celery

        entry = celery.conf.beat_schedule['deliver-alert-notifications']
        assert entry['task'] == 'tasks.alert_tasks.deliver_pending_notifications'
        assert entry['schedule'] == 30.0
        assert entry['kwargs'] == {'limit': 100}

    def test_late_acknowledgement(self):
        from celery_worker import celery

        assert celery.conf.task_acks_late is True
        assert celery.conf.worker_prefetch_multiplier == 1
