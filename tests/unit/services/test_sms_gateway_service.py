"""
Unit tests for SmsGatewayService
"""

import pytest
import requests
from unittest.mock import Mock

from services.sms_gateway_service import SmsGatewayService


class TestSmsGatewayService:
    """Test suite for SmsGatewayService"""

    @pytest.fixture
    def session(self):
        mock = Mock()
        response = Mock(status_code=201)
        response.json.return_value = {'id': 'msg-1', 'status': 'queued'}
        mock.post.return_value = response
        return mock

    @pytest.fixture
    def service(self, session):
        return SmsGatewayService('https://sms.example/v1/', api_key='sms-key', sender_id='HOTEL', session=session)

    def test_send_sms_success(self, service, session):
        data, error = service.send_sms('+15555550911', '911 call at Harbor View Hotel')

        assert error is None
        assert data == {'id': 'msg-1', 'status': 'queued'}
        session.post.assert_called_once_with(
            'https://sms.example/v1/messages',
            headers={'Authorization': 'Bearer sms-key'},
            json={'to': '+15555550911', 'content': '911 call at Harbor View Hotel', 'from': 'HOTEL'},
            timeout=(5, 30),
        )

    def test_sender_id_optional(self, session):
        service = SmsGatewayService('https://sms.example/v1', api_key='sms-key', session=session)

        service.send_sms('+15555550911', 'text')

        assert 'from' not in session.post.call_args.kwargs['json']

    def test_empty_response_body(self, service, session):
        session.post.return_value.json.side_effect = ValueError('no body')

        data, error = service.send_sms('+15555550911', 'text')

        assert data == {}
        assert error is None

    @pytest.mark.parametrize('base_url,api_key', [(None, 'sms-key'), ('https://sms.example', None)])
    def test_not_configured(self, session, base_url, api_key):
        service = SmsGatewayService(base_url, api_key=api_key, session=session)

        assert service.is_configured() is False
        assert service.send_sms('+15555550911', 'text') == (None, 'SMS gateway not configured')
        session.post.assert_not_called()

    def test_timeout(self, service, session):
        session.post.side_effect = requests.exceptions.Timeout('slow')

        assert service.send_sms('+15555550911', 'text') == (None, 'Request timeout')

    def test_http_error(self, service, session):
        error_response = Mock(status_code=429, text='rate limited')
        session.post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError(
            '429 Client Error', response=error_response)

        data, error = service.send_sms('+15555550911', 'text')

        assert data is None
        assert error.startswith('SMS gateway request failed: 429 Client Error')
