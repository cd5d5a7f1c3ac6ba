"""
Unit tests for EmailService
Tests email functionality in complete isolation using mocks
"""

import pytest
from unittest.mock import MagicMock, patch
from services.email_service import EmailService, EmailConfig, EmailMessage


class TestEmailService:
    """Test suite for EmailService"""

    @pytest.fixture
    def email_config(self):
        """Create test email configuration"""
        return EmailConfig(
            server="smtp.test.com",
            port=587,
            use_tls=True,
            username="alerts@test.com",
            password="testpass",
            default_sender="noreply@test.com"
        )

    @pytest.fixture
    def mock_mail_client(self):
        """Create mock Flask-Mail client"""
        mock = MagicMock()
        mock.send = MagicMock()
        return mock

    @pytest.fixture
    def service(self, mock_mail_client, email_config):
        """Create EmailService with mocked dependencies"""
        return EmailService(mail_client=mock_mail_client, config=email_config)

    @pytest.fixture
    def sample_message(self):
        return EmailMessage(
            subject="911 EMERGENCY CALL - Harbor View Hotel",
            recipients=["security@harborview.example"],
            body_text="A 911 call was placed at Harbor View Hotel."
        )

    def test_is_configured_true(self, service):
        assert service.is_configured() is True

    def test_is_configured_false_no_config(self):
        assert EmailService().is_configured() is False

    def test_is_configured_false_no_server(self, mock_mail_client):
        service = EmailService(mail_client=mock_mail_client, config=EmailConfig(server=None))
        assert service.is_configured() is False

    def test_from_app_config(self):
        config = EmailConfig.from_app_config({
            'MAIL_SERVER': 'smtp.example.com',
            'MAIL_PORT': 2525,
            'MAIL_USE_TLS': False,
            'MAIL_DEFAULT_SENDER': None,
        })

        assert config.server == 'smtp.example.com'
        assert config.port == 2525
        assert config.use_tls is False
        assert config.default_sender == 'alerts@example.com'

    @patch('services.email_service.Message')
    def test_send_email_success(self, mock_message_class, service, sample_message, mock_mail_client):
        """Test successful email sending"""
        success, message = service.send_email(sample_message)

        assert success is True
        assert message == "Email sent successfully"
        mock_message_class.assert_called_once_with(
            subject=sample_message.subject,
            recipients=sample_message.recipients,
            body=sample_message.body_text,
            html=None,
            sender="noreply@test.com"
        )
        mock_mail_client.send.assert_called_once_with(mock_message_class.return_value)

    def test_send_email_not_configured(self, sample_message):
        assert EmailService().send_email(sample_message) == (False, "Email service not configured")

    def test_send_email_invalid_recipient(self, service, mock_mail_client):
        message = EmailMessage(subject="s", recipients=["not-an-address"], body_text="b")

        success, error = service.send_email(message)

        assert success is False
        assert error == "Invalid email address: not-an-address"
        mock_mail_client.send.assert_not_called()

    @patch('services.email_service.Message')
    def test_send_email_failure(self, mock_message_class, service, sample_message, mock_mail_client):
        mock_mail_client.send.side_effect = ConnectionRefusedError("SMTP down")

        success, error = service.send_email(sample_message)

        assert success is False
        assert error == "Failed to send email: SMTP down"

    @patch('services.email_service.Message')
    def test_send_alert_email_marks_urgent(self, mock_message_class, service):
        service.send_alert_email("security@harborview.example", "911 EMERGENCY CALL - Harbor View Hotel", "body")

        assert mock_message_class.call_args.kwargs['subject'] == "[URGENT] 911 EMERGENCY CALL - Harbor View Hotel"

    @patch('services.email_service.Message')
    def test_send_alert_email_does_not_double_prefix(self, mock_message_class, service):
        service.send_alert_email("security@harborview.example", "[URGENT] already", "body")

        assert mock_message_class.call_args.kwargs['subject'] == "[URGENT] already"

    @pytest.mark.parametrize('address,valid', [
        ("security@harborview.example", True),
        ("first.last+alerts@sub.example.co", True),
        ("no-at-sign.example", False),
        ("", False),
        (None, False),
    ])
    def test_validate_email_address(self, address, valid):
        assert EmailService.validate_email_address(address) is valid
