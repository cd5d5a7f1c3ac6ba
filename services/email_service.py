"""
EmailService - Sends queued alert emails through Flask-Mail
"""

import re
from typing import Optional, List, Tuple
from dataclasses import dataclass
from flask_mail import Mail, Message
from logging_config import get_logger

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


@dataclass
class EmailConfig:
    """Email configuration container"""
    server: Optional[str]
    port: int = 587
    use_tls: bool = True
    use_ssl: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    default_sender: str = "alerts@example.com"

    @classmethod
    def from_app_config(cls, config) -> 'EmailConfig':
        return cls(
            server=config.get('MAIL_SERVER'),
            port=config.get('MAIL_PORT', 587),
            use_tls=config.get('MAIL_USE_TLS', True),
            use_ssl=config.get('MAIL_USE_SSL', False),
            username=config.get('MAIL_USERNAME'),
            password=config.get('MAIL_PASSWORD'),
            default_sender=config.get('MAIL_DEFAULT_SENDER') or 'alerts@example.com',
        )


@dataclass
class EmailMessage:
    """Email message data structure"""
    subject: str
    recipients: List[str]
    body_text: str
    body_html: Optional[str] = None
    sender: Optional[str] = None


class EmailService:
    """Service for handling email operations"""

    def __init__(self, mail_client: Optional[Mail] = None, config: Optional[EmailConfig] = None):
        """
        Initialize Email Service

        Args:
            mail_client: Flask-Mail instance already bound to the app
            config: Email configuration
        """
        self.mail_client = mail_client
        self.config = config

    def is_configured(self) -> bool:
        return bool(self.mail_client and self.config and self.config.server)

    def send_email(self, message: EmailMessage) -> Tuple[bool, str]:
        """
        Send an email message

        Returns:
            Tuple of (success: bool, message: str)
        """
        if not self.is_configured():
            logger.warning("Attempted to send email but service not configured")
            return False, "Email service not configured"

        invalid = [r for r in message.recipients if not self.validate_email_address(r)]
        if invalid:
            logger.warning("Rejected invalid email recipients", recipients=invalid)
            return False, f"Invalid email address: {', '.join(invalid)}"

        try:
            msg = Message(
                subject=message.subject,
                recipients=message.recipients,
                body=message.body_text,
                html=message.body_html,
                sender=message.sender or self.config.default_sender
            )
            self.mail_client.send(msg)

            logger.info(
                "Email sent successfully",
                subject=message.subject,
                recipients=message.recipients
            )
            return True, "Email sent successfully"

        except Exception as e:
            logger.error(
                "Failed to send email",
                error=str(e),
                subject=message.subject,
                recipients=message.recipients
            )
            return False, f"Failed to send email: {str(e)}"

    def send_alert_email(self, recipient: str, subject: str, body: str) -> Tuple[bool, str]:
        """Send one emergency alert notification, flagged high priority in the subject"""
        if not subject.startswith('[URGENT]'):
            subject = f"[URGENT] {subject}"
        return self.send_email(EmailMessage(subject=subject, recipients=[recipient], body_text=body))

    @staticmethod
    def validate_email_address(email: str) -> bool:
        return bool(email) and EMAIL_PATTERN.match(email) is not None
