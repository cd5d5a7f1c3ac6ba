import requests
from typing import Tuple, Optional, Dict, Any

from logging_config import get_logger

logger = get_logger(__name__)


class SmsGatewayService:
    """HTTP client for the carrier SMS gateway used for emergency text alerts"""

    def __init__(self, base_url: Optional[str], api_key: Optional[str] = None,
                 sender_id: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or '').rstrip('/')
        self.api_key = api_key
        self.sender_id = sender_id
        self.session = session or requests.Session()
        self.timeout = (5, 30)  # Connection timeout, read timeout

    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def send_sms(self, to_number: str, body: str) -> Tuple[Optional[Dict[Any, Any]], Optional[str]]:
        """
        Send one text message.

        Args:
            to_number: Recipient phone number
            body: Message content

        Returns:
            Tuple of (response_data, error_message)
        """
        if not self.is_configured():
            logger.error("SMS gateway not configured")
            return None, "SMS gateway not configured"

        url = f"{self.base_url}/messages"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {"to": to_number, "content": body}
        if self.sender_id:
            payload["from"] = self.sender_id

        try:
            logger.info("Sending SMS via gateway",
                        to_number=to_number[-4:],  # Log only last 4 digits for privacy
                        message_length=len(body))

            response = self.session.post(url, headers=headers, json=payload, timeout=self.timeout)
            response.raise_for_status()

            logger.info("SMS sent successfully", to_number=to_number[-4:], status_code=response.status_code)
            try:
                return response.json(), None
            except ValueError:
                return {}, None

        except requests.exceptions.Timeout as e:
            logger.error("SMS gateway request timeout", to_number=to_number[-4:], timeout=self.timeout, error=str(e))
            return None, "Request timeout"

        except requests.exceptions.RequestException as e:
            response = getattr(e, 'response', None)
            status_code = response.status_code if response is not None else None
            response_body = response.text if response is not None else None

            logger.error("SMS gateway request failed",
                         to_number=to_number[-4:],
                         status_code=status_code,
                         error=str(e),
                         response_body=response_body[:500] if response_body else None)
            return None, f"SMS gateway request failed: {str(e)}"
