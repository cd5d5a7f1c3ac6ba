import requests
from typing import Optional

from logging_config import get_logger

logger = get_logger(__name__)


class CompanyDirectoryError(Exception):
    """Raised when the company directory returns an unusable response"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class CompanyDirectoryService:
    """
    Client for the external company directory used by direct-integration
    PBX groups. The directory is authoritative; any failure to reach it
    means "not resolved" and the caller falls through to its next strategy.
    """

    def __init__(self, base_url: Optional[str], api_key: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or '').rstrip('/')
        self.api_key = api_key
        self.session = session or requests.Session()
        # Connection timeout, read timeout; an emergency call is waiting on this
        self.timeout = (3, 5)

    def is_configured(self) -> bool:
        return bool(self.base_url)

    def lookup_company_number(self, group_id: str, enterprise_id: str = '', user_id: str = '') -> Optional[int]:
        """
        Resolve PBX identifiers to a company number.

        Returns:
            The company number, or None if unresolved or the directory failed
        """
        if not self.is_configured():
            logger.warning("Company directory not configured", group_id=group_id)
            return None

        try:
            return self._fetch_company_number(group_id, enterprise_id, user_id)
        except CompanyDirectoryError as e:
            logger.error("Company directory lookup failed",
                         group_id=group_id,
                         status_code=e.status_code,
                         error=str(e))
            return None

    def _fetch_company_number(self, group_id: str, enterprise_id: str, user_id: str) -> Optional[int]:
        url = f"{self.base_url}/companies/lookup"
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        params = {"group_id": group_id, "enterprise_id": enterprise_id, "user_id": user_id}

        try:
            response = self.session.get(url, headers=headers, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise CompanyDirectoryError(f"Request timeout: {e}") from e
        except requests.exceptions.RequestException as e:
            raise CompanyDirectoryError(f"Request failed: {e}") from e

        if response.status_code == 404:
            logger.info("Company directory has no match", group_id=group_id, enterprise_id=enterprise_id)
            return None
        if response.status_code >= 400:
            raise CompanyDirectoryError(
                f"Directory returned HTTP {response.status_code}",
                status_code=response.status_code,
                response_body=response.text[:500] if response.text else None
            )

        try:
            company_number = response.json().get('company_number')
        except ValueError as e:
            raise CompanyDirectoryError("Directory returned invalid JSON", status_code=response.status_code) from e

        if company_number in (None, '', 0, '0'):
            return None
        try:
            return int(company_number)
        except (TypeError, ValueError) as e:
            raise CompanyDirectoryError(f"Invalid company number: {company_number!r}") from e
