"""
PartnerAttributeRepository - Gateway partner attributes per property
"""

from typing import Optional
from sqlalchemy.orm import Session

from alert_database import PartnerAttribute
from repositories.base_repository import BaseRepository
import logging

logger = logging.getLogger(__name__)


class PartnerAttributeRepository(BaseRepository[PartnerAttribute]):
    """Repository for PartnerAttribute data access"""

    def __init__(self, session: Session):
        super().__init__(session, PartnerAttribute)

    def find_by_primary_enterprise_code(self, partner: str, enterprise_id: str) -> Optional[PartnerAttribute]:
        """
        Find the first attribute row of a partner whose enterprise code list
        starts with the given enterprise id.

        The code column may hold 'ENT1;ENT2'; only the first entry is compared,
        so this scans the partner's rows instead of filtering in SQL.
        """
        if not enterprise_id:
            return None

        rows = self.session.query(PartnerAttribute)\
            .filter(PartnerAttribute.partner == partner)\
            .order_by(PartnerAttribute.id)\
            .all()
        for row in rows:
            if row.primary_enterprise_code == enterprise_id:
                return row
        logger.debug(f"No {partner} attribute with primary enterprise code {enterprise_id} among {len(rows)} rows")
        return None

    def find_by_exact_enterprise_code(self, enterprise_id: str) -> Optional[PartnerAttribute]:
        """Find an attribute row whose enterprise code equals the id exactly, any partner"""
        if not enterprise_id:
            return None
        return self.session.query(PartnerAttribute)\
            .filter(PartnerAttribute.enterprise_code == enterprise_id)\
            .order_by(PartnerAttribute.id)\
            .first()
