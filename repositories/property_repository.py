"""PropertyRepository - Repository pattern implementation for Property entity"""

from typing import Optional
from sqlalchemy.orm import Session

from alert_database import Property
from repositories.base_repository import BaseRepository


class PropertyRepository(BaseRepository[Property]):
    """Repository for Property lookups. The alert pipeline never mutates properties."""

    def __init__(self, session: Session):
        super().__init__(session, Property)

    def get_property(self, property_id: Optional[int]) -> Optional[Property]:
        """Get a property by company number, None for missing or non-positive ids"""
        if not property_id or property_id <= 0:
            return None
        return self.get_by_id(property_id)
