"""
PropertyTimeZoneRepository - Per-property time zone references
"""

from typing import Optional
from sqlalchemy.orm import Session

from alert_database import PropertyTimeZone
from repositories.base_repository import BaseRepository


class PropertyTimeZoneRepository(BaseRepository[PropertyTimeZone]):

    def __init__(self, session: Session):
        super().__init__(session, PropertyTimeZone)

    def get_for_property(self, property_id: int) -> Optional[PropertyTimeZone]:
        return self.get_by_id(property_id)
