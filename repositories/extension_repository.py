"""
ExtensionRepository - Property extensions and their primary/secondary links
"""

from typing import Optional
from sqlalchemy.orm import Session

from alert_database import Extension
from repositories.base_repository import BaseRepository


class ExtensionRepository(BaseRepository[Extension]):

    def __init__(self, session: Session):
        super().__init__(session, Extension)

    def find_extension(self, property_id: int, extension: str) -> Optional[Extension]:
        if not extension:
            return None
        return self.find_one_by(property_id=property_id, extension=extension)
