"""
ExtensionMappingRepository - PBX user / line port to property extension mappings
"""

from typing import Optional
from sqlalchemy.orm import Session

from alert_database import UserExtensionMap, LinePortExtensionMap
from repositories.base_repository import BaseRepository


class ExtensionMappingRepository(BaseRepository[UserExtensionMap]):
    """Lookups over both mapping tables; the user table is the primary model"""

    def __init__(self, session: Session):
        super().__init__(session, UserExtensionMap)

    def find_user_mapping(self, user_id: str) -> Optional[UserExtensionMap]:
        if not user_id:
            return None
        return self.session.query(UserExtensionMap).filter_by(user_id=user_id).first()

    def find_line_port_mapping(self, line_port: str) -> Optional[LinePortExtensionMap]:
        if not line_port:
            return None
        return self.session.query(LinePortExtensionMap).filter_by(line_port=line_port).first()
