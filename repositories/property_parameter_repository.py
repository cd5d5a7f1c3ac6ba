"""
PropertyParameterRepository - Data access layer for PropertyParameter model
"""

from typing import Optional
from sqlalchemy.orm import Session

from alert_database import PropertyParameter, GLOBAL_PROPERTY_ID
from repositories.base_repository import BaseRepository


class PropertyParameterRepository(BaseRepository[PropertyParameter]):
    """Repository for property-scoped configuration values"""

    def __init__(self, session: Session):
        super().__init__(session, PropertyParameter)

    def get_value(self, property_id: int, key: str) -> Optional[str]:
        """
        Get a parameter value for exactly this property.

        Returns:
            The stored value, or None when no row exists
        """
        parameter = self.find_one_by(property_id=property_id, key=key)
        return parameter.value if parameter else None

    def get_scoped_value(self, property_id: int, key: str) -> Optional[str]:
        """
        Get a parameter value for the property, falling back to the global row.

        A property-level row wins even when its value is empty.
        """
        parameter = self.find_one_by(property_id=property_id, key=key)
        if parameter is None and property_id != GLOBAL_PROPERTY_ID:
            parameter = self.find_one_by(property_id=GLOBAL_PROPERTY_ID, key=key)
        return parameter.value if parameter else None
