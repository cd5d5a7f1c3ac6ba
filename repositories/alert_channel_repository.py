"""
AlertChannelRepository - Channel overrides and notification destinations
"""

from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from alert_database import AlertChannelOverride, AlertContact
from repositories.base_repository import BaseRepository


class AlertChannelRepository(BaseRepository[AlertChannelOverride]):

    def __init__(self, session: Session):
        super().__init__(session, AlertChannelOverride)

    def find_override(self, property_id: int, alert_type: int) -> Optional[AlertChannelOverride]:
        return self.find_one_by(property_id=property_id, alert_type=int(alert_type))

    def find_destinations(self, property_id: int, channel: str, alert_type: int) -> List[str]:
        """
        Active destinations for a channel.

        Contacts with no alert type receive every alert type.
        """
        contacts = self.session.query(AlertContact)\
            .filter(AlertContact.property_id == property_id,
                    AlertContact.channel == channel,
                    AlertContact.is_active.is_(True),
                    or_(AlertContact.alert_type.is_(None), AlertContact.alert_type == int(alert_type)))\
            .order_by(AlertContact.id)\
            .all()
        return [contact.destination for contact in contacts]
