"""
OccupancyRepository - Rooms bound to extensions and the guests staying in them
"""

from typing import Optional
from sqlalchemy.orm import Session

from alert_database import Room, Guest
from repositories.base_repository import BaseRepository


class OccupancyRepository(BaseRepository[Room]):
    """Room lookups plus current-occupant queries over Guest"""

    def __init__(self, session: Session):
        super().__init__(session, Room)

    def find_room_by_extension(self, property_id: int, extension: str) -> Optional[Room]:
        if not extension:
            return None
        return self.find_one_by(property_id=property_id, extension=extension)

    def find_current_guest(self, property_id: int, room_number: str) -> Optional[Guest]:
        """
        Find the guest currently in the room.

        A guest is in house while check_out is NULL; if several rows qualify
        the latest check-in wins.
        """
        return self.session.query(Guest)\
            .filter(Guest.property_id == property_id,
                    Guest.room_number == room_number,
                    Guest.check_out.is_(None))\
            .order_by(Guest.check_in.desc(), Guest.id.desc())\
            .first()
