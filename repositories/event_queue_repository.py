"""
EventQueueRepository - Generic events published for external subscribers
"""

from typing import List
from sqlalchemy.orm import Session

from alert_database import EventQueueEntry
from repositories.base_repository import BaseRepository


class EventQueueRepository(BaseRepository[EventQueueEntry]):

    def __init__(self, session: Session):
        super().__init__(session, EventQueueEntry)

    def find_unprocessed(self, event_type: str, limit: int = 100) -> List[EventQueueEntry]:
        return self.session.query(EventQueueEntry)\
            .filter(EventQueueEntry.event_type == event_type,
                    EventQueueEntry.processed.is_(False))\
            .order_by(EventQueueEntry.id)\
            .limit(limit)\
            .all()
