"""
ContextEnricherService - Resolves room, guest and extension names for an alert

Never fails: an emergency alert goes out even when the location is unknown.
"""

from repositories.extension_repository import ExtensionRepository
from repositories.occupancy_repository import OccupancyRepository
from services.call_event import AlertContext
from logging_config import get_logger

logger = get_logger(__name__)

VACANT_ROOM = 'VACANT ROOM'
UNKNOWN_LOCATION = 'UNKNOWN LOCATION'


class ContextEnricherService:

    def __init__(self, extension_repository: ExtensionRepository, occupancy_repository: OccupancyRepository):
        self.extension_repository = extension_repository
        self.occupancy_repository = occupancy_repository

    def enrich(self, property_id: int, extension: str) -> AlertContext:
        extension = extension or ''
        primary_extension = self.resolve_primary_extension(property_id, extension)
        context = AlertContext(extension=extension, primary_extension=primary_extension)

        room = self.occupancy_repository.find_room_by_extension(property_id, primary_extension)
        if room is not None:
            context.room_number = room.room_number
            guest = self.occupancy_repository.find_current_guest(property_id, room.room_number)
            if guest is not None:
                context.guest_id = guest.id
                context.guest_name = guest.display_name
            else:
                context.guest_name = VACANT_ROOM
                context.is_vacant = True
            return context

        extension_record = self.extension_repository.find_extension(property_id, primary_extension)
        if extension_record is not None and extension_record.name:
            context.extension_name = extension_record.name
        else:
            context.location_resolved = False
            context.extension_name = UNKNOWN_LOCATION
            logger.info("No location context for extension", property_id=property_id, extension=extension)
        return context

    def resolve_primary_extension(self, property_id: int, extension: str) -> str:
        """Map a secondary/shared extension to its declared primary"""
        record = self.extension_repository.find_extension(property_id, extension)
        if record is not None and record.primary_extension:
            return record.primary_extension
        return extension
