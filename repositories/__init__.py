"""
Repository Layer - Data Access Abstraction
Implements the Repository Pattern for database isolation
"""

from .base_repository import BaseRepository
from .alert_record_repository import AlertRecordRepository
from .property_repository import PropertyRepository

__all__ = [
    'BaseRepository',
    'AlertRecordRepository',
    'PropertyRepository'
]
