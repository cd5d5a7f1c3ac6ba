"""
AlertRecordRepository - Data access for emitted emergency alerts

AlertRecord rows are the deduplication anchor, so creation goes through
create_if_absent(), which relies on the unique dedup_key column instead of a
read-then-write check.
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from alert_database import AlertRecord
from repositories.base_repository import BaseRepository
from utils.datetime_utils import utc_now
from logging_config import get_logger

logger = get_logger(__name__)


class AlertRecordRepository(BaseRepository[AlertRecord]):
    """Repository for AlertRecord entity operations"""

    def __init__(self, session: Session):
        super().__init__(session, AlertRecord)

    # Deduplication lookups

    def find_by_ack_ip(self, alert_type: int, property_id: int, ip_address: str) -> Optional[AlertRecord]:
        """Find an alert of this type and property already stamped with the IP address"""
        if not ip_address:
            return None
        return self.session.query(AlertRecord)\
            .filter(AlertRecord.alert_type == int(alert_type),
                    AlertRecord.property_id == property_id,
                    AlertRecord.ack_ip == ip_address)\
            .order_by(AlertRecord.id)\
            .first()

    def find_by_natural_key(self, alert_type: int, property_id: int,
                            event_time: datetime, extension: str) -> Optional[AlertRecord]:
        """Find an alert with the same type, property, local event time and extension"""
        return self.session.query(AlertRecord)\
            .filter(AlertRecord.alert_type == int(alert_type),
                    AlertRecord.property_id == property_id,
                    AlertRecord.event_time == event_time,
                    AlertRecord.extension == extension)\
            .order_by(AlertRecord.id)\
            .first()

    # Creation

    def create_if_absent(self, **kwargs) -> Optional[AlertRecord]:
        """
        Insert an alert unless another writer already holds its dedup_key.

        Must be the first write of the unit of work: on a key collision the
        session is rolled back.

        Returns:
            The new AlertRecord, or None when the natural key already exists

        Raises:
            SQLAlchemyError: For any failure other than the key collision
        """
        alert = AlertRecord(**kwargs)
        try:
            self.session.add(alert)
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            logger.info("Alert natural key already present",
                        dedup_key=kwargs.get('dedup_key'),
                        error=str(e.orig) if getattr(e, 'orig', None) else str(e))
            return None
        logger.debug("Created alert record", alert_id=alert.id, dedup_key=alert.dedup_key)
        return alert

    # Acknowledgement

    def try_stamp_ack_ip(self, alert_id: int, ip_address: str) -> bool:
        """
        Stamp the acknowledging IP address without waiting for a row lock.

        One attempt only. Lock contention or any storage error is logged and
        reported as False; the caller carries on.
        """
        try:
            alert = self.session.query(AlertRecord)\
                .filter(AlertRecord.id == alert_id)\
                .with_for_update(nowait=True)\
                .first()
            if alert is None:
                return False
            alert.ack_ip = ip_address
            self.session.commit()
            return True
        except OperationalError as e:
            self.session.rollback()
            logger.info("Alert record locked, skipping ack ip stamp", alert_id=alert_id, error=str(e))
            return False
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning("Could not stamp ack ip", alert_id=alert_id, error=str(e))
            return False

    def acknowledge(self, alert_id: int, actor: str) -> Optional[AlertRecord]:
        """
        Mark an alert acknowledged by a person or system actor.

        ack_ip is left alone; it carries the call source address used for
        deduplication.

        Returns:
            The updated alert, or None if it does not exist
        """
        alert = self.get_by_id(alert_id)
        if alert is None:
            return None

        self.update(alert,
                    acknowledged=True,
                    acknowledged_by=actor,
                    acknowledged_at=utc_now().replace(tzinfo=None))
        self.commit()
        return alert

    # Listing

    def find_for_property(self, property_id: int, pending_only: bool = False, limit: int = 50) -> List[AlertRecord]:
        """Most recent alerts for a property, newest first"""
        query = self.session.query(AlertRecord).filter(AlertRecord.property_id == property_id)
        if pending_only:
            query = query.filter(AlertRecord.acknowledged.is_(False))
        return query.order_by(AlertRecord.created_at.desc(), AlertRecord.id.desc()).limit(limit).all()
