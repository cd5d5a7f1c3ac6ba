# alert_database.py

from extensions import db
from utils.datetime_utils import utc_now

# Property id 0 is reserved for parameters that apply to every property
GLOBAL_PROPERTY_ID = 0


class Property(db.Model):
    """A managed site (hotel, campus) that owns extensions, rooms and alert configuration"""
    __tablename__ = 'property'

    # Company number, assigned by the company directory
    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(200), nullable=False)

    # PBX integration
    pbx_type = db.Column(db.String(50), nullable=True)  # 'ooma', 'peerless', 'mitel', ...
    legacy_mode = db.Column(db.Boolean, default=False, nullable=False)  # predates structured PBX management

    # Property-level channel defaults
    email_alerts_enabled = db.Column(db.Boolean, default=True, nullable=False)
    phone_alerts_enabled = db.Column(db.Boolean, default=False, nullable=False)
    sms_alerts_enabled = db.Column(db.Boolean, default=False, nullable=False)
    popup_alerts_enabled = db.Column(db.Boolean, default=True, nullable=False)

    # Generic emergency event subscription for external consumers
    subscribes_emergency_events = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=utc_now)

    def __repr__(self):
        return f'<Property {self.id} {self.name}>'


class PartnerAttribute(db.Model):
    """Gateway partner attributes, one row per (property, partner)"""
    __tablename__ = 'partner_attribute'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('property.id', ondelete='CASCADE'), nullable=False)
    partner = db.Column(db.String(50), nullable=False, index=True)
    enterprise_code = db.Column(db.String(200), nullable=False)  # may be 'ENT1;ENT2'

    @property
    def primary_enterprise_code(self) -> str:
        return (self.enterprise_code or '').split(';')[0].strip()

    # Defined after the @property above; the name shadows the builtin in this class body
    property = db.relationship('Property', backref=db.backref('partner_attributes', lazy='dynamic'))


class UserExtensionMap(db.Model):
    """PBX user id to property extension"""
    __tablename__ = 'user_extension_map'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(100), nullable=False, unique=True)
    property_id = db.Column(db.Integer, db.ForeignKey('property.id', ondelete='CASCADE'), nullable=False)
    extension = db.Column(db.String(20), nullable=False)


class LinePortExtensionMap(db.Model):
    """PBX line port to property extension"""
    __tablename__ = 'line_port_extension_map'

    id = db.Column(db.Integer, primary_key=True)
    line_port = db.Column(db.String(100), nullable=False, unique=True)
    property_id = db.Column(db.Integer, db.ForeignKey('property.id', ondelete='CASCADE'), nullable=False)
    extension = db.Column(db.String(20), nullable=False)


class PropertyParameter(db.Model):
    """Key/value configuration scoped to a property, or to all properties when property_id is 0"""
    __tablename__ = 'property_parameter'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, nullable=False, default=GLOBAL_PROPERTY_ID)
    key = db.Column(db.String(100), nullable=False)
    value = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.UniqueConstraint('property_id', 'key', name='uq_property_parameter'),
    )


class PropertyTimeZone(db.Model):
    """Time zone reference used to convert call times to property-local time"""
    __tablename__ = 'property_time_zone'

    property_id = db.Column(db.Integer, db.ForeignKey('property.id', ondelete='CASCADE'), primary_key=True)
    utc_offset = db.Column(db.Integer, nullable=True)  # whole hours
    zone_table = db.Column(db.String(64), nullable=True)  # IANA name, e.g. 'America/New_York'


class Extension(db.Model):
    __tablename__ = 'extension'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('property.id', ondelete='CASCADE'), nullable=False)
    extension = db.Column(db.String(20), nullable=False)
    name = db.Column(db.String(100), nullable=True)
    primary_extension = db.Column(db.String(20), nullable=True)  # set on secondary/shared extensions

    __table_args__ = (
        db.UniqueConstraint('property_id', 'extension', name='uq_property_extension'),
    )


class Room(db.Model):
    __tablename__ = 'room'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('property.id', ondelete='CASCADE'), nullable=False)
    room_number = db.Column(db.String(20), nullable=False)
    extension = db.Column(db.String(20), nullable=True, index=True)

    __table_args__ = (
        db.UniqueConstraint('property_id', 'room_number', name='uq_property_room'),
    )


class Guest(db.Model):
    __tablename__ = 'guest'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('property.id', ondelete='CASCADE'), nullable=False)
    room_number = db.Column(db.String(20), nullable=False)
    first_name = db.Column(db.String(50), nullable=True)
    last_name = db.Column(db.String(50), nullable=False)
    check_in = db.Column(db.DateTime, nullable=False, default=utc_now)
    check_out = db.Column(db.DateTime, nullable=True)  # NULL while the guest is in house

    @property
    def display_name(self) -> str:
        return ' '.join(part for part in (self.first_name, self.last_name) if part)


class AlertChannelOverride(db.Model):
    """Alert-type specific channel flags; a row replaces the property defaults"""
    __tablename__ = 'alert_channel_override'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('property.id', ondelete='CASCADE'), nullable=False)
    alert_type = db.Column(db.Integer, nullable=False)
    email_enabled = db.Column(db.Boolean, default=False, nullable=False)
    phone_enabled = db.Column(db.Boolean, default=False, nullable=False)
    sms_enabled = db.Column(db.Boolean, default=False, nullable=False)
    popup_enabled = db.Column(db.Boolean, default=False, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('property_id', 'alert_type', name='uq_alert_channel_override'),
    )


class AlertContact(db.Model):
    """Where a property's alerts are delivered, per channel"""
    __tablename__ = 'alert_contact'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('property.id', ondelete='CASCADE'), nullable=False)
    channel = db.Column(db.String(20), nullable=False)  # 'email', 'phone', 'sms'
    destination = db.Column(db.String(200), nullable=False)
    alert_type = db.Column(db.Integer, nullable=True)  # NULL means every alert type
    is_active = db.Column(db.Boolean, default=True, nullable=False)


class AlertRecord(db.Model):
    """One emitted emergency alert; the dedup anchor and the pop-up row shown to staff"""
    __tablename__ = 'alert_record'

    id = db.Column(db.Integer, primary_key=True)
    alert_type = db.Column(db.Integer, nullable=False)
    property_id = db.Column(db.Integer, db.ForeignKey('property.id'), nullable=False)
    event_time = db.Column(db.DateTime, nullable=False)  # property-local wall clock
    extension = db.Column(db.String(20), nullable=True)
    dialed_digits = db.Column(db.String(20), nullable=True)
    source_ip = db.Column(db.String(45), nullable=True)

    # Acknowledgement
    ack_ip = db.Column(db.String(45), nullable=True)
    acknowledged = db.Column(db.Boolean, default=False, nullable=False)
    acknowledged_by = db.Column(db.String(100), nullable=True)
    acknowledged_at = db.Column(db.DateTime, nullable=True)

    # Context
    room_number = db.Column(db.String(20), nullable=True)
    guest_id = db.Column(db.Integer, nullable=True)
    guest_name = db.Column(db.String(120), nullable=True)

    # Composed notification
    subject = db.Column(db.String(200), nullable=True)
    message = db.Column(db.Text, nullable=True)
    legacy_message = db.Column(db.Text, nullable=True)
    raw_reference = db.Column(db.String(100), nullable=True)

    # Natural key 'type|property|local time|extension'; NULL when key dedup is bypassed
    dedup_key = db.Column(db.String(200), nullable=True, unique=True)

    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

    property = db.relationship('Property', backref=db.backref('alerts', lazy='dynamic'))

    __table_args__ = (
        db.Index('ix_alert_record_natural_key', 'alert_type', 'property_id', 'event_time', 'extension'),
        db.Index('ix_alert_record_ack_ip', 'alert_type', 'property_id', 'ack_ip'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'alert_type': self.alert_type,
            'property_id': self.property_id,
            'event_time': self.event_time.isoformat() if self.event_time else None,
            'extension': self.extension,
            'dialed_digits': self.dialed_digits,
            'room_number': self.room_number,
            'guest_name': self.guest_name,
            'subject': self.subject,
            'acknowledged': self.acknowledged,
            'acknowledged_by': self.acknowledged_by,
            'acknowledged_at': self.acknowledged_at.isoformat() if self.acknowledged_at else None,
        }

    def __repr__(self):
        return f'<AlertRecord {self.id} type={self.alert_type} property={self.property_id} ext={self.extension}>'


class NotificationDelivery(db.Model):
    """Queued email, scheduled phone call or scheduled SMS for one alert"""
    __tablename__ = 'notification_delivery'

    id = db.Column(db.Integer, primary_key=True)
    alert_id = db.Column(db.Integer, db.ForeignKey('alert_record.id', ondelete='CASCADE'), nullable=False)
    channel = db.Column(db.String(20), nullable=False)
    destination = db.Column(db.String(200), nullable=False)
    subject = db.Column(db.String(200), nullable=True)
    body = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), default='pending', nullable=False, index=True)
    scheduled_for = db.Column(db.DateTime, default=utc_now, nullable=False)
    attempts = db.Column(db.Integer, default=0, nullable=False)
    sent_at = db.Column(db.DateTime, nullable=True)
    last_error = db.Column(db.Text, nullable=True)

    alert = db.relationship('AlertRecord', backref=db.backref('deliveries', lazy='dynamic'))


class EventQueueEntry(db.Model):
    """Generic event published for external subscribers"""
    __tablename__ = 'event_queue_entry'

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(50), nullable=False, index=True)
    property_id = db.Column(db.Integer, nullable=False)
    alert_id = db.Column(db.Integer, db.ForeignKey('alert_record.id', ondelete='SET NULL'), nullable=True)
    payload = db.Column(db.JSON, nullable=False)
    processed = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)
