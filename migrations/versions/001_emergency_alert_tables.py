"""Create emergency alert tables

Revision ID: 001_emergency_alert_tables
Revises:
Create Date: 2026-10-16

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_emergency_alert_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Property first (no foreign keys)
    op.create_table('property',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('pbx_type', sa.String(length=50), nullable=True),
        sa.Column('legacy_mode', sa.Boolean(), nullable=False),
        sa.Column('email_alerts_enabled', sa.Boolean(), nullable=False),
        sa.Column('phone_alerts_enabled', sa.Boolean(), nullable=False),
        sa.Column('sms_alerts_enabled', sa.Boolean(), nullable=False),
        sa.Column('popup_alerts_enabled', sa.Boolean(), nullable=False),
        sa.Column('subscribes_emergency_events', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('property_parameter',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'key', name='uq_property_parameter')
    )

    # Property resolution
    op.create_table('partner_attribute',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('partner', sa.String(length=50), nullable=False),
        sa.Column('enterprise_code', sa.String(length=200), nullable=False),
        sa.ForeignKeyConstraint(['property_id'], ['property.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_partner_attribute_partner', 'partner_attribute', ['partner'])

    op.create_table('user_extension_map',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('extension', sa.String(length=20), nullable=False),
        sa.ForeignKeyConstraint(['property_id'], ['property.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )

    op.create_table('line_port_extension_map',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('line_port', sa.String(length=100), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('extension', sa.String(length=20), nullable=False),
        sa.ForeignKeyConstraint(['property_id'], ['property.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('line_port')
    )

    op.create_table('property_time_zone',
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('utc_offset', sa.Integer(), nullable=True),
        sa.Column('zone_table', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['property.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('property_id')
    )

    # Location context
    op.create_table('extension',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('extension', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=True),
        sa.Column('primary_extension', sa.String(length=20), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['property.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'extension', name='uq_property_extension')
    )

    op.create_table('room',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('room_number', sa.String(length=20), nullable=False),
        sa.Column('extension', sa.String(length=20), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['property.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'room_number', name='uq_property_room')
    )
    op.create_index('ix_room_extension', 'room', ['extension'])

    op.create_table('guest',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('room_number', sa.String(length=20), nullable=False),
        sa.Column('first_name', sa.String(length=50), nullable=True),
        sa.Column('last_name', sa.String(length=50), nullable=False),
        sa.Column('check_in', sa.DateTime(), nullable=False),
        sa.Column('check_out', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['property.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    # Channel configuration
    op.create_table('alert_channel_override',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('alert_type', sa.Integer(), nullable=False),
        sa.Column('email_enabled', sa.Boolean(), nullable=False),
        sa.Column('phone_enabled', sa.Boolean(), nullable=False),
        sa.Column('sms_enabled', sa.Boolean(), nullable=False),
        sa.Column('popup_enabled', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['property_id'], ['property.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'alert_type', name='uq_alert_channel_override')
    )

    op.create_table('alert_contact',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('channel', sa.String(length=20), nullable=False),
        sa.Column('destination', sa.String(length=200), nullable=False),
        sa.Column('alert_type', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['property_id'], ['property.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    # Alerts and their fan-out
    op.create_table('alert_record',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('alert_type', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('event_time', sa.DateTime(), nullable=False),
        sa.Column('extension', sa.String(length=20), nullable=True),
        sa.Column('dialed_digits', sa.String(length=20), nullable=True),
        sa.Column('source_ip', sa.String(length=45), nullable=True),
        sa.Column('ack_ip', sa.String(length=45), nullable=True),
        sa.Column('acknowledged', sa.Boolean(), nullable=False),
        sa.Column('acknowledged_by', sa.String(length=100), nullable=True),
        sa.Column('acknowledged_at', sa.DateTime(), nullable=True),
        sa.Column('room_number', sa.String(length=20), nullable=True),
        sa.Column('guest_id', sa.Integer(), nullable=True),
        sa.Column('guest_name', sa.String(length=120), nullable=True),
        sa.Column('subject', sa.String(length=200), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('legacy_message', sa.Text(), nullable=True),
        sa.Column('raw_reference', sa.String(length=100), nullable=True),
        sa.Column('dedup_key', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['property_id'], ['property.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('dedup_key')
    )
    op.create_index('ix_alert_record_natural_key', 'alert_record',
                    ['alert_type', 'property_id', 'event_time', 'extension'])
    op.create_index('ix_alert_record_ack_ip', 'alert_record', ['alert_type', 'property_id', 'ack_ip'])

    op.create_table('notification_delivery',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('alert_id', sa.Integer(), nullable=False),
        sa.Column('channel', sa.String(length=20), nullable=False),
        sa.Column('destination', sa.String(length=200), nullable=False),
        sa.Column('subject', sa.String(length=200), nullable=True),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('scheduled_for', sa.DateTime(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['alert_id'], ['alert_record.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notification_delivery_status', 'notification_delivery', ['status'])

    op.create_table('event_queue_entry',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=50), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('alert_id', sa.Integer(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('processed', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['alert_id'], ['alert_record.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_queue_entry_event_type', 'event_queue_entry', ['event_type'])


def downgrade():
    op.drop_index('ix_event_queue_entry_event_type', table_name='event_queue_entry')
    op.drop_table('event_queue_entry')
    op.drop_index('ix_notification_delivery_status', table_name='notification_delivery')
    op.drop_table('notification_delivery')
    op.drop_index('ix_alert_record_ack_ip', table_name='alert_record')
    op.drop_index('ix_alert_record_natural_key', table_name='alert_record')
    op.drop_table('alert_record')
    op.drop_table('alert_contact')
    op.drop_table('alert_channel_override')
    op.drop_table('guest')
    op.drop_index('ix_room_extension', table_name='room')
    op.drop_table('room')
    op.drop_table('extension')
    op.drop_table('property_time_zone')
    op.drop_table('line_port_extension_map')
    op.drop_table('user_extension_map')
    op.drop_index('ix_partner_attribute_partner', table_name='partner_attribute')
    op.drop_table('partner_attribute')
    op.drop_table('property_parameter')
    op.drop_table('property')
