"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

service_type = sa.Enum('MIDI', 'SOIR', name='servicetype')
reservation_status = sa.Enum('PENDING', 'CONFIRMED', 'COMPLETED', 'CANCELED', 'NO_SHOW', name='reservationstatus')
table_zone = sa.Enum('SALLE', 'TERRASSE', 'SALON_PRIVE', name='tablezone')
user_role = sa.Enum('SUPER_ADMIN', 'RESTAURANT_ADMIN', 'STAFF', name='userrole')


def upgrade() -> None:
    # Create restaurants table
    op.create_table(
        'restaurants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('timezone', sa.String(50), nullable=False, server_default='Europe/Paris'),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('auto_confirm_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('group_pending_threshold', sa.Integer(), nullable=False, server_default='8'),
        sa.Column('meal_duration_minutes', sa.Integer(), nullable=False, server_default='90'),
        sa.Column('slot_interval_minutes', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('min_advance_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('booking_window_days', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('max_party_size', sa.Integer()),
        sa.Column('table_joining_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('max_tables_per_group', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('zone_priority', sa.JSON()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id')),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('phone', sa.String(20)),
        sa.Column('role', user_role),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('is_verified', sa.Boolean(), default=False),
        sa.Column('subscription_status', sa.String(20)),
        sa.Column('subscription_end_date', sa.DateTime()),
        sa.Column('refresh_token', sa.String(500)),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create tables table
    op.create_table(
        'tables',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id'), nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('zone', table_zone, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_joinable', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create schedules table
    op.create_table(
        'schedules',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('service_type', service_type, nullable=False),
        sa.Column('is_open', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('start_time', sa.Time()),
        sa.Column('end_time', sa.Time()),
        sa.Column('max_covers', sa.Integer()),
        sa.Column('max_reservations', sa.Integer()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
        sa.UniqueConstraint('restaurant_id', 'day_of_week', 'service_type', name='uq_schedule_slot'),
    )

    # Create blocks table
    op.create_table(
        'blocks',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('service_type', service_type),
        sa.Column('table_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tables.id')),
        sa.Column('reason', sa.String(255)),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id'), nullable=False),
        sa.Column('reference', sa.String(32), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(30), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('guests_count', sa.Integer(), nullable=False),
        sa.Column('date_time_start', sa.DateTime(), nullable=False),
        sa.Column('date_time_end', sa.DateTime(), nullable=False),
        sa.Column('service_type', service_type, nullable=False),
        sa.Column('zone_preference', sa.String(50)),
        sa.Column('comment', sa.Text()),
        sa.Column('source', sa.String(20), default='online'),
        sa.Column('status', reservation_status, nullable=False),
        sa.Column('table_ids', sa.JSON(), nullable=False),
        sa.Column('released_table_ids', sa.JSON(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create audit_logs table
    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id')),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True)),
        sa.Column('actor_type', sa.String(50)),
        sa.Column('actor_name', sa.String(255)),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('resource_type', sa.String(50)),
        sa.Column('resource_id', postgresql.UUID(as_uuid=True)),
        sa.Column('data_json', sa.JSON()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )

    # Create indexes
    op.create_index('ix_tables_restaurant_id', 'tables', ['restaurant_id'])
    op.create_index('ix_schedules_restaurant_id', 'schedules', ['restaurant_id'])
    op.create_index('ix_blocks_restaurant_id', 'blocks', ['restaurant_id'])
    op.create_index('ix_blocks_date', 'blocks', ['date'])
    op.create_index('ix_reservations_restaurant_id', 'reservations', ['restaurant_id'])
    op.create_index('ix_reservations_reference', 'reservations', ['reference'])
    op.create_index('ix_reservations_date_time_start', 'reservations', ['date_time_start'])
    op.create_index('ix_audit_logs_restaurant_id', 'audit_logs', ['restaurant_id'])
    op.create_index('ix_audit_logs_resource', 'audit_logs', ['resource_type', 'resource_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('reservations')
    op.drop_table('blocks')
    op.drop_table('schedules')
    op.drop_table('tables')
    op.drop_table('users')
    op.drop_table('restaurants')

    bind = op.get_bind()
    for enum_type in (user_role, table_zone, reservation_status, service_type):
        enum_type.drop(bind, checkfirst=True)
