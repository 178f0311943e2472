"""booking schema

Revision ID: 4c2a9e71b0d3
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '4c2a9e71b0d3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEFAULT_SETTINGS = [
    {'key': 'business_name', 'value': 'Our Studio'},
    {'key': 'business_email', 'value': ''},
    {'key': 'business_phone', 'value': ''},
    {'key': 'advance_booking_days', 'value': 60},
    {'key': 'buffer_time_minutes', 'value': 15},
    {'key': 'venmo_handle', 'value': ''},
]


def upgrade() -> None:
    """Upgrade schema."""

    # 1. services
    op.create_table(
        'services',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=True),
        sa.Column('price_display', sa.String(50), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true')),
        sa.Column('sort_order', sa.Integer(), server_default='0'),
        sa.Column('square_catalog_id', sa.String(64), nullable=True),
        sa.Column('square_variation_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint('duration_minutes > 0', name='services_duration_positive'),
    )
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    # 2. clients
    op.create_table(
        'clients',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(30), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('square_customer_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('ix_clients_email', 'clients', ['email'], unique=True)

    # 3. weekly availability, one row per day (0=Sunday)
    op.create_table(
        'availability',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('day_of_week', sa.Integer(), nullable=False, unique=True),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true')),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='availability_day_of_week_range'),
    )

    # 4. blocked time
    op.create_table(
        'blocked_times',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('start_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('is_all_day', sa.Boolean(), server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint('end_datetime > start_datetime', name='blocked_times_positive_span'),
    )
    op.create_index('ix_blocked_times_start_datetime', 'blocked_times', ['start_datetime'])
    op.create_index('ix_blocked_times_end_datetime', 'blocked_times', ['end_datetime'])

    # 5. settings
    settings_table = op.create_table(
        'admin_settings',
        sa.Column('key', sa.String(100), primary_key=True),
        sa.Column('value', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.bulk_insert(settings_table, DEFAULT_SETTINGS)

    # 6. appointments
    op.create_table(
        'appointments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id'), nullable=True),
        sa.Column('start_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('service_name', sa.String(200), nullable=True),
        sa.Column('client_notes', sa.Text(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('cancellation_token', sa.String(64), nullable=False),
        sa.Column('payment_method', sa.String(), nullable=False, server_default='pay_at_appointment'),
        sa.Column('payment_status', sa.String(), nullable=False, server_default='unpaid'),
        sa.Column('square_payment_id', sa.String(64), nullable=True),
        sa.Column('square_booking_id', sa.String(64), nullable=True),
        sa.Column('square_variation_id', sa.String(64), nullable=True),
        sa.Column('confirmation_sent', sa.Boolean(), server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('end_datetime > start_datetime', name='appointments_positive_span'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed', 'no_show')",
            name='appointments_status_valid',
        ),
    )
    op.create_index('ix_appointments_client_id', 'appointments', ['client_id'])
    op.create_index('ix_appointments_start_datetime', 'appointments', ['start_datetime'])
    op.create_index('ix_appointments_status', 'appointments', ['status'])
    op.create_index('ix_appointments_cancellation_token', 'appointments', ['cancellation_token'])

    # No two live appointments may overlap (half-open intervals)
    op.execute(
        "ALTER TABLE appointments ADD CONSTRAINT appointments_no_overlap "
        "EXCLUDE USING gist (tstzrange(start_datetime, end_datetime, '[)') WITH &&) "
        "WHERE (status <> 'cancelled')"
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('appointments')
    op.drop_table('admin_settings')
    op.drop_table('blocked_times')
    op.drop_table('availability')
    op.drop_table('clients')
    op.drop_table('services')
