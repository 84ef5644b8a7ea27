"""Initial database schema

Revision ID: 0001
Revises:
Create Date: 2025-08-02 12:30:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create hotels table
    op.create_table('hotels',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=256), nullable=False),
        sa.Column('subdomain', sa.String(length=64), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('tax_strategy', sa.String(length=20), nullable=False),
        sa.Column('vat_rate', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('service_charge_rate', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('allow_capacity_override', sa.Boolean(), nullable=False),
        sa.Column('is_deactivated', sa.Boolean(), nullable=False),
        sa.Column('deactivated_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('vat_rate >= 0 AND vat_rate <= 100', name='ck_hotel_vat_rate_range'),
        sa.CheckConstraint('service_charge_rate >= 0 AND service_charge_rate <= 100', name='ck_hotel_service_charge_rate_range'),
        sa.CheckConstraint('length(currency) = 3', name='ck_hotel_currency_length'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('subdomain')
    )
    op.create_index(op.f('ix_hotels_name'), 'hotels', ['name'], unique=False)
    op.create_index(op.f('ix_hotels_subdomain'), 'hotels', ['subdomain'], unique=False)

    # Create venues table
    op.create_table('venues',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('hotel_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('capacity_banquet', sa.Integer(), nullable=True),
        sa.Column('capacity_theater', sa.Integer(), nullable=True),
        sa.Column('capacity_reception', sa.Integer(), nullable=True),
        sa.Column('capacity_ushape', sa.Integer(), nullable=True),
        sa.Column('base_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('base_price IS NULL OR base_price >= 0', name='ck_venue_base_price_non_negative'),
        sa.ForeignKeyConstraint(['hotel_id'], ['hotels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug')
    )
    op.create_index(op.f('ix_venues_hotel_id'), 'venues', ['hotel_id'], unique=False)
    op.create_index(op.f('ix_venues_slug'), 'venues', ['slug'], unique=False)

    # Create customers table
    op.create_table('customers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('hotel_id', sa.Uuid(), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('contact_name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['hotel_id'], ['hotels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_customers_email'), 'customers', ['email'], unique=False)
    op.create_index(op.f('ix_customers_hotel_id'), 'customers', ['hotel_id'], unique=False)

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('booking_number', sa.String(length=32), nullable=False),
        sa.Column('hotel_id', sa.Uuid(), nullable=False),
        sa.Column('venue_id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('created_by_id', sa.String(length=255), nullable=False),
        sa.Column('assigned_to_id', sa.String(length=255), nullable=True),
        sa.Column('event_name', sa.String(length=255), nullable=False),
        sa.Column('event_type', sa.String(length=100), nullable=True),
        sa.Column('layout_type', sa.String(length=50), nullable=True),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('guest_count', sa.Integer(), nullable=False),
        sa.Column('guaranteed_pax', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('conflict_id', sa.Uuid(), nullable=True),
        sa.Column('base_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('service_charge', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('vat', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('vat_rate_snapshot', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('service_charge_rate_snapshot', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('tax_strategy_snapshot', sa.String(length=20), nullable=False),
        sa.Column('source', sa.String(length=20), nullable=False),
        sa.Column('is_public_booking', sa.Boolean(), nullable=False),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('dietary_requests', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('end_time > start_time', name='ck_booking_end_after_start'),
        sa.CheckConstraint('guest_count > 0', name='ck_booking_guest_count_positive'),
        sa.CheckConstraint('guaranteed_pax >= 0', name='ck_booking_guaranteed_pax_non_negative'),
        sa.CheckConstraint('total_amount >= 0', name='ck_booking_total_amount_non_negative'),
        sa.CheckConstraint("(status = 'CONFLICT') OR (conflict_id IS NULL)", name='ck_booking_conflict_link_only_in_conflict'),
        sa.ForeignKeyConstraint(['hotel_id'], ['hotels.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['venue_id'], ['venues.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['conflict_id'], ['bookings.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_number')
    )
    op.create_index(op.f('ix_bookings_booking_number'), 'bookings', ['booking_number'], unique=False)
    op.create_index(op.f('ix_bookings_hotel_id'), 'bookings', ['hotel_id'], unique=False)
    op.create_index(op.f('ix_bookings_venue_id'), 'bookings', ['venue_id'], unique=False)
    op.create_index(op.f('ix_bookings_customer_id'), 'bookings', ['customer_id'], unique=False)
    op.create_index(op.f('ix_bookings_assigned_to_id'), 'bookings', ['assigned_to_id'], unique=False)
    op.create_index(op.f('ix_bookings_event_date'), 'bookings', ['event_date'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
    op.create_index('ix_bookings_venue_schedule', 'bookings', ['venue_id', 'start_time', 'end_time'], unique=False)

    # Create audit_logs table
    op.create_table('audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('actor_id', sa.String(length=255), nullable=False),
        sa.Column('hotel_id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.String(length=80), nullable=False),
        sa.Column('resource', sa.String(length=40), nullable=False),
        sa.Column('resource_id', sa.String(length=64), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(action) > 0', name='ck_audit_action_not_empty'),
        sa.ForeignKeyConstraint(['hotel_id'], ['hotels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_logs_actor_id'), 'audit_logs', ['actor_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_action'), 'audit_logs', ['action'], unique=False)
    op.create_index('ix_audit_logs_hotel_created', 'audit_logs', ['hotel_id', 'created_at'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('audit_logs')
    op.drop_table('bookings')
    op.drop_table('customers')
    op.drop_table('venues')
    op.drop_table('hotels')
