"""Initial migration - create all tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

Users, customers, cars, bookings (with vehicles, drivers, extras,
upgrades), inspections, inspection links, contracts, contract history,
company branding and notifications.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('dni_nie', sa.String(30), nullable=True),
        sa.Column('phone', sa.String(30), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('street_address', sa.String(255), nullable=True),
        sa.Column('driver_license', sa.String(50), nullable=True),
        sa.Column('preferred_language', sa.String(5), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'cars',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('registration_number', sa.String(20), nullable=True),
        sa.Column('make', sa.String(50), nullable=False),
        sa.Column('model', sa.String(50), nullable=False),
        sa.Column('daily_rate', sa.Numeric(10, 2), nullable=True),
        sa.Column('pricing_group_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_cars_registration_number', 'cars', ['registration_number'])

    op.create_table(
        'rental_extras',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
    )

    op.create_table(
        'rental_upgrades',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('price_per_day', sa.Numeric(10, 2), nullable=True),
    )

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('car_id', sa.Integer(), sa.ForeignKey('cars.id', ondelete='SET NULL'), nullable=True),
        sa.Column('pickup_date', sa.DateTime(), nullable=True),
        sa.Column('return_date', sa.DateTime(), nullable=True),
        sa.Column('pickup_location', sa.String(150), nullable=True),
        sa.Column('return_location', sa.String(150), nullable=True),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('status', sa.String(30), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_bookings_pickup_date', 'bookings', ['pickup_date'])
    op.create_index('ix_booking_customer', 'bookings', ['customer_id'])

    op.create_table(
        'booking_vehicles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('car_id', sa.Integer(), sa.ForeignKey('cars.id', ondelete='CASCADE'), nullable=False),
        sa.Column('vehicle_price', sa.Numeric(10, 2), nullable=True),
    )
    op.create_index('ix_booking_vehicles_booking_id', 'booking_vehicles', ['booking_id'])

    op.create_table(
        'booking_drivers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('full_name', sa.String(200), nullable=True),
        sa.Column('driver_license', sa.String(50), nullable=True),
    )
    op.create_index('ix_booking_drivers_booking_id', 'booking_drivers', ['booking_id'])

    op.create_table(
        'booking_extras',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('extra_id', sa.Integer(), sa.ForeignKey('rental_extras.id', ondelete='SET NULL'), nullable=True),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=True),
    )
    op.create_index('ix_booking_extras_booking_id', 'booking_extras', ['booking_id'])

    op.create_table(
        'booking_upgrades',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('upgrade_id', sa.Integer(), sa.ForeignKey('rental_upgrades.id', ondelete='SET NULL'), nullable=True),
        sa.Column('unit_price_per_day', sa.Numeric(10, 2), nullable=True),
        sa.Column('days', sa.Integer(), nullable=True),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=True),
    )
    op.create_index('ix_booking_upgrades_booking_id', 'booking_upgrades', ['booking_id'])

    op.create_table(
        'vehicle_inspections',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('vehicle_id', sa.Integer(), sa.ForeignKey('cars.id', ondelete='SET NULL'), nullable=True),
        sa.Column('inspection_type', sa.String(20), nullable=False),
        sa.Column('inspection_date', sa.DateTime(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.Column('odometer_reading', sa.Integer(), nullable=True),
        sa.Column('fuel_level', sa.String(20), nullable=True),
        sa.Column('general_condition', sa.String(50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('front_photo', sa.String(500), nullable=True),
        sa.Column('left_photo', sa.String(500), nullable=True),
        sa.Column('rear_photo', sa.String(500), nullable=True),
        sa.Column('right_photo', sa.String(500), nullable=True),
        sa.Column('odometer_photo', sa.String(500), nullable=True),
        sa.Column('photo_storage', sa.String(20), nullable=True),
    )
    op.create_index(
        'ix_inspection_booking_vehicle_type', 'vehicle_inspections',
        ['booking_id', 'vehicle_id', 'inspection_type']
    )
    op.create_index('ix_vehicle_inspections_recorded_at', 'vehicle_inspections', ['recorded_at'])

    op.create_table(
        'inspection_links',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(128), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_inspection_links_booking_id', 'inspection_links', ['booking_id'])
    op.create_index('ix_inspection_links_token', 'inspection_links', ['token'], unique=True)

    op.create_table(
        'contracts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('contract_number', sa.String(20), nullable=False),
        sa.Column('contract_text', sa.Text(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('signed_at', sa.DateTime(), nullable=True),
        sa.Column('signature_data', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('inspections_synced_at', sa.DateTime(), nullable=True),
        sa.Column('remote_signature_token', sa.String(128), nullable=True),
        sa.Column('remote_signature_expires_at', sa.DateTime(), nullable=True),
        sa.Column('remote_signature_sent_at', sa.DateTime(), nullable=True),
        sa.Column('remote_signature_sent_to', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_contracts_contract_number', 'contracts', ['contract_number'])
    op.create_index('ix_contracts_remote_signature_token', 'contracts', ['remote_signature_token'], unique=True)

    op.create_table(
        'contract_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('contract_id', sa.Integer(), sa.ForeignKey('contracts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('contract_text', sa.Text(), nullable=False),
        sa.Column('change_reason', sa.String(255), nullable=True),
        sa.Column('created_by', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_contract_history_contract_version', 'contract_history', ['contract_id', 'version'])

    op.create_table(
        'company_config',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('company_name', sa.String(150), nullable=True),
        sa.Column('logo_path', sa.String(500), nullable=True),
        sa.Column('logo_storage', sa.String(20), nullable=True),
        sa.Column('primary_color', sa.String(20), nullable=True),
        sa.Column('secondary_color', sa.String(20), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_company_config_active', 'company_config', ['active'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('entity_type', sa.String(50), nullable=True),
        sa.Column('entity_id', sa.String(36), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=True),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_type', 'notifications', ['type'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])


def downgrade() -> None:
    for table in (
        'notifications', 'company_config', 'contract_history', 'contracts',
        'inspection_links', 'vehicle_inspections', 'booking_upgrades',
        'booking_extras', 'booking_drivers', 'booking_vehicles', 'bookings',
        'rental_upgrades', 'rental_extras', 'cars', 'customers', 'users',
    ):
        op.drop_table(table)
