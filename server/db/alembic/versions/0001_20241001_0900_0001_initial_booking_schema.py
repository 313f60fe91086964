"""Initial booking schema

Revision ID: 0001
Revises:
Create Date: 2024-10-01 09:00:00.000000

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
    # Create packages table
    op.create_table('packages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('short_description', sa.String(length=200), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('original_price', sa.Integer(), nullable=True),
        sa.Column('duration_days', sa.Integer(), nullable=False),
        sa.Column('duration_nights', sa.Integer(), nullable=False),
        sa.Column('categories', sa.JSON(), nullable=False),
        sa.Column('inclusions', sa.JSON(), nullable=False),
        sa.Column('exclusions', sa.JSON(), nullable=False),
        sa.Column('itinerary', sa.JSON(), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('highlights', sa.JSON(), nullable=False),
        sa.Column('difficulty', sa.String(length=20), nullable=False),
        sa.Column('max_travelers', sa.Integer(), nullable=False),
        sa.Column('available_dates', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('rating_average', sa.Float(), nullable=False),
        sa.Column('rating_count', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('price >= 0', name='ck_package_price_non_negative'),
        sa.CheckConstraint('original_price IS NULL OR original_price >= 0', name='ck_package_original_price_non_negative'),
        sa.CheckConstraint('duration_days >= 1', name='ck_package_duration_days_positive'),
        sa.CheckConstraint('rating_average >= 0 AND rating_average <= 5', name='ck_package_rating_range'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_packages_name'), 'packages', ['name'], unique=False)
    op.create_index(op.f('ix_packages_price'), 'packages', ['price'], unique=False)
    op.create_index(op.f('ix_packages_duration_days'), 'packages', ['duration_days'], unique=False)
    op.create_index(op.f('ix_packages_is_active'), 'packages', ['is_active'], unique=False)
    op.create_index(op.f('ix_packages_created_at'), 'packages', ['created_at'], unique=False)

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.String(length=40), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('package_id', sa.Uuid(), nullable=False),
        sa.Column('travelers', sa.JSON(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('contact_email', sa.String(length=255), nullable=False),
        sa.Column('contact_phone', sa.String(length=32), nullable=False),
        sa.Column('emergency_contact', sa.JSON(), nullable=True),
        sa.Column('package_price', sa.Integer(), nullable=False),
        sa.Column('extra_charges', sa.Integer(), nullable=False),
        sa.Column('discount', sa.Integer(), nullable=False),
        sa.Column('tax_amount', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('final_amount', sa.Integer(), nullable=False),
        sa.Column('payment_status', sa.String(length=20), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=True),
        sa.Column('transaction_id', sa.String(length=128), nullable=True),
        sa.Column('razorpay_order_id', sa.String(length=128), nullable=True),
        sa.Column('razorpay_payment_id', sa.String(length=128), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('assigned_guide', sa.String(length=128), nullable=True),
        sa.Column('is_cancelled', sa.Boolean(), nullable=False),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('refund_amount', sa.Integer(), nullable=True),
        sa.Column('reviews', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('duration > 0', name='ck_booking_duration_positive'),
        sa.CheckConstraint('length(booking_id) > 0', name='ck_booking_booking_id_not_empty'),
        sa.CheckConstraint('package_price >= 0', name='ck_booking_package_price_non_negative'),
        sa.CheckConstraint('final_amount >= 0', name='ck_booking_final_amount_non_negative'),
        sa.ForeignKeyConstraint(['package_id'], ['packages.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_booking_id'), 'bookings', ['booking_id'], unique=True)
    op.create_index(op.f('ix_bookings_user_id'), 'bookings', ['user_id'], unique=False)
    op.create_index(op.f('ix_bookings_package_id'), 'bookings', ['package_id'], unique=False)
    op.create_index(op.f('ix_bookings_start_date'), 'bookings', ['start_date'], unique=False)
    op.create_index(op.f('ix_bookings_payment_status'), 'bookings', ['payment_status'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
    op.create_index(op.f('ix_bookings_assigned_guide'), 'bookings', ['assigned_guide'], unique=False)
    op.create_index(op.f('ix_bookings_is_cancelled'), 'bookings', ['is_cancelled'], unique=False)
    op.create_index(op.f('ix_bookings_created_at'), 'bookings', ['created_at'], unique=False)

    # Create sequences table and seed the booking counter
    sequences = op.create_table('sequences',
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('value', sa.BigInteger(), nullable=False),
        sa.CheckConstraint('value >= 0', name='ck_sequence_value_non_negative'),
        sa.PrimaryKeyConstraint('name')
    )
    op.bulk_insert(sequences, [{'name': 'booking', 'value': 0}])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('sequences')
    op.drop_table('bookings')
    op.drop_table('packages')
