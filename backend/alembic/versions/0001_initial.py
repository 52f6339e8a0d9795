"""initial schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_table('flights',
        sa.Column('id', sa.String(length=16), primary_key=True),
        sa.Column('flight_number', sa.String(length=32), nullable=False),
        sa.Column('origin', sa.String(length=120), nullable=False),
        sa.Column('origin_code', sa.String(length=8), nullable=False),
        sa.Column('destination', sa.String(length=120), nullable=False),
        sa.Column('destination_code', sa.String(length=8), nullable=False),
        sa.Column('departure', sa.String(length=5), nullable=False),
        sa.Column('arrival', sa.String(length=5), nullable=False),
        sa.Column('duration', sa.String(length=32), nullable=False),
        sa.Column('aircraft', sa.String(length=64), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('stops', sa.String(length=16), nullable=False, server_default='non-stop'),
        sa.Column('economy_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('economy_available', sa.Integer(), nullable=False),
        sa.Column('business_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('business_available', sa.Integer(), nullable=False),
        sa.Column('first_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('first_available', sa.Integer(), nullable=False),
        sa.CheckConstraint('economy_available >= 0', name='ck_flights_economy_available'),
        sa.CheckConstraint('business_available >= 0', name='ck_flights_business_available'),
        sa.CheckConstraint('first_available >= 0', name='ck_flights_first_available'),
    )
    for col in ('flight_number', 'origin', 'origin_code', 'destination', 'destination_code', 'date'):
        op.create_index(f'ix_flights_{col}', 'flights', [col])
    op.create_table('bookings',
        sa.Column('id', sa.String(length=40), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('outbound_flight_id', sa.String(length=16), sa.ForeignKey('flights.id'), nullable=False),
        sa.Column('return_flight_id', sa.String(length=16), sa.ForeignKey('flights.id'), nullable=True),
        sa.Column('class_type', sa.String(length=16), nullable=False),
        sa.Column('passenger_count', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='completed'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='confirmed'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False),
    )
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])
    op.create_index('ix_bookings_outbound_flight_id', 'bookings', ['outbound_flight_id'])
    op.create_index('ix_bookings_created_at', 'bookings', ['created_at'])

def downgrade():
    op.drop_table('bookings')
    op.drop_table('flights')
    op.drop_table('users')
