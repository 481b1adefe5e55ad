"""Initial schema - Create users and orders tables

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create enum types
    op.execute("CREATE TYPE user_role AS ENUM ('admin', 'driver', 'customer')")
    op.execute("CREATE TYPE user_status AS ENUM ('active', 'inactive', 'suspended', 'pending')")
    op.execute("CREATE TYPE payment_status AS ENUM ('pending', 'paid', 'failed')")
    op.execute(
        "CREATE TYPE delivery_status AS ENUM "
        "('pending', 'assigned', 'picked', 'in_transit', 'delivered', 'cancelled')"
    )
    
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('full_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('phone', sa.String(20), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', postgresql.ENUM('admin', 'driver', 'customer', name='user_role', create_type=False), nullable=False, server_default='customer'),
        sa.Column('status', postgresql.ENUM('active', 'inactive', 'suspended', 'pending', name='user_status', create_type=False), nullable=False, server_default='active'),
        sa.Column('profile_picture', sa.Text(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('vehicle_number', sa.String(20), nullable=True),
        sa.Column('license_number', sa.String(50), nullable=True),
        sa.Column('location', postgresql.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "role <> 'driver' OR (vehicle_number IS NOT NULL AND license_number IS NOT NULL)",
            name='ck_users_driver_details',
        ),
    )
    
    # Create orders table
    op.create_table(
        'orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('driver_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('pickup_address', sa.Text(), nullable=False),
        sa.Column('pickup_lat', sa.Float(), nullable=False),
        sa.Column('pickup_lng', sa.Float(), nullable=False),
        sa.Column('dropoff_address', sa.Text(), nullable=False),
        sa.Column('dropoff_lat', sa.Float(), nullable=False),
        sa.Column('dropoff_lng', sa.Float(), nullable=False),
        sa.Column('package_description', sa.Text(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_status', postgresql.ENUM('pending', 'paid', 'failed', name='payment_status', create_type=False), nullable=False, server_default='pending'),
        sa.Column('delivery_status', postgresql.ENUM('pending', 'assigned', 'picked', 'in_transit', 'delivered', 'cancelled', name='delivery_status', create_type=False), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('pickup_lat BETWEEN -90 AND 90 AND dropoff_lat BETWEEN -90 AND 90', name='ck_orders_latitude'),
        sa.CheckConstraint('pickup_lng BETWEEN -180 AND 180 AND dropoff_lng BETWEEN -180 AND 180', name='ck_orders_longitude'),
        sa.CheckConstraint('price >= 0.01 AND price <= 99999.99', name='ck_orders_price'),
    )
    
    # Create indexes for common queries
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_driver_id', 'orders', ['driver_id'])
    op.create_index('ix_orders_delivery_status', 'orders', ['delivery_status'])
    op.create_index('ix_orders_payment_status', 'orders', ['payment_status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_index('ix_orders_customer_delivery_status', 'orders', ['customer_id', 'delivery_status'])
    op.create_index('ix_orders_driver_delivery_status', 'orders', ['driver_id', 'delivery_status'])


def downgrade() -> None:
    op.drop_table('orders')
    op.drop_table('users')
    
    op.execute("DROP TYPE IF EXISTS delivery_status")
    op.execute("DROP TYPE IF EXISTS payment_status")
    op.execute("DROP TYPE IF EXISTS user_status")
    op.execute("DROP TYPE IF EXISTS user_role")
