"""Initial SafeFood schema: users, profiles, donations, pickups, impact metrics

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('admin', 'donor', 'charity', 'volunteer', name='user_role')
donation_status = sa.Enum('pending', 'assigned', 'picked_up', 'delivered', 'cancelled', name='donation_status')
food_type = sa.Enum('prepared_meals', 'groceries', 'produce', 'bakery', 'other', name='food_type')


def _profile_columns():
    return [
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('address', sa.String(500), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('contact_person', sa.String(200), nullable=False),
        sa.Column('contact_phone', sa.String(20), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create all tables, enums and the one-active-pickup index."""

    # 1. Users
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('full_name', sa.String(200), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # 2. Profiles
    op.create_table('organizations', *_profile_columns(), sa.Column('type', sa.String(50), nullable=False))
    op.create_table(
        'charities',
        *_profile_columns(),
        sa.Column('registration_number', sa.String(100), nullable=False),
    )
    op.create_table(
        'volunteers',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('last_active', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_pickups', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rating', sa.Float(), nullable=False, server_default='5.0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # 3. Donations
    op.create_table(
        'donations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('food_type', food_type, nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('expiry', sa.DateTime(timezone=True), nullable=False),
        sa.Column('pickup_window_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('pickup_window_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', donation_status, nullable=False, server_default='pending'),
        sa.Column('temperature_requirements', sa.String(200), nullable=True),
        sa.Column('handling_instructions', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_donations_organization_id', 'donations', ['organization_id'])
    op.create_index('ix_donations_status', 'donations', ['status'])

    # 4. Pickups
    op.create_table(
        'pickups',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('donation_id', UUID(as_uuid=True), sa.ForeignKey('donations.id'), nullable=False),
        sa.Column('charity_id', UUID(as_uuid=True), sa.ForeignKey('charities.id'), nullable=True),
        sa.Column('volunteer_id', UUID(as_uuid=True), sa.ForeignKey('volunteers.id'), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('picked_up_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('proof_of_pickup', sa.Text(), nullable=True),
        sa.Column('proof_of_delivery', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_pickups_volunteer_id', 'pickups', ['volunteer_id'])
    op.create_index(
        'uq_pickups_active_donation',
        'pickups',
        ['donation_id'],
        unique=True,
        postgresql_where=sa.text('cancelled_at IS NULL'),
    )

    # 5. Impact metrics
    op.create_table(
        'impact_metrics',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False, unique=True),
        sa.Column('meals_saved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('kg_food_saved', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('co2_saved', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('beneficiaries_served', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # 6. Audit trail
    op.create_table(
        'audit_logs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('actor_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', UUID(as_uuid=True), nullable=False),
        sa.Column('before_state', sa.JSON(), nullable=True),
        sa.Column('after_state', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop everything created above."""
    op.drop_table('audit_logs')
    op.drop_table('impact_metrics')
    op.drop_index('uq_pickups_active_donation', table_name='pickups')
    op.drop_index('ix_pickups_volunteer_id', table_name='pickups')
    op.drop_table('pickups')
    op.drop_index('ix_donations_status', table_name='donations')
    op.drop_index('ix_donations_organization_id', table_name='donations')
    op.drop_table('donations')
    op.drop_table('volunteers')
    op.drop_table('charities')
    op.drop_table('organizations')
    op.drop_table('users')

    food_type.drop(op.get_bind(), checkfirst=True)
    donation_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
