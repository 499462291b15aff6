"""Initial migration - create all tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

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
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # Create strava_connections table
    op.create_table(
        'strava_connections',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), unique=True, nullable=False),
        sa.Column('athlete_id', sa.BigInteger(), unique=True, nullable=False),
        sa.Column('access_token', sa.Text(), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.Integer(), nullable=False),
        sa.Column('scope', sa.String(255), nullable=True),
        sa.Column('connected_at', sa.DateTime(), nullable=True),
        sa.Column('last_sync_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_strava_connections_athlete_id', 'strava_connections', ['athlete_id'])

    # Create fitness_activities table
    op.create_table(
        'fitness_activities',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('duration_min', sa.Integer(), nullable=False),
        sa.Column('distance_km', sa.Float(), nullable=True),
        sa.Column('calories', sa.Integer(), nullable=True),
        sa.Column('heart_rate', sa.Integer(), nullable=True),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(20), nullable=False),
        sa.Column('strava_id', sa.String(32), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'strava_id', name='uq_fitness_activities_user_strava'),
    )
    op.create_index('ix_fitness_activities_user_id', 'fitness_activities', ['user_id'])
    op.create_index('ix_fitness_activities_date', 'fitness_activities', ['date'])
    op.create_index('ix_fitness_activities_strava_id', 'fitness_activities', ['strava_id'])

    # Create fitness_badges table
    op.create_table(
        'fitness_badges',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('badge_type', sa.String(50), nullable=False),
        sa.Column('unlocked_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'badge_type', name='uq_fitness_badges_user_type'),
    )
    op.create_index('ix_fitness_badges_user_id', 'fitness_badges', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_fitness_badges_user_id', table_name='fitness_badges')
    op.drop_table('fitness_badges')
    op.drop_index('ix_fitness_activities_strava_id', table_name='fitness_activities')
    op.drop_index('ix_fitness_activities_date', table_name='fitness_activities')
    op.drop_index('ix_fitness_activities_user_id', table_name='fitness_activities')
    op.drop_table('fitness_activities')
    op.drop_index('ix_strava_connections_athlete_id', table_name='strava_connections')
    op.drop_table('strava_connections')
    op.drop_table('users')
