"""workout days and exercise catalog

Revision ID: 001
Revises:
Create Date: 2025-01-06 00:00:00.000000

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

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    # Canonical exercise catalog (written only by bulk upsert)
    op.create_table(
        'exercises',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('slug', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('aliases', JSONType, nullable=False, server_default=sa.text("'[]'")),
        sa.Column('body_part', sa.Text(), nullable=True),
        sa.Column('equipment', JSONType, nullable=False, server_default=sa.text("'[]'")),
        sa.Column('pattern', sa.Text(), nullable=True),
        sa.Column('is_unilateral', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('slug', name='uq_exercises_slug'),
    )
    op.create_index('exercises_name_idx', 'exercises', ['name'])

    # One generated workout per (user, date)
    op.create_table(
        'workout_days',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Text(), nullable=False),
        sa.Column('date', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('payload_json', JSONType, nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('user_id', 'date', name='uq_workout_days_user_date'),
    )
    op.create_index('workout_days_user_date_idx', 'workout_days', ['user_id', 'date'])

    # Read-only here; owned by the profile service
    op.create_table(
        'user_profiles',
        sa.Column('user_id', sa.Text(), primary_key=True),
        sa.Column('goal', sa.Text(), nullable=True),
        sa.Column('focus_areas', JSONType, nullable=True),
        sa.Column('equipment_access', JSONType, nullable=True),
        sa.Column('session_duration_min', sa.Integer(), nullable=True),
        sa.Column('injuries', sa.Text(), nullable=True),
        sa.Column('coaching_style', sa.Text(), nullable=True),
        sa.Column('cardio_preference', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('user_profiles')
    op.drop_index('workout_days_user_date_idx', table_name='workout_days')
    op.drop_table('workout_days')
    op.drop_index('exercises_name_idx', table_name='exercises')
    op.drop_table('exercises')
