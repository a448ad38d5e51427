"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')

program_type = sa.Enum('LOGIC', 'MANUAL', name='program_type')
visibility_type = sa.Enum('PUBLIC', 'PRIVATE', name='visibility_type')
plan_type = sa.Enum('SINGLE', 'COMPOSITE', 'MANUAL', name='plan_type')
override_scope = sa.Enum('PLAN', 'WEEK', 'SESSION', name='override_scope')
session_status = sa.Enum('PLANNED', 'DONE', 'SKIPPED', name='session_status')


def upgrade() -> None:
    """Create program, plan, session, log and stats cache tables."""
    op.create_table(
        'program_templates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('type', program_type, nullable=False),
        sa.Column('visibility', visibility_type, nullable=False),
        sa.Column('owner_user_id', sa.String(length=100), nullable=True),
        sa.Column('parent_template_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('tags', JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_program_templates_slug', 'program_templates', ['slug'], unique=True)
    op.create_index('ix_program_templates_type', 'program_templates', ['type'])
    op.create_index('ix_program_templates_owner_user_id', 'program_templates', ['owner_user_id'])

    op.create_table(
        'program_versions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('template_id', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('changelog', sa.Text(), nullable=True),
        sa.Column('parent_version_id', sa.Integer(), nullable=True),
        sa.Column('definition', JSON, nullable=False),
        sa.Column('defaults', JSON, nullable=False),
        sa.Column('is_deprecated', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['template_id'], ['program_templates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('template_id', 'version', name='uq_program_version_template_version'),
    )
    op.create_index('ix_program_versions_template_id', 'program_versions', ['template_id'])

    op.create_table(
        'plans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('type', plan_type, nullable=False),
        sa.Column('root_program_version_id', sa.Integer(), nullable=True),
        sa.Column('params', JSON, nullable=False),
        sa.Column('is_archived', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['root_program_version_id'], ['program_versions.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_plans_user_id', 'plans', ['user_id'])
    op.create_index('ix_plans_type', 'plans', ['type'])

    op.create_table(
        'plan_modules',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=False),
        sa.Column('target', sa.String(length=50), nullable=False),
        sa.Column('program_version_id', sa.Integer(), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('params', JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['program_version_id'], ['program_versions.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_plan_modules_plan_id', 'plan_modules', ['plan_id'])

    op.create_table(
        'plan_overrides',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=False),
        sa.Column('scope', override_scope, nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=True),
        sa.Column('session_key', sa.String(length=32), nullable=True),
        sa.Column('patch', JSON, nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_plan_overrides_plan_scope', 'plan_overrides', ['plan_id', 'scope'])
    op.create_index('ix_plan_overrides_plan_week', 'plan_overrides', ['plan_id', 'week_number'])

    op.create_table(
        'generated_sessions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=False),
        sa.Column('session_key', sa.String(length=32), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(), nullable=True),
        sa.Column('status', session_status, nullable=False),
        sa.Column('snapshot', JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'plan_id', 'session_key', name='uq_generated_session_identity'),
    )
    op.create_index('ix_generated_sessions_user_id', 'generated_sessions', ['user_id'])
    op.create_index('ix_generated_sessions_plan_id', 'generated_sessions', ['plan_id'])
    op.create_index('ix_generated_sessions_updated_at', 'generated_sessions', ['updated_at'])

    op.create_table(
        'workout_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=True),
        sa.Column('generated_session_id', sa.Integer(), nullable=True),
        sa.Column('performed_at', sa.DateTime(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('tags', JSON, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['generated_session_id'], ['generated_sessions.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_workout_logs_plan_id', 'workout_logs', ['plan_id'])
    op.create_index('ix_workout_logs_generated_session_id', 'workout_logs', ['generated_session_id'])
    op.create_index('ix_workout_logs_user_performed', 'workout_logs', ['user_id', 'performed_at'])

    op.create_table(
        'workout_sets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('log_id', sa.Integer(), nullable=False),
        sa.Column('exercise_name', sa.String(length=200), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('set_number', sa.Integer(), nullable=False),
        sa.Column('reps', sa.Integer(), nullable=True),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('rpe', sa.Float(), nullable=True),
        sa.Column('is_extra', sa.Boolean(), nullable=False),
        sa.Column('meta', JSON, nullable=False),
        sa.ForeignKeyConstraint(['log_id'], ['workout_logs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_workout_sets_log_id', 'workout_sets', ['log_id'])
    op.create_index('ix_workout_sets_exercise_name', 'workout_sets', ['exercise_name'])

    op.create_table(
        'stats_cache',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=False),
        sa.Column('metric', sa.String(length=64), nullable=False),
        sa.Column('params_hash', sa.String(length=64), nullable=False),
        sa.Column('payload', JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'metric', 'params_hash', name='uq_stats_cache_user_metric_params'),
    )
    op.create_index('ix_stats_cache_user_id', 'stats_cache', ['user_id'])
    op.create_index('ix_stats_cache_updated_at', 'stats_cache', ['updated_at'])


def downgrade() -> None:
    """Drop every table created above."""
    op.drop_table('stats_cache')
    op.drop_table('workout_sets')
    op.drop_table('workout_logs')
    op.drop_table('generated_sessions')
    op.drop_table('plan_overrides')
    op.drop_table('plan_modules')
    op.drop_table('plans')
    op.drop_table('program_versions')
    op.drop_table('program_templates')

    bind = op.get_bind()
    for enum in (session_status, override_scope, plan_type, visibility_type, program_type):
        enum.drop(bind, checkfirst=True)
