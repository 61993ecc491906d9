"""initial coaching schema

Revision ID: 001
Revises:
Create Date: 2026-10-01 00:00:00.000000

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

JSONDocument = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Create app_user table
    op.create_table(
        'app_user',
        sa.Column('id', sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('username', sa.String(64), nullable=False, unique=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', sa.String(16), server_default='client', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('validated', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('assigned_trainer_id', sa.Uuid(), nullable=True),
        sa.Column('notify_messages', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('notify_plans', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('notify_system', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('name', sa.Text(), server_default='', nullable=False),
        sa.Column('email', sa.Text(), server_default='', nullable=False),
        sa.Column('bio', sa.Text(), server_default='', nullable=False),
        sa.Column('goal', sa.Text(), server_default='', nullable=False),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('height', sa.Float(), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('weight', sa.Float(), nullable=True),
        sa.Column('initial_weight', sa.Float(), nullable=True),
        sa.Column('last_weight_update', sa.DateTime(timezone=True), nullable=True),
        sa.Column('weight_lost', sa.Float(), server_default='0', nullable=False),
        sa.Column('total_plans', sa.Integer(), server_default='0', nullable=False),
        sa.ForeignKeyConstraint(['assigned_trainer_id'], ['app_user.id'], ondelete='SET NULL'),
        sa.CheckConstraint("role IN ('admin', 'trainer', 'client')", name='ck_app_user_role'),
    )
    op.create_index('ix_app_user_role', 'app_user', ['role'])
    op.create_index('ix_app_user_assigned_trainer_id', 'app_user', ['assigned_trainer_id'])

    op.create_table(
        'weight_entry',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_weight_entry_user_id', 'weight_entry', ['user_id'])

    op.create_table(
        'specialty',
        sa.Column('id', sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('name', sa.String(50), nullable=False, unique=True),
        sa.Column('slug', sa.String(64), nullable=False, unique=True),
        sa.Column('description', sa.String(300), server_default='', nullable=False),
        sa.Column('icon', sa.Text(), nullable=True),
        sa.Column('active', sa.Boolean(), server_default=sa.true(), nullable=False),
    )

    op.create_table(
        'user_specialty',
        sa.Column('user_id', sa.Uuid(), primary_key=True),
        sa.Column('specialty_id', sa.Uuid(), primary_key=True),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['specialty_id'], ['specialty.id'], ondelete='CASCADE'),
    )

    op.create_table(
        'trainer_change_request',
        sa.Column('id', sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('client_id', sa.Uuid(), nullable=False),
        sa.Column('current_trainer_id', sa.Uuid(), nullable=True),
        sa.Column('new_trainer_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(16), server_default='pending', nullable=False),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['app_user.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['current_trainer_id'], ['app_user.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['new_trainer_id'], ['app_user.id'], ondelete='CASCADE'),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')", name='ck_trainer_change_request_status'
        ),
    )
    op.create_index('ix_trainer_change_request_client_id', 'trainer_change_request', ['client_id'])
    op.create_index('ix_trainer_change_request_new_trainer_id', 'trainer_change_request', ['new_trainer_id'])
    op.create_index(
        'ix_trainer_change_request_pending', 'trainer_change_request', ['new_trainer_id', 'status']
    )

    op.create_table(
        'plan',
        sa.Column('id', sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('trainer_id', sa.Uuid(), nullable=False),
        sa.Column('client_id', sa.Uuid(), nullable=False, unique=True),
        sa.Column('name', sa.Text(), server_default='Custom Plan', nullable=False),
        sa.Column('weeks', sa.Integer(), server_default='4', nullable=False),
        sa.Column('sessions_per_week', sa.Integer(), server_default='4', nullable=False),
        sa.Column('days', JSONDocument, nullable=False),
        sa.Column('notes', sa.Text(), server_default='', nullable=False),
        sa.Column('is_from_template', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.ForeignKeyConstraint(['trainer_id'], ['app_user.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['client_id'], ['app_user.id'], ondelete='CASCADE'),
        sa.CheckConstraint('sessions_per_week IN (3, 4, 5)', name='ck_plan_sessions_per_week'),
    )
    op.create_index('ix_plan_trainer_id', 'plan', ['trainer_id'])

    op.create_table(
        'plan_template',
        sa.Column('id', sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('trainer_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('weeks', sa.Integer(), server_default='4', nullable=False),
        sa.Column('sessions_per_week', sa.Integer(), server_default='4', nullable=False),
        sa.Column('days', JSONDocument, nullable=False),
        sa.Column('notes', sa.Text(), server_default='', nullable=False),
        sa.ForeignKeyConstraint(['trainer_id'], ['app_user.id'], ondelete='CASCADE'),
        sa.CheckConstraint('sessions_per_week IN (3, 4, 5)', name='ck_plan_template_sessions_per_week'),
        sa.CheckConstraint('weeks >= 1', name='ck_plan_template_weeks'),
    )
    op.create_index('ix_plan_template_trainer_id', 'plan_template', ['trainer_id'])

    op.create_table(
        'entry',
        sa.Column('id', sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('client_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('completed', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('proof_media', sa.Text(), nullable=True),
        sa.Column('calories_burned', sa.Float(), server_default='0', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['client_id'], ['app_user.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('client_id', 'date', name='uq_entry_client_date'),
        sa.CheckConstraint('calories_burned >= 0', name='ck_entry_calories_non_negative'),
    )
    op.create_index('ix_entry_client_completed_at', 'entry', ['client_id', 'completed_at'])

    op.create_table(
        'message',
        sa.Column('id', sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('sender_id', sa.Uuid(), nullable=False),
        sa.Column('recipient_id', sa.Uuid(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('read', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.ForeignKeyConstraint(['sender_id'], ['app_user.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipient_id'], ['app_user.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_message_created_at', 'message', ['created_at'])
    op.create_index('ix_message_pair', 'message', ['sender_id', 'recipient_id'])
    op.create_index('ix_message_recipient_unread', 'message', ['recipient_id', 'read'])

    op.create_table(
        'message_hidden_for',
        sa.Column('message_id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), primary_key=True),
        sa.Column('hidden_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['message_id'], ['message.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['app_user.id'], ondelete='CASCADE'),
    )

    op.create_table(
        'notification',
        sa.Column('id', sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column('recipient_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(16), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('related_id', sa.Uuid(), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.ForeignKeyConstraint(['recipient_id'], ['app_user.id'], ondelete='CASCADE'),
        sa.CheckConstraint("type IN ('message', 'plan', 'system', 'alert')", name='ck_notification_type'),
    )
    op.create_index('ix_notification_recipient_created', 'notification', ['recipient_id', 'created_at'])
    op.create_index(
        'ix_notification_recipient_type_read', 'notification', ['recipient_id', 'type', 'is_read']
    )


def downgrade() -> None:
    op.drop_table('notification')
    op.drop_table('message_hidden_for')
    op.drop_table('message')
    op.drop_table('entry')
    op.drop_table('plan_template')
    op.drop_table('plan')
    op.drop_table('trainer_change_request')
    op.drop_table('user_specialty')
    op.drop_table('specialty')
    op.drop_table('weight_entry')
    op.drop_table('app_user')
