"""create call record, call log, conversation message and notification tables

Revision ID: 3b7e0c5a91d2
Revises: 
Create Date: 2026-10-19 10:12:41.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7e0c5a91d2'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'voice_calls',
        sa.Column('call_id', sa.String(length=100), primary_key=True),
        sa.Column('twilio_call_sid', sa.String(length=64), nullable=True),
        sa.Column('elevenlabs_call_id', sa.String(length=100), nullable=True),
        sa.Column('agent_id', sa.String(length=100), nullable=True),
        sa.Column('to_number', sa.String(length=32), nullable=True),
        sa.Column('from_number', sa.String(length=32), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='initiating'),
        sa.Column('twilio_status', sa.String(length=32), nullable=True),
        sa.Column('elevenlabs_status', sa.String(length=32), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ringing_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('connected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_sec', sa.Integer(), nullable=True),
        sa.Column('end_reason', sa.String(length=100), nullable=True),
        sa.Column('error_code', sa.String(length=100), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('sentiment_summary', sa.Text(), nullable=True),
        sa.Column('recording_sid', sa.String(length=64), nullable=True),
        sa.Column('recording_url', sa.Text(), nullable=True),
        sa.Column('recording_status', sa.String(length=32), nullable=True),
        sa.Column('recording_duration_sec', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_voice_calls_twilio_call_sid', 'voice_calls', ['twilio_call_sid'])
    op.create_index('ix_voice_calls_elevenlabs_call_id', 'voice_calls', ['elevenlabs_call_id'])
    op.create_index('ix_voice_calls_to_number', 'voice_calls', ['to_number'])
    op.create_index('ix_voice_calls_created_at', 'voice_calls', ['created_at'])

    op.create_table(
        'call_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('call_id', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_call_logs_call_id', 'call_logs', ['call_id'])
    op.create_index('ix_call_logs_timestamp', 'call_logs', ['timestamp'])

    op.create_table(
        'conversation_messages',
        sa.Column('id', sa.String(length=150), primary_key=True),
        sa.Column('call_id', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sentiment', sa.String(length=16), nullable=True),
        sa.Column('conversation_id', sa.String(length=100), nullable=True),
    )
    op.create_index('ix_conversation_messages_call_id', 'conversation_messages', ['call_id'])
    op.create_index('ix_conversation_messages_timestamp', 'conversation_messages', ['timestamp'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('severity', sa.String(length=16), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('related_id', sa.String(length=100), nullable=True),
        sa.Column('related_type', sa.String(length=32), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('action_required', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('action_url', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_notifications_related_id', 'notifications', ['related_id'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_notifications_created_at', table_name='notifications')
    op.drop_index('ix_notifications_related_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_conversation_messages_timestamp', table_name='conversation_messages')
    op.drop_index('ix_conversation_messages_call_id', table_name='conversation_messages')
    op.drop_table('conversation_messages')
    op.drop_index('ix_call_logs_timestamp', table_name='call_logs')
    op.drop_index('ix_call_logs_call_id', table_name='call_logs')
    op.drop_table('call_logs')
    op.drop_index('ix_voice_calls_created_at', table_name='voice_calls')
    op.drop_index('ix_voice_calls_to_number', table_name='voice_calls')
    op.drop_index('ix_voice_calls_elevenlabs_call_id', table_name='voice_calls')
    op.drop_index('ix_voice_calls_twilio_call_sid', table_name='voice_calls')
    op.drop_table('voice_calls')
