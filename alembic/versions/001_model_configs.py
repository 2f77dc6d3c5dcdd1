"""Model configuration store

Revision ID: 001_model_configs
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '001_model_configs'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Model configs (api_key holds envelope text or '')
    op.create_table('model_configs',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('provider', sa.String(50), nullable=False),
        sa.Column('base_url', sa.String(512), nullable=False, server_default=''),
        sa.Column('model_id', sa.String(255), nullable=False),
        sa.Column('api_key', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        'uq_model_configs_single_default',
        'model_configs',
        ['is_default'],
        unique=True,
        postgresql_where=sa.text('is_default'),
        sqlite_where=sa.text('is_default'),
    )

    # Messages (only model_config_id is read here)
    op.create_table('messages',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('conversation_id', sa.String(64), nullable=False),
        sa.Column('model_config_id', sa.String(64), sa.ForeignKey('model_configs.id'), nullable=True),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_messages_conversation_id', 'messages', ['conversation_id'])
    op.create_index('ix_messages_model_config_id', 'messages', ['model_config_id'])


def downgrade() -> None:
    op.drop_index('ix_messages_model_config_id', table_name='messages')
    op.drop_index('ix_messages_conversation_id', table_name='messages')
    op.drop_table('messages')
    op.drop_index('uq_model_configs_single_default', table_name='model_configs')
    op.drop_table('model_configs')
