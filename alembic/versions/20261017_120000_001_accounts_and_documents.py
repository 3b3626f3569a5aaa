"""Accounts and directory documents.

Revision ID: 001
Revises:
Create Date: 2026-10-17 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Accounts table
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)

    # Directory documents (users, likes, matches, chats, messages)
    op.create_table(
        'documents',
        sa.Column('collection', sa.String(512), nullable=False),
        sa.Column('doc_id', sa.String(255), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('create_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('update_time', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('collection', 'doc_id'),
    )
    op.create_index(
        'ix_documents_collection_update_time', 'documents', ['collection', 'update_time']
    )


def downgrade() -> None:
    op.drop_index('ix_documents_collection_update_time', table_name='documents')
    op.drop_table('documents')
    op.drop_index('ix_accounts_email', table_name='accounts')
    op.drop_table('accounts')
