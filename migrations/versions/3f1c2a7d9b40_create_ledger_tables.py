"""create ledger tables

Revision ID: 3f1c2a7d9b40
Revises:
Create Date: 2026-10-18 10:12:41.508113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a7d9b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'groups',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_groups_owner_id', 'groups', ['owner_id'])

    op.create_table(
        'group_members',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('group_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('display_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.func.now()),

        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('group_id', 'email', name='uq_group_member_email'),
    )
    op.create_index('ix_group_members_group_id', 'group_members', ['group_id'])
    op.create_index('ix_group_members_user_id', 'group_members', ['user_id'])

    op.create_table(
        'expenses',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('group_id', sa.String(36), nullable=False),
        sa.Column('paid_by', sa.String(36), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('created_by', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),

        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['paid_by'], ['group_members.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_expenses_group_id', 'expenses', ['group_id'])

    op.create_table(
        'expense_shares',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('expense_id', sa.String(36), nullable=False),
        sa.Column('member_id', sa.String(36), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),

        sa.ForeignKeyConstraint(['expense_id'], ['expenses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['member_id'], ['group_members.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_expense_shares_expense_id', 'expense_shares', ['expense_id'])

    op.create_table(
        'settlements',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('group_id', sa.String(36), nullable=False),
        sa.Column('payer_member_id', sa.String(36), nullable=False),
        sa.Column('receiver_member_id', sa.String(36), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('method', sa.String(), nullable=False, server_default='manual'),
        sa.Column('status', sa.String(), nullable=False, server_default='completed'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),

        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['payer_member_id'], ['group_members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['receiver_member_id'], ['group_members.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_settlements_group_id', 'settlements', ['group_id'])


def downgrade() -> None:
    op.drop_table('settlements')
    op.drop_table('expense_shares')
    op.drop_table('expenses')
    op.drop_table('group_members')
    op.drop_table('groups')
