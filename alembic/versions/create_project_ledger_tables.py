"""create_project_ledger_tables

Revision ID: create_project_ledger
Revises: 
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'create_project_ledger'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create projects, payment history and module assignment tables."""

    # ==================== projects ====================
    op.create_table(
        'projects',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('dealing_personal', sa.String(255), nullable=True),
        sa.Column('proposal_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('advance_payment', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('paid_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('balance_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('loan_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('project_type', sa.String(20), nullable=True),
        sa.Column('payment_mode', sa.String(20), nullable=True),
        sa.Column('status', sa.String(50), nullable=True, server_default='active'),
        sa.Column('current_stage', sa.String(100), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('kwh', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('created_at', postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint('proposal_amount >= 0', name='check_project_proposal_amount'),
        sa.CheckConstraint('advance_payment >= 0', name='check_project_advance_payment'),
        sa.CheckConstraint('loan_amount >= 0', name='check_project_loan_amount'),
        sa.CheckConstraint('kwh >= 0', name='check_project_kwh'),
    )
    op.create_index('ix_projects_id', 'projects', ['id'])
    op.create_index('ix_projects_customer_name', 'projects', ['customer_name'])

    # ==================== payment_history ====================
    op.create_table(
        'payment_history',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('project_id', sa.BigInteger(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('payment_mode', sa.String(20), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('is_advance', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', postgresql.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint('amount > 0', name='check_payment_amount_positive'),
        sa.CheckConstraint(
            "payment_mode IN ('Cash', 'UPI', 'Cheque', 'Subsidy')",
            name='check_payment_mode',
        ),
    )
    op.create_index('ix_payment_history_id', 'payment_history', ['id'])
    op.create_index('ix_payment_history_project_id', 'payment_history', ['project_id'])

    # ==================== modules / inverters ====================
    op.create_table(
        'modules',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('watt', sa.Integer(), nullable=False),
    )
    op.create_index('ix_modules_id', 'modules', ['id'])

    op.create_table(
        'inverters',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
    )
    op.create_index('ix_inverters_id', 'inverters', ['id'])

    op.create_table(
        'customer_module_assignments',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('module_id', sa.BigInteger(), sa.ForeignKey('modules.id'), nullable=True),
        sa.Column('inverter_id', sa.BigInteger(), sa.ForeignKey('inverters.id'), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_customer_module_assignments_id', 'customer_module_assignments', ['id'])
    op.create_index(
        'ix_customer_module_assignments_customer_name',
        'customer_module_assignments',
        ['customer_name'],
    )


def downgrade() -> None:
    """Drop the tables in reverse dependency order."""
    op.drop_table('customer_module_assignments')
    op.drop_table('inverters')
    op.drop_table('modules')
    op.drop_table('payment_history')
    op.drop_table('projects')
