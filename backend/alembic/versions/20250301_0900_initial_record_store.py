"""create customers, cases and monthly_marketing_spend tables

Revision ID: 20250301_records
Revises:
Create Date: 2025-03-01 09:00:00

Record store read by the revenue analytics engine. Customers and cases are
maintained by the portal; marketing spend is written through the spend
ledger endpoints.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '20250301_records'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]


def upgrade() -> None:
    """Create record store tables."""
    op.create_table(
        'customers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('company_name', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            'annual_premium',
            sa.Numeric(precision=12, scale=2),
            nullable=True,
            comment='Full-year contract fee'
        ),
        sa.Column('total_contract_value', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('contract_start_date', sa.Date(), nullable=True),
        sa.Column('contract_end_date', sa.Date(), nullable=True, comment='NULL = open-ended contract'),
        sa.Column('business_type', sa.String(), nullable=True),
        sa.Column('assigned_account_manager', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_customers_is_active', 'customers', ['is_active'])
    op.create_index('ix_customers_contract_end_date', 'customers', ['contract_end_date'])
    op.create_index('ix_customers_created_at', 'customers', ['created_at'])

    op.create_table(
        'cases',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('completed_date', sa.Date(), nullable=True),
        sa.Column('pest_type', sa.String(), nullable=True),
        sa.Column('assigned_technician_id', sa.String(), nullable=True),
        sa.Column('assigned_technician_name', sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_cases_customer_id', 'cases', ['customer_id'])
    op.create_index('ix_cases_completed_date', 'cases', ['completed_date'])

    op.create_table(
        'monthly_marketing_spend',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('month', sa.Date(), nullable=False, comment='First day of the month'),
        sa.Column('spend', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_monthly_marketing_spend_month', 'monthly_marketing_spend', ['month'], unique=True)


def downgrade() -> None:
    """Drop record store tables."""
    op.drop_index('ix_monthly_marketing_spend_month', table_name='monthly_marketing_spend')
    op.drop_table('monthly_marketing_spend')

    op.drop_index('ix_cases_completed_date', table_name='cases')
    op.drop_index('ix_cases_customer_id', table_name='cases')
    op.drop_table('cases')

    op.drop_index('ix_customers_created_at', table_name='customers')
    op.drop_index('ix_customers_contract_end_date', table_name='customers')
    op.drop_index('ix_customers_is_active', table_name='customers')
    op.drop_table('customers')
