"""billing engine schema

Revision ID: 0001_billing_engine
Revises: 
Create Date: 2024-03-01 00:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_billing_engine"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('agreements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('agreement_number', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('rent_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('daily_late_fee', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('rent_due_day', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('agreement_number')
    )
    op.create_index('ix_agreements_status', 'agreements', ['status'])

    op.create_table('payment_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('agreement_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=30), nullable=False),
        sa.Column('amount_due', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('balance', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('late_fine_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('days_overdue', sa.Integer(), nullable=False),
        sa.Column('payment_date', sa.DateTime(), nullable=True),
        sa.Column('original_due_date', sa.DateTime(), nullable=True),
        sa.Column('late_fee_period', sa.Date(), nullable=True),
        sa.Column('payment_method', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_auto_generated', sa.Boolean(), nullable=False),
        sa.Column('is_historical', sa.Boolean(), nullable=False),
        sa.Column('late_fee_record_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['agreement_id'], ['agreements.id']),
        sa.ForeignKeyConstraint(['late_fee_record_id'], ['payment_records.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('agreement_id', 'late_fee_period', name='uq_payment_records_late_fee_period')
    )
    op.create_index('ix_payment_records_agreement_id', 'payment_records', ['agreement_id'])
    op.create_index('ix_payment_records_kind', 'payment_records', ['kind'])
    op.create_index('ix_payment_records_payment_date', 'payment_records', ['payment_date'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=64), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])

def downgrade():
    op.drop_table('audit_logs')
    op.drop_table('payment_records')
    op.drop_table('agreements')
