"""Create credit purchase, user profile and scan history tables

Revision ID: 20261019_0900
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_0900'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create ledger, profile and scan history tables."""

    # Credit purchases: one row per stacked batch; only credits_used changes after insert
    op.create_table(
        'credit_purchases',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('credits_total', sa.Integer(), nullable=False),
        sa.Column('credits_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('purchased_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('plan_name', sa.String(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('credits_total >= 0', name='ck_credit_purchases_total_non_negative'),
        sa.CheckConstraint(
            'credits_used >= 0 AND credits_used <= credits_total',
            name='ck_credit_purchases_used_within_total',
        ),
    )
    op.create_index('ix_credit_purchases_id', 'credit_purchases', ['id'], unique=False)
    op.create_index('ix_credit_purchases_created_at', 'credit_purchases', ['created_at'], unique=False)
    op.create_index('ix_credit_purchases_user_id', 'credit_purchases', ['user_id'], unique=False)

    # Credit purchases: user_id + expires_at (FIFO-by-expiry reads per user)
    op.create_index(
        'ix_credit_purchases_user_expires',
        'credit_purchases',
        ['user_id', 'expires_at'],
        unique=False
    )

    op.create_table(
        'user_profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('save_scan_history', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_profiles_id', 'user_profiles', ['id'], unique=False)
    op.create_index('ix_user_profiles_created_at', 'user_profiles', ['created_at'], unique=False)
    op.create_index('ix_user_profiles_user_id', 'user_profiles', ['user_id'], unique=True)

    op.create_table(
        'scan_history',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('image_path', sa.String(), nullable=False),
        sa.Column('thumbnail_path', sa.String(), nullable=True),
        sa.Column('analysis_text', sa.Text(), nullable=False),
        sa.Column('style_score', sa.Integer(), nullable=True),
        sa.Column('outfit_category', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_scan_history_id', 'scan_history', ['id'], unique=False)
    op.create_index('ix_scan_history_created_at', 'scan_history', ['created_at'], unique=False)
    op.create_index('ix_scan_history_user_id', 'scan_history', ['user_id'], unique=False)


def downgrade():
    """Drop ledger, profile and scan history tables."""

    op.drop_index('ix_scan_history_user_id', table_name='scan_history')
    op.drop_index('ix_scan_history_created_at', table_name='scan_history')
    op.drop_index('ix_scan_history_id', table_name='scan_history')
    op.drop_table('scan_history')

    op.drop_index('ix_user_profiles_user_id', table_name='user_profiles')
    op.drop_index('ix_user_profiles_created_at', table_name='user_profiles')
    op.drop_index('ix_user_profiles_id', table_name='user_profiles')
    op.drop_table('user_profiles')

    op.drop_index('ix_credit_purchases_user_expires', table_name='credit_purchases')
    op.drop_index('ix_credit_purchases_user_id', table_name='credit_purchases')
    op.drop_index('ix_credit_purchases_created_at', table_name='credit_purchases')
    op.drop_index('ix_credit_purchases_id', table_name='credit_purchases')
    op.drop_table('credit_purchases')
