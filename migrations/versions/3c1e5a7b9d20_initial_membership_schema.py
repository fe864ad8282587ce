"""initial membership schema

Revision ID: 3c1e5a7b9d20
Revises:
Create Date: 2026-10-16
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1e5a7b9d20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(32), nullable=False, unique=True),
    )
    op.create_table(
        'tariffs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('monthly_price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('access_allowed', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False, server_default=''),
        sa.Column('first_name', sa.String(100)),
        sa.Column('last_name', sa.String(100)),
        sa.Column('hacker_comment', sa.String(255)),
        sa.Column('bepaid_number', sa.Integer()),
        sa.Column('telegram_username', sa.String(64)),
        sa.Column('alice_greeting', sa.String(255)),
        sa.Column('github_username', sa.String(64)),
        sa.Column('ssh_public_key', sa.Text()),
        sa.Column('is_learner', sa.Boolean(), server_default=sa.false()),
        sa.Column('sign_in_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_sign_in_at', sa.DateTime()),
        sa.Column('last_sign_in_at', sa.DateTime()),
        sa.Column('last_seen_in_hackerspace', sa.DateTime()),
        sa.Column('account_suspended', sa.Boolean(), server_default=sa.false()),
        sa.Column('account_banned', sa.Boolean(), server_default=sa.false()),
        sa.Column('suspended_changed_at', sa.DateTime()),
        sa.Column('tariff_id', sa.Integer(), sa.ForeignKey('tariffs.id')),
        sa.Column('guarantor1_id', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('guarantor2_id', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('tg_auth_token', sa.String(32)),
        sa.Column('tg_auth_token_expiry', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_guarantor1_id', 'users', ['guarantor1_id'])
    op.create_index('ix_users_guarantor2_id', 'users', ['guarantor2_id'])
    op.create_index('ix_users_tg_auth_token', 'users', ['tg_auth_token'])

    op.create_table(
        'users_roles',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'nfc_keys',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('key', sa.String(64), nullable=False, unique=True),
    )
    op.create_index('ix_nfc_keys_user_id', 'nfc_keys', ['user_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('amount', sa.Numeric(12, 2)),
        sa.Column('payment_type', sa.String(32)),
        sa.Column('erip_transaction_id', sa.String(64), unique=True),
        sa.Column('raw_payload', sa.Text()),
    )
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    op.create_index('ix_payments_start_date', 'payments', ['start_date'])
    op.create_index('ix_payments_end_date', 'payments', ['end_date'])
    op.create_index('ix_payments_paid_at', 'payments', ['paid_at'])

    op.create_table(
        'telegram_subscribers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('chat_id', sa.BigInteger(), nullable=False, unique=True),
        sa.Column('username', sa.String(64)),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(255), nullable=False),
        sa.Column('table_name', sa.String(100), nullable=False),
        sa.Column('record_id', sa.Integer()),
        sa.Column('old_value', sa.Text()),
        sa.Column('new_value', sa.Text()),
        sa.Column('timestamp', sa.DateTime()),
    )
    op.create_table(
        'system_config',
        sa.Column('key', sa.String(50), primary_key=True),
        sa.Column('value', sa.String(200), nullable=False),
    )


def downgrade():
    op.drop_table('system_config')
    op.drop_table('audit_logs')
    op.drop_table('telegram_subscribers')
    op.drop_index('ix_payments_paid_at', table_name='payments')
    op.drop_index('ix_payments_end_date', table_name='payments')
    op.drop_index('ix_payments_start_date', table_name='payments')
    op.drop_index('ix_payments_user_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_nfc_keys_user_id', table_name='nfc_keys')
    op.drop_table('nfc_keys')
    op.drop_table('users_roles')
    op.drop_index('ix_users_tg_auth_token', table_name='users')
    op.drop_index('ix_users_guarantor2_id', table_name='users')
    op.drop_index('ix_users_guarantor1_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_table('tariffs')
    op.drop_table('roles')
