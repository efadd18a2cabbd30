"""initial repair desk schema

Revision ID: 0001_initial_repair_schema
Revises:
Create Date: 2025-10-01
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_repair_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('phone', sa.String(length=32)),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='RECEPTIONIST'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('locale', sa.String(length=8), nullable=False, server_default='th'),
        *_timestamps()
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('customers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=128)),
        sa.Column('address', sa.Text()),
        sa.Column('notes', sa.Text()),
        *_timestamps()
    )
    op.create_index('ix_customers_full_name', 'customers', ['full_name'])
    op.create_index('ix_customers_phone', 'customers', ['phone'])

    op.create_table('brands',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
    )
    op.create_table('miner_models',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('brand_id', sa.Integer(), sa.ForeignKey('brands.id'), nullable=False),
        sa.Column('model_name', sa.String(length=120), nullable=False),
        sa.Column('hashrate', sa.String(length=32)),
        sa.Column('power_usage', sa.String(length=32)),
        sa.Column('description', sa.Text()),
    )
    op.create_index('ix_miner_models_brand_id', 'miner_models', ['brand_id'])

    op.create_table('warranty_profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('duration_days', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('description', sa.Text()),
        sa.Column('terms', sa.Text()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
    )

    op.create_table('parts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('part_number', sa.String(length=64), nullable=False, unique=True),
        sa.Column('part_name', sa.String(length=200), nullable=False),
        sa.Column('stock_qty', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock_qty', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('description', sa.Text()),
        *_timestamps(),
        sa.CheckConstraint('stock_qty >= 0', name='ck_parts_stock_non_negative'),
    )
    op.create_index('ix_parts_part_number', 'parts', ['part_number'])
    op.create_index('ix_parts_part_name', 'parts', ['part_name'])

    op.create_table('jobs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('job_number', sa.String(length=32), nullable=False, unique=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='RECEIVED'),
        sa.Column('held_from_status', sa.String(length=32)),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('problem_description', sa.Text(), nullable=False),
        sa.Column('customer_notes', sa.Text()),
        sa.Column('serial_number', sa.String(length=128)),
        sa.Column('password', sa.String(length=128)),
        sa.Column('estimated_done_date', sa.DateTime(timezone=True)),
        sa.Column('completion_date', sa.DateTime(timezone=True)),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('miner_model_id', sa.Integer(), sa.ForeignKey('miner_models.id'), nullable=False),
        sa.Column('technician_id', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('warranty_profile_id', sa.Integer(), sa.ForeignKey('warranty_profiles.id')),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        *_timestamps(),
        sa.CheckConstraint('priority BETWEEN 0 AND 2', name='ck_jobs_priority'),
    )
    op.create_index('ix_jobs_job_number', 'jobs', ['job_number'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])
    op.create_index('ix_jobs_priority', 'jobs', ['priority'])
    op.create_index('ix_jobs_serial_number', 'jobs', ['serial_number'])
    op.create_index('ix_jobs_customer_id', 'jobs', ['customer_id'])
    op.create_index('ix_jobs_technician_id', 'jobs', ['technician_id'])

    op.create_table('repair_records',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('job_id', sa.Integer(), sa.ForeignKey('jobs.id'), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('findings', sa.Text()),
        sa.Column('actions', sa.Text()),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_repair_records_job_id', 'repair_records', ['job_id'])

    op.create_table('job_parts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('job_id', sa.Integer(), sa.ForeignKey('jobs.id'), nullable=False),
        sa.Column('part_id', sa.Integer(), sa.ForeignKey('parts.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('notes', sa.String(length=500)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('quantity >= 1', name='ck_job_parts_quantity'),
    )
    op.create_index('ix_job_parts_job_id', 'job_parts', ['job_id'])
    op.create_index('ix_job_parts_part_id', 'job_parts', ['part_id'])

    op.create_table('activity_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('job_id', sa.Integer(), sa.ForeignKey('jobs.id'), nullable=False),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_activity_logs_job_id', 'activity_logs', ['job_id'])
    op.create_index('ix_activity_logs_actor_user_id', 'activity_logs', ['actor_user_id'])
    op.create_index('ix_activity_logs_action', 'activity_logs', ['action'])


def downgrade():
    for tbl in ['activity_logs', 'job_parts', 'repair_records', 'jobs', 'parts', 'warranty_profiles', 'miner_models', 'brands', 'customers', 'users']:
        op.drop_table(tbl)
