"""Create data_retention schema with policies, cleanup history and outbox

Revision ID: 001
Revises:
Create Date: 2026-01-05 18:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

SCHEMA = 'data_retention'


def upgrade():
    op.execute(f'CREATE SCHEMA IF NOT EXISTS {SCHEMA}')
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.execute(f"""
        CREATE OR REPLACE FUNCTION {SCHEMA}.update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
          NEW.updated_at = NOW();
          RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    # Policy store
    op.create_table(
        'retention_policies',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('target_schema', sa.String(50), nullable=False),
        sa.Column('retention_days', sa.Integer(), server_default=sa.text('31'), nullable=False),
        sa.Column('cleanup_strategy', sa.String(20), nullable=False),
        sa.Column('enabled', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('last_cleanup_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('target_schema', name='uq_retention_policies_target_schema'),
        sa.CheckConstraint(
            "cleanup_strategy IN ('partition_drop', 'date_delete', 'blob_expire')",
            name='ck_retention_policies_cleanup_strategy',
        ),
        sa.CheckConstraint('retention_days > 0', name='ck_retention_policies_retention_days'),
        schema=SCHEMA,
    )

    op.execute(f"""
        CREATE TRIGGER update_retention_policies_updated_at
        BEFORE UPDATE ON {SCHEMA}.retention_policies
        FOR EACH ROW
        EXECUTE FUNCTION {SCHEMA}.update_updated_at_column();
    """)

    # Audit log
    op.create_table(
        'cleanup_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('policy_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('target_schema', sa.String(50), nullable=False),
        sa.Column('records_deleted', sa.BigInteger(), server_default=sa.text('0'), nullable=False),
        sa.Column('partitions_dropped', postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column('blobs_deleted', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('started_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['policy_id'], [f'{SCHEMA}.retention_policies.id'],
            name='fk_cleanup_history_policy_id', ondelete='CASCADE',
        ),
        sa.CheckConstraint(
            "status IN ('running', 'success', 'failed')",
            name='ck_cleanup_history_status',
        ),
        schema=SCHEMA,
    )

    op.create_index('ix_cleanup_history_policy_id', 'cleanup_history', ['policy_id'], schema=SCHEMA)
    op.create_index('ix_cleanup_history_target_schema', 'cleanup_history', ['target_schema'], schema=SCHEMA)
    op.create_index(
        'ix_cleanup_history_started_at_status', 'cleanup_history', ['started_at', 'status'], schema=SCHEMA
    )

    # Transactional outbox
    op.create_table(
        'outbox',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('aggregate_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('aggregate_type', sa.String(100), nullable=False),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column('payload', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('correlation_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('published_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('published', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        schema=SCHEMA,
    )

    # Serves the publisher's "oldest unpublished first" scan
    op.create_index(
        'idx_outbox_unpublished', 'outbox', ['created_at'],
        schema=SCHEMA,
        postgresql_where=sa.text('published = false'),
    )

    # Default policies
    op.execute(f"""
        INSERT INTO {SCHEMA}.retention_policies (target_schema, retention_days, cleanup_strategy, enabled)
        VALUES
          ('darwin_ingestor', 31, 'partition_drop', true),
          ('darwin_ingestor_outbox', 31, 'date_delete', true),
          ('timetable_loader', 31, 'date_delete', true),
          ('gcs_gtfs_archive', 31, 'blob_expire', true)
        ON CONFLICT (target_schema) DO NOTHING;
    """)


def downgrade():
    op.drop_index('idx_outbox_unpublished', table_name='outbox', schema=SCHEMA)
    op.drop_table('outbox', schema=SCHEMA)

    op.drop_index('ix_cleanup_history_started_at_status', table_name='cleanup_history', schema=SCHEMA)
    op.drop_index('ix_cleanup_history_target_schema', table_name='cleanup_history', schema=SCHEMA)
    op.drop_index('ix_cleanup_history_policy_id', table_name='cleanup_history', schema=SCHEMA)
    op.drop_table('cleanup_history', schema=SCHEMA)

    op.execute(f'DROP TRIGGER IF EXISTS update_retention_policies_updated_at ON {SCHEMA}.retention_policies')
    op.drop_table('retention_policies', schema=SCHEMA)
    op.execute(f'DROP FUNCTION IF EXISTS {SCHEMA}.update_updated_at_column()')

    # Schema is dropped only if empty; other objects may have been added by hand
    op.execute(f'DROP SCHEMA IF EXISTS {SCHEMA}')
