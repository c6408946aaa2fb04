"""add import_leads table for supplier email leads

Revision ID: add_import_leads
Revises: 
Create Date: 2025-10-02

Databases created before lead imports existed only have users, customers,
jobs and materials; startup's create_all covers fresh installs.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'add_import_leads'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    if sa.inspect(bind).has_table('import_leads'):
        return

    op.create_table(
        'import_leads',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320)),
        sa.Column('phone', sa.String(64)),
        sa.Column('street_address', sa.String(255)),
        sa.Column('city', sa.String(128)),
        sa.Column('state', sa.String(32)),
        sa.Column('zip_code', sa.String(16)),
        sa.Column('subject_line', sa.String(512)),
        sa.Column('email_body', sa.Text()),
        sa.Column('job_type', sa.String(16)),
        sa.Column('attachments', sa.JSON()),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('imported_at', sa.String(32), nullable=False),
        sa.Column('processed_at', sa.String(32)),
        sa.Column('processed_by', sa.String(64)),
        sa.Column('customer_id', sa.String(64), sa.ForeignKey('customers.id', ondelete='SET NULL')),
        sa.Column('job_id', sa.String(64), sa.ForeignKey('jobs.id', ondelete='SET NULL')),
        sa.Column('notes', sa.Text()),
    )
    # Listing filters on status
    op.create_index('idx_import_leads_status', 'import_leads', ['status'])


def downgrade() -> None:
    op.drop_index('idx_import_leads_status', table_name='import_leads')
    op.drop_table('import_leads')
