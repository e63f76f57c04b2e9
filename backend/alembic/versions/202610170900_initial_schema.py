from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610170900_initial"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, server_default=''),
        sa.Column('email', sa.String(), unique=True, index=True),
        sa.Column('hashed_password', sa.String()),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='Member'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.text('1')),
    )

    op.create_table(
        'documents',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('file_name', sa.String(), index=True),
        sa.Column('file_path', sa.String(), nullable=False),
        sa.Column('file_type', sa.String()),
        sa.Column('size', sa.Integer()),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id'), index=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'links',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('document_id', sa.String(length=36), sa.ForeignKey('documents.id'), nullable=False, index=True),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id')),
        sa.Column('link_url', sa.String(), nullable=False),
        sa.Column('friendly_name', sa.String(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('password', sa.String(), nullable=True),
        sa.Column('expiration_time', sa.DateTime(), nullable=True),
        sa.Column('required_user_details_option', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'link_visitors',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('link_id', sa.String(length=36), sa.ForeignKey('links.id'), nullable=False, index=True),
        sa.Column('first_name', sa.String(), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(), nullable=False, server_default=''),
        sa.Column('email', sa.String(), nullable=True, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

def downgrade() -> None:
    op.drop_table('link_visitors')
    op.drop_table('links')
    op.drop_table('documents')
    op.drop_table('users')
