from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_create_walks_table'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'walks',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('number_of_rotations', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('current_rotation', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_rotation_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('checked_in_users', sa.JSON(), nullable=False),
        sa.Column('pairs', sa.JSON(), nullable=False),
        sa.Column('location_name', sa.String(), nullable=True),
        sa.Column('organizer', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_walks_active_date', 'walks', ['active', 'date'])


def downgrade():
    op.drop_index('idx_walks_active_date', table_name='walks')
    op.drop_table('walks')
