"""create photo_nodes

Revision ID: 3f9a1c2b7d40
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from geoalchemy2 import Geometry


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2b7d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")
    op.create_table(
        'photo_nodes',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('journeyId', sa.String(length=36), nullable=False),
        sa.Column('s3Key', sa.String(length=500), nullable=True),
        sa.Column('takenAt', sa.DateTime(), nullable=True),
        sa.Column('caption', sa.Text(), nullable=True),
        sa.Column('locationName', sa.String(length=255), nullable=True),
        # geoalchemy2 adds the GIST index on location
        sa.Column('location', Geometry('POINT', srid=4326), nullable=False),
    )
    op.create_index('ix_photo_nodes_journeyId', 'photo_nodes', ['journeyId'])


def downgrade() -> None:
    op.drop_index('ix_photo_nodes_journeyId', table_name='photo_nodes')
    op.drop_table('photo_nodes')
