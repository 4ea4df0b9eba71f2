"""create_documents

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-19 10:12:41.118204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1c9a2b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create documents table holding every resource collection."""
    op.create_table(
        "documents",
        sa.Column("collection", sa.String(64), nullable=False),
        sa.Column("id", sa.String(24), nullable=False),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("collection", "id"),
    )
    # GIN index for JSONB search queries
    op.create_index(
        "idx_documents_data_gin",
        "documents",
        ["data"],
        unique=False,
        postgresql_using="gin",
    )


def downgrade() -> None:
    """Drop documents table."""
    op.drop_index("idx_documents_data_gin", table_name="documents")
    op.drop_table("documents")
