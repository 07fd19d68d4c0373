"""create_checkin_items

Revision ID: c4e1a7d2b901
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "c4e1a7d2b901"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "checkin_items",
        sa.Column("pk", sa.String(), nullable=False),
        sa.Column("sk", sa.String(), nullable=False),
        sa.Column("t", sa.String(), nullable=False),
        sa.Column("gsi1pk", sa.String(), nullable=True),
        sa.Column("gsi1sk", sa.String(), nullable=True),
        sa.Column("gsi2pk", sa.String(), nullable=True),
        sa.Column("gsi2sk", sa.String(), nullable=True),
        sa.Column("gsi3pk", sa.String(), nullable=True),
        sa.Column("gsi3sk", sa.String(), nullable=True),
        sa.Column(
            "attrs",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("pk", "sk"),
    )
    op.create_index("ix_checkin_items_t", "checkin_items", ["t"])
    op.create_index("ix_checkin_items_gsi1", "checkin_items", ["gsi1pk", "gsi1sk"])
    op.create_index("ix_checkin_items_gsi2", "checkin_items", ["gsi2pk", "gsi2sk"])
    op.create_index("ix_checkin_items_gsi3", "checkin_items", ["gsi3pk", "gsi3sk"])


def downgrade() -> None:
    op.drop_index("ix_checkin_items_gsi3", table_name="checkin_items")
    op.drop_index("ix_checkin_items_gsi2", table_name="checkin_items")
    op.drop_index("ix_checkin_items_gsi1", table_name="checkin_items")
    op.drop_index("ix_checkin_items_t", table_name="checkin_items")
    op.drop_table("checkin_items")
