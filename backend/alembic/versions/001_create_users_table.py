"""Create users table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `users` table backing registration and listing.
How:   Portable column types only (runs on PostgreSQL, MySQL and SQLite).

Rollback: downgrade() drops the table entirely (all users lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the users table with its unique email and created_at indexes."""
    op.create_table(
        "users",

        sa.Column(
            "id",
            sa.Integer(),
            autoincrement=True,
            nullable=False,
            comment="Server-generated user identifier",
        ),

        sa.Column(
            "email",
            sa.String(255),
            nullable=False,
            comment="Login email, unique across users",
        ),

        # bcrypt hash, never the plaintext
        sa.Column(
            "password",
            sa.String(255),
            nullable=False,
            comment="One-way password hash",
        ),

        sa.Column(
            "firebase_uid",
            sa.String(128),
            nullable=True,
            comment="Optional Firebase identity reference (not validated)",
        ),

        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this user registered (UTC)",
        ),

        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # Listing is always newest first
    op.create_index(
        "idx_users_created_at",
        "users",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    """Drop the users table entirely (destructive)."""
    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_table("users")
