"""
WeatherCrops API - User SQLAlchemy Model
=========================================

What:  ORM model representing the `users` table.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by UserService and DiagnosticsService, and by Alembic.
When:  Instantiated on registration; queried by the listing and diagnostics.

Table Design:
    - id: Integer autoincrement; returned to the client as `user_id`
    - email: Unique index backs up the pre-insert existence check
    - password: bcrypt hash only; never selected by the listing query
    - firebase_uid: Opaque external identity reference, nullable
    - created_at: Stamped by the service at registration time (UTC)
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from weathercrops_api.database import Base

# Column width of users.firebase_uid (also enforced on registration)
FIREBASE_UID_MAX_LENGTH = 128


class User(Base):
    """
    Represents a registered application user.

    Lifecycle:
        Created only through registration. Never updated or deleted here.

    Query Patterns:
        - Duplicate check: SELECT id FROM users WHERE email = :email
          → Uses the unique index on email
        - Listing: SELECT id, email, firebase_uid, created_at
          FROM users ORDER BY created_at DESC
          → Uses idx_users_created_at
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Server-generated user identifier",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Login email, unique across users",
    )

    # bcrypt hashes are 60 characters; 255 leaves room for other schemes
    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="One-way password hash",
    )

    firebase_uid: Mapped[Optional[str]] = mapped_column(
        String(FIREBASE_UID_MAX_LENGTH),
        nullable=True,
        default=None,
        comment="Optional Firebase identity reference (not validated)",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this user registered (UTC)",
    )

    __table_args__ = (
        Index("idx_users_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        # Never include the password hash
        return f"<User(id={self.id}, email='{self.email}', created_at='{self.created_at}')>"
