"""
WeatherCrops API - User Service (Registration & Listing)
=========================================================

What:  Validates registration input, enforces email uniqueness, stores users
       with hashed passwords, and lists users for the admin/debug view.
How:   Stateless service; each call receives the request's AsyncSession.
Who:   Called by the /register, /test_register and /users route handlers.

Registration Flow (POST /register):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │ Validate │───▶│  Duplicate  │───▶│ Hash password│───▶│  Insert  │
    │  fields  │    │   check     │    │  (bcrypt)    │    │ + commit │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────┘
        400              409                                   409 / 500

    The first failing step decides the response. No retries.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from weathercrops_api.config import settings
from weathercrops_api.exceptions import ConflictError, DatabaseError, ValidationError
from weathercrops_api.models.user import FIREBASE_UID_MAX_LENGTH, User
from weathercrops_api.schemas.user import (
    RegisterRequest,
    UserListItem,
    UserListResponse,
)
from weathercrops_api.security import hash_password

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic layer for user operations.

    Responsibilities:
        - validate_registration(): Field presence, email format, password length
        - register(): Duplicate check, hashing and insert
        - list_users(): All users, newest first, without password hashes

    Error Handling Strategy:
        Input problems raise ValidationError (400). Duplicate emails raise
        ConflictError (409), whether found by the lookup or by the unique
        index on insert. Other storage failures are wrapped in DatabaseError
        (500) with the driver error kept in the context for logging.
    """

    def validate_registration(
        self, payload: RegisterRequest
    ) -> Tuple[str, str, Optional[str]]:
        """
        Apply the registration field rules in order.

        Returns:
            (email, password, firebase_uid) normalized for storage: email and
            firebase_uid trimmed, an empty firebase_uid becomes None, the
            password untouched.

        Raises:
            ValidationError: On the first rule that fails.
        """
        if payload.email is None or payload.password is None:
            raise ValidationError(message="Email and password are required")

        email = payload.email.strip()
        password = payload.password

        try:
            # test_environment admits *.test; other special-use names stay rejected
            validate_email(email, check_deliverability=False, test_environment=True)
        except EmailNotValidError as e:
            raise ValidationError(
                message="Invalid email format",
                field="email",
                context={"reason": str(e)},
            )

        # Byte length, matching what bcrypt actually consumes
        if len(password.encode("utf-8")) < settings.password_min_length:
            raise ValidationError(
                message=f"Password must be at least {settings.password_min_length} characters",
                field="password",
            )

        # bcrypt cannot hash NUL bytes
        if "\x00" in password:
            raise ValidationError(
                message="Password contains invalid characters",
                field="password",
            )

        firebase_uid = payload.firebase_uid.strip() if payload.firebase_uid else None
        if firebase_uid and len(firebase_uid) > FIREBASE_UID_MAX_LENGTH:
            raise ValidationError(
                message=f"Firebase UID must be at most {FIREBASE_UID_MAX_LENGTH} characters",
                field="firebase_uid",
            )
        return email, password, firebase_uid or None

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> User:
        """
        Register a new user.

        Args:
            db: Async database session (injected by FastAPI)
            payload: Raw registration fields

        Returns:
            The committed User (id and created_at populated)

        Raises:
            ValidationError: Missing/invalid fields
            ConflictError: Email already registered
            DatabaseError: Lookup or insert failed
        """
        email, password, firebase_uid = self.validate_registration(payload)
        logger.info("Registration attempt for %s", email)

        try:
            result = await db.execute(select(User.id).where(User.email == email))
            if result.scalar_one_or_none() is not None:
                raise ConflictError(
                    message="Email already registered",
                    context={"email": email},
                )

            # bcrypt is CPU-bound; keep it off the event loop
            try:
                hashed = await run_in_threadpool(hash_password, password)
            except ValueError as e:
                # Backend rejected the password (e.g. characters bcrypt refuses)
                raise ValidationError(
                    message="Password contains invalid characters",
                    field="password",
                    context={"reason": str(e)},
                )

            user = User(
                email=email,
                password=hashed,
                firebase_uid=firebase_uid,
                created_at=datetime.now(timezone.utc),
            )
            db.add(user)
            await db.flush()  # Assigns the autoincrement id
            await db.commit()

        except IntegrityError as e:
            # A concurrent registration won the race past the lookup
            await db.rollback()
            logger.warning("Unique constraint rejected %s: %s", email, e.orig)
            raise ConflictError(
                message="Email already registered",
                context={"email": email},
            )
        except (SQLAlchemyError, OSError) as e:
            logger.error("Registration failed for %s: %s", email, str(e), exc_info=True)
            raise DatabaseError(
                message="Registration failed. Please try again later.",
                context={"email": email, "error_type": type(e).__name__},
            )

        logger.info("User registered successfully: id=%s email=%s", user.id, email)
        return user

    async def list_users(self, db: AsyncSession) -> UserListResponse:
        """
        List every user, newest registration first.

        Query plan:
            SELECT id, email, firebase_uid, created_at FROM users
            ORDER BY created_at DESC, id DESC
            → the password column is never read

        Raises:
            DatabaseError: Query execution failed (→ 500)
        """
        try:
            result = await db.execute(
                select(User.id, User.email, User.firebase_uid, User.created_at)
                .order_by(desc(User.created_at), desc(User.id))
            )
            rows = result.all()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database error listing users: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve users. Please try again later.",
                context={"error_type": type(e).__name__},
            )

        users = [UserListItem.model_validate(row) for row in rows]
        return UserListResponse(count=len(users), users=users)


user_service = UserService()
