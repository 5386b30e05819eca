"""
WeatherCrops API - User Service Unit Tests
===========================================

What:  Tests for UserService registration rules, storage errors and listing.
How:   Uses mock DB sessions (no real database); bcrypt is patched out except
       where the stored hash itself is under test.

What we test:
    ✅ Field rules fire in order with their exact messages
    ✅ Duplicate email → ConflictError (lookup and unique index)
    ✅ Storage failure → DatabaseError with a generic message
    ✅ Stored password is a verifiable bcrypt hash, never the plaintext
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from weathercrops_api.exceptions import ConflictError, DatabaseError, ValidationError
from weathercrops_api.schemas.user import RegisterRequest
from weathercrops_api.security import pwd_context
from weathercrops_api.services.user_service import UserService


def _assign_id(user_id):
    """side_effect for session.add() that mimics the database assigning an id."""
    def add(user):
        user.id = user_id
    return add


class TestRegistrationRules:
    """Tests for validate_registration(); no database involved."""

    def setup_method(self):
        self.service = UserService()

    def test_missing_email(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_registration(RegisterRequest(password="longenough"))
        assert exc_info.value.message == "Email and password are required"

    def test_missing_password(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_registration(RegisterRequest(email="a@farm.org"))
        assert exc_info.value.message == "Email and password are required"

    def test_presence_checked_before_format(self):
        """A bad email with no password still reports the missing field."""
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_registration(RegisterRequest(email="not-an-email"))
        assert exc_info.value.message == "Email and password are required"

    def test_invalid_email(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_registration(
                RegisterRequest(email="not-an-email", password="longenough")
            )
        assert exc_info.value.message == "Invalid email format"
        assert exc_info.value.field == "email"

    def test_format_checked_before_length(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_registration(
                RegisterRequest(email="bad@", password="short")
            )
        assert exc_info.value.message == "Invalid email format"

    def test_password_seven_characters_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_registration(
                RegisterRequest(email="a@farm.org", password="1234567")
            )
        assert exc_info.value.message == "Password must be at least 8 characters"
        assert exc_info.value.field == "password"

    def test_password_eight_characters_accepted(self):
        email, password, firebase_uid = self.service.validate_registration(
            RegisterRequest(email="a@farm.org", password="12345678")
        )
        assert email == "a@farm.org"
        assert password == "12345678"
        assert firebase_uid is None

    def test_email_and_firebase_uid_trimmed(self):
        email, password, firebase_uid = self.service.validate_registration(
            RegisterRequest(email="  a@farm.org ", password=" pass word ", firebase_uid=" uid-1 ")
        )
        assert email == "a@farm.org"
        assert password == " pass word "  # Passwords are never altered
        assert firebase_uid == "uid-1"

    def test_blank_firebase_uid_becomes_none(self):
        _, _, firebase_uid = self.service.validate_registration(
            RegisterRequest(email="a@farm.org", password="12345678", firebase_uid="   ")
        )
        assert firebase_uid is None

    def test_password_with_nul_byte_rejected(self):
        """bcrypt refuses NUL bytes, so this is reported as bad input."""
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_registration(
                RegisterRequest(email="a@farm.org", password="abcdefgh\x00x")
            )
        assert exc_info.value.message == "Password contains invalid characters"
        assert exc_info.value.field == "password"

    def test_firebase_uid_at_column_width_accepted(self):
        _, _, firebase_uid = self.service.validate_registration(
            RegisterRequest(email="a@farm.org", password="12345678", firebase_uid="u" * 128)
        )
        assert firebase_uid == "u" * 128

    def test_firebase_uid_too_long_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_registration(
                RegisterRequest(email="a@farm.org", password="12345678", firebase_uid="u" * 129)
            )
        assert exc_info.value.message == "Firebase UID must be at most 128 characters"
        assert exc_info.value.field == "firebase_uid"

    @pytest.mark.parametrize(
        "email",
        ["grower@farm.test", "grower@example.com", "grower@sub.farm.org"],
    )
    def test_email_domains_accepted(self, email):
        accepted, _, _ = self.service.validate_registration(
            RegisterRequest(email=email, password="12345678")
        )
        assert accepted == email

    @pytest.mark.parametrize(
        "email",
        ["grower@corp.local", "grower@localhost", "grower@farm.invalid"],
    )
    def test_special_use_domains_rejected(self, email):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_registration(
                RegisterRequest(email=email, password="12345678")
            )
        assert exc_info.value.message == "Invalid email format"


class TestRegister:
    """Tests for the register() workflow."""

    def setup_method(self):
        self.service = UserService()
        self.payload = RegisterRequest(email="grower@farm.org", password="Test1234!")

    @pytest.mark.asyncio
    async def test_register_success(self, mock_db_session):
        mock_db_session.add = MagicMock(side_effect=_assign_id(42))

        with patch(
            "weathercrops_api.services.user_service.hash_password",
            return_value="$2b$12$hashed",
        ) as mock_hash:
            user = await self.service.register(db=mock_db_session, payload=self.payload)

        assert user.id == 42
        assert user.email == "grower@farm.org"
        assert user.password == "$2b$12$hashed"
        assert user.created_at.tzinfo is not None
        mock_hash.assert_called_once_with("Test1234!")
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_register_stores_bcrypt_hash(self, mock_db_session):
        user = await self.service.register(db=mock_db_session, payload=self.payload)

        assert user.password != "Test1234!"
        assert user.password.startswith("$2")
        assert pwd_context.verify("Test1234!", user.password)

    @pytest.mark.asyncio
    async def test_duplicate_email_found_by_lookup(self, mock_db_session):
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = 7

        with pytest.raises(ConflictError) as exc_info:
            await self.service.register(db=mock_db_session, payload=self.payload)

        assert exc_info.value.message == "Email already registered"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected_by_unique_index(self, mock_db_session):
        """Two concurrent registrations: the loser hits the constraint."""
        mock_db_session.flush = AsyncMock(
            side_effect=IntegrityError("INSERT INTO users", {}, Exception("UNIQUE"))
        )

        with patch(
            "weathercrops_api.services.user_service.hash_password",
            return_value="$2b$12$hashed",
        ):
            with pytest.raises(ConflictError):
                await self.service.register(db=mock_db_session, payload=self.payload)

        mock_db_session.rollback.assert_awaited_once()
        mock_db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_storage_failure_is_generic(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection refused"))
        )

        with pytest.raises(DatabaseError) as exc_info:
            await self.service.register(db=mock_db_session, payload=self.payload)

        assert exc_info.value.message == "Registration failed. Please try again later."
        assert "connection refused" not in exc_info.value.message
        assert exc_info.value.context["error_type"] == "OperationalError"

    @pytest.mark.asyncio
    async def test_password_refused_by_hasher_is_client_error(self, mock_db_session):
        with patch(
            "weathercrops_api.services.user_service.hash_password",
            side_effect=ValueError("password not accepted"),
        ):
            with pytest.raises(ValidationError) as exc_info:
                await self.service.register(db=mock_db_session, payload=self.payload)

        assert exc_info.value.message == "Password contains invalid characters"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_input_never_touches_database(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.register(
                db=mock_db_session,
                payload=RegisterRequest(email="grower@farm.org", password="short"),
            )
        mock_db_session.execute.assert_not_awaited()


class TestListUsers:
    """Tests for list_users()."""

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_list_users_maps_rows(self, mock_db_session):
        row = MagicMock(
            id=3,
            email="grower@farm.org",
            firebase_uid=None,
            created_at=datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc),
        )
        mock_db_session.execute.return_value.all.return_value = [row]

        result = await self.service.list_users(mock_db_session)

        assert result.success is True
        assert result.count == 1
        assert result.users[0].email == "grower@farm.org"
        assert result.model_dump()["users"][0]["created_at"] == "2024-01-15 12:00:00"

    @pytest.mark.asyncio
    async def test_list_users_empty(self, mock_db_session):
        mock_db_session.execute.return_value.all.return_value = []

        result = await self.service.list_users(mock_db_session)

        assert result.count == 0
        assert result.users == []

    @pytest.mark.asyncio
    async def test_list_users_database_failure(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("no such table: users"))
        )

        with pytest.raises(DatabaseError) as exc_info:
            await self.service.list_users(mock_db_session)

        assert "no such table" not in exc_info.value.message
