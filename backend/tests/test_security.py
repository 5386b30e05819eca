"""
WeatherCrops API - Password Hashing Tests
==========================================
"""

import pytest

from weathercrops_api.security import hash_password, pwd_context


class TestHashPassword:

    def test_hash_verifies(self):
        hashed = hash_password("Test1234!")
        assert hashed != "Test1234!"
        assert pwd_context.verify("Test1234!", hashed)
        assert not pwd_context.verify("Test1234?", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("Test1234!") != hash_password("Test1234!")

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            hash_password("")
