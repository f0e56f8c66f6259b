"""Tests for password hashing utilities."""

from chat_gateway.core.security import DUMMY_HASH, hash_password, verify_password


class TestPasswordHashing:
    """Tests for bcrypt password operations."""

    async def test_hash_and_verify(self) -> None:
        hashed = await hash_password("MyPassword123!")
        assert await verify_password("MyPassword123!", hashed) is True

    async def test_hash_is_not_plaintext(self) -> None:
        hashed = await hash_password("MyPassword123!")
        assert "MyPassword123!" not in hashed
        assert hashed.startswith("$2")

    async def test_wrong_password_fails(self) -> None:
        hashed = await hash_password("Correct1!")
        assert await verify_password("Wrong1!", hashed) is False

    async def test_dummy_hash_does_not_match_real(self) -> None:
        assert await verify_password("realpassword", DUMMY_HASH) is False

    async def test_malformed_hash_never_matches(self) -> None:
        assert await verify_password("anything", "not-a-bcrypt-hash") is False

    async def test_long_password_is_accepted(self) -> None:
        password = "A1!" + "x" * 120
        hashed = await hash_password(password)
        assert await verify_password(password, hashed) is True
