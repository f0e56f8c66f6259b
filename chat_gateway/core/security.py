"""Password hashing utilities using bcrypt."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import bcrypt

BCRYPT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes and recent releases reject longer input.
BCRYPT_MAX_BYTES = 72

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="bcrypt")


def _encode(password: str) -> bytes:
    return password.encode()[:BCRYPT_MAX_BYTES]


DUMMY_HASH = bcrypt.hashpw(b"dummy", bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode()


async def hash_password(password: str) -> str:
    """Hash a password using bcrypt off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        _executor,
        lambda: bcrypt.hashpw(
            _encode(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        ).decode(),
    )


async def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash; malformed hashes never match."""
    loop = asyncio.get_running_loop()

    def _check() -> bool:
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode())
        except ValueError:
            return False

    return await loop.run_in_executor(_executor, _check)
