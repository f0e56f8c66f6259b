"""Create a user in the database, e.g. for smoke testing.

Usage:
    python -m scripts.create_user --username alice --password Secret123!
"""

import argparse
import asyncio

from chat_gateway.core.database import Base, async_session_factory, engine
from chat_gateway.core.security import hash_password
from chat_gateway.repositories.user_repo import UserRepository


async def create_user(username: str, password: str) -> None:
    """Create a user if the username is not taken yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        repo = UserRepository(session)
        existing = await repo.find_by_username(username)
        if existing:
            print(f"User '{username}' already exists (id={existing.id}).")
        else:
            user = await repo.create(
                username=username,
                hashed_password=await hash_password(password),
            )
            await session.commit()
            print(f"User created: {username} (id={user.id})")

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a chat user")
    parser.add_argument("--username", required=True, help="Login name")
    parser.add_argument("--password", required=True, help="Password")
    args = parser.parse_args()

    asyncio.run(create_user(args.username.strip().lower(), args.password))


if __name__ == "__main__":
    main()
