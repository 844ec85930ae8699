import sys
import os
import asyncio

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, async_session_maker, engine
import models  # noqa: F401
from models.user import User
from services.crypto import hash_password
from services.storage import find_caller_by_email


async def main():
    email = os.environ.get("SEED_EMAIL", "").strip().lower()
    password = os.environ.get("SEED_PASSWORD", "")
    name = os.environ.get("SEED_NAME", "").strip() or None

    if not email or not password:
        print("Usage: SEED_EMAIL=<email> SEED_PASSWORD=<password> [SEED_NAME=<name>] python scripts/seed_user.py")
        sys.exit(1)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as db:
        existing = await find_caller_by_email(email, db)
        if existing:
            print(f"ℹ️ User {email} already exists (id={existing.id}); nothing to do.")
            return

        user = User(email=email, name=name, password_hash=hash_password(password))
        db.add(user)
        await db.commit()
        print(f"✅ Created user {email} (id={user.id})")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
