"""
Database Seeding Script for StudySpace
Provisions the seat catalog and a few demo members
"""

import asyncio
import sys

from studyspace.core.database import async_session, db_manager, init_db
from studyspace.core.security import create_access_token
from studyspace.models.user import User, UserRole
from studyspace.services.seat_catalog import provision_seats


DEMO_USERS = [
    {
        "email": "admin@studyspace.local",
        "full_name": "Front Desk Admin",
        "phone": "+919800000001",
        "role": UserRole.ADMIN
    },
    {
        "email": "asha@example.com",
        "full_name": "Asha Verma",
        "phone": "+919800000002",
        "role": UserRole.USER
    },
    {
        "email": "rahul@example.com",
        "full_name": "Rahul Nair",
        "phone": "+919800000003",
        "role": UserRole.USER
    },
]


async def create_users(session):
    """Create demo users, skipping ones that already exist"""
    users = []
    for data in DEMO_USERS:
        user, _ = await db_manager.get_or_create(
            session,
            User,
            defaults={key: value for key, value in data.items() if key != "email"},
            email=data["email"]
        )
        users.append(user)
    print(f"[OK] {len(users)} demo users present")
    return users


async def seed_database(with_users: bool = True):
    """Main seeding function"""
    print("\n>>> Starting database seeding...")

    await init_db()

    async with async_session() as session:
        async with db_manager.transaction(session):
            created = await provision_seats(session)
            print(f"[OK] Provisioned {created} new seats")

            users = await create_users(session) if with_users else []

    print("\n[OK] Database seeding completed successfully!")
    if users:
        print("\n>> Demo access tokens:")
        for user in users:
            token = create_access_token({"sub": str(user.id), "role": user.role.value})
            print(f"  {user.email} ({user.role.value}): {token}")


if __name__ == "__main__":
    asyncio.run(seed_database(with_users="--seats-only" not in sys.argv))
