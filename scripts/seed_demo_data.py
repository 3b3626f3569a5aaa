"""
Seed script to populate the database with demo gym partners.
Run with: python scripts/seed_demo_data.py

Creates accounts with profiles, then has some of them like each other so
the demo starts with a few matches and chats.
"""

import asyncio
import random
import sys
from pathlib import Path

# Add parent directory to path so we can import gymbuddy
sys.path.insert(0, str(Path(__file__).parent.parent))

from faker import Faker
from sqlalchemy import func, select

from gymbuddy.database import async_session_maker
from gymbuddy.models.account import Account
from gymbuddy.schemas.account import AccountCreate
from gymbuddy.schemas.profile import ProfileCreate
from gymbuddy.services import account_service, like_service, message_service, profile_service
from gymbuddy.services.context import SessionContext
from gymbuddy.store import SqlDirectoryStore

fake = Faker()

# Configuration
NUM_USERS = 30
NUM_MUTUAL_PAIRS = 8
NUM_ONE_SIDED_LIKES = 20
DEMO_DOMAIN = "demo.gymbuddy.app"
DEMO_PASSWORD = "Demo1234!"

GYMS = ["Iron Temple", "Pulse Fitness", "Downtown Barbell", "Peak Performance", "Core Club"]
WORKOUTS = ["Strength", "Cardio", "CrossFit", "Yoga", "Powerlifting", "HIIT", "Calisthenics"]
TIMINGS = ["Early morning", "Morning", "Lunch break", "Evening", "Late night"]
OPENERS = [
    "Hey! Want to train together this week?",
    "Saw you go to {gym} too. Leg day?",
    "What's your current split?",
]


async def seed_accounts(db) -> list[Account]:
    print(f"Creating {NUM_USERS} demo accounts...")
    accounts = []
    for i in range(NUM_USERS):
        account = await account_service.create_account(
            db, AccountCreate(email=f"user{i + 1}@{DEMO_DOMAIN}", password=DEMO_PASSWORD)
        )
        accounts.append(account)
    return accounts


async def seed_profiles(store: SqlDirectoryStore, accounts: list[Account]) -> None:
    print("Creating profiles...")
    for account in accounts:
        async with SessionContext(store, account.id) as ctx:
            await profile_service.create_profile(
                ctx,
                ProfileCreate(
                    name=fake.first_name(),
                    gym_name=random.choice(GYMS),
                    workout_type=random.choice(WORKOUTS),
                    timing=random.choice(TIMINGS),
                ),
                email=account.email,
            )


async def seed_likes(store: SqlDirectoryStore, accounts: list[Account]) -> tuple[int, int]:
    print("Creating likes, matches and chats...")
    ids = [a.id for a in accounts]
    matches = 0

    pairs = set()
    while len(pairs) < NUM_MUTUAL_PAIRS:
        pairs.add(tuple(sorted(random.sample(ids, 2))))

    for a, b in pairs:
        async with SessionContext(store, a) as ctx:
            await like_service.like_user(ctx, b)
        async with SessionContext(store, b) as ctx:
            result = await like_service.like_user(ctx, a)
            if result.matched:
                matches += 1
                text = random.choice(OPENERS).format(gym=random.choice(GYMS))
                await message_service.send_to(ctx, a, text)

    one_sided = 0
    for _ in range(NUM_ONE_SIDED_LIKES):
        a, b = random.sample(ids, 2)
        if tuple(sorted((a, b))) in pairs:
            continue
        async with SessionContext(store, a) as ctx:
            await like_service.record_like(ctx, a, b)
        one_sided += 1

    return matches, one_sided


async def main():
    print("=" * 50)
    print("Seeding demo data for GymBuddy")
    print("=" * 50)

    store = SqlDirectoryStore(async_session_maker)

    async with async_session_maker() as db:
        count_result = await db.execute(
            select(func.count(Account.id)).where(Account.email.like(f"%@{DEMO_DOMAIN}"))
        )
        existing_count = count_result.scalar() or 0

        if existing_count > 0:
            print(f"\nFound {existing_count} existing demo accounts. Nothing to do.")
            return

        accounts = await seed_accounts(db)

    await seed_profiles(store, accounts)
    matches, one_sided = await seed_likes(store, accounts)
    await store.close()

    print("\n" + "=" * 50)
    print("Summary:")
    print("=" * 50)
    print(f"  Accounts created: {len(accounts)}")
    print(f"  Matches created: {matches}")
    print(f"  One-sided likes: {one_sided}")
    print("\nDemo login:")
    print(f"  Email: user1@{DEMO_DOMAIN}")
    print(f"  Password: {DEMO_PASSWORD}")
    print("=" * 50)


if __name__ == "__main__":
    asyncio.run(main())
