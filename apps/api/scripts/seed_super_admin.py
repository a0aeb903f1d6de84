"""
Seed Super Admin User

Creates the default county, the cooperative type catalogue and the initial
super admin account for the cooperative portal. Safe to run more than once.

Usage:
    cd apps/api
    SEED_ADMIN_EMAIL=admin@example.go.ke SEED_ADMIN_PASSWORD=... \
        python scripts/seed_super_admin.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from coop_portal.core.config import settings
from coop_portal.core.permissions import Role
from coop_portal.core.security import hash_password
from coop_portal.modules.cooperatives.models import CooperativeType
from coop_portal.modules.counties.models import Tenant
from coop_portal.modules.users.models import User, UserRoleGrant

COOPERATIVE_TYPES = [
    ("SACCO", "Financial", "Savings and credit cooperative"),
    ("Agricultural", "Agriculture", "Farm produce and input cooperative"),
    ("Dairy", "Agriculture", "Milk collection and marketing"),
    ("Transport", "Services", "Matatu and transport operators"),
    ("Marketing", "Trade", "Joint marketing of members' produce"),
    ("Housing", "Housing", "Housing and land cooperative"),
    ("Consumer", "Trade", "Consumer goods cooperative"),
    ("Other", "Other", None),
]


async def seed_county(db: AsyncSession) -> Tenant:
    result = await db.execute(
        select(Tenant).where(Tenant.county_code == settings.default_county_code)
    )
    county = result.scalar_one_or_none()
    if county:
        print(f"County {county.county_code} already exists: {county.name}")
        return county

    county = Tenant(
        name=os.environ.get("SEED_COUNTY_NAME", "Nairobi County"),
        county_code=settings.default_county_code,
        is_active=True,
    )
    db.add(county)
    await db.flush()
    print(f"County created: {county.name} ({county.county_code})")
    return county


async def seed_cooperative_types(db: AsyncSession) -> None:
    result = await db.execute(select(CooperativeType.name))
    existing = set(result.scalars().all())

    added = 0
    for name, category, description in COOPERATIVE_TYPES:
        if name in existing:
            continue
        db.add(CooperativeType(name=name, category=category, description=description))
        added += 1
    print(f"Cooperative types: {added} added, {len(existing)} already present")


async def seed_super_admin() -> None:
    """Create the super admin user if it doesn't exist."""
    email = os.environ.get("SEED_ADMIN_EMAIL")
    password = os.environ.get("SEED_ADMIN_PASSWORD")
    full_name = os.environ.get("SEED_ADMIN_NAME", "Portal Administrator")

    if not email or not password:
        print("Set SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD before running this script.")
        sys.exit(1)

    engine = create_async_engine(settings.database_url, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as db:
        county = await seed_county(db)
        await seed_cooperative_types(db)

        result = await db.execute(select(User).where(User.email == email))
        existing_user = result.scalar_one_or_none()

        if existing_user:
            print(f"Super admin already exists: {email}")
            print(f"  ID: {existing_user.id}")
            await db.commit()
            await engine.dispose()
            return

        admin_user = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            tenant_id=county.id,
            is_active=True,
            must_change_password=False,
        )
        db.add(admin_user)
        await db.flush()

        db.add(UserRoleGrant(user_id=admin_user.id, role=Role.SUPER_ADMIN, is_active=True))
        await db.commit()
        await db.refresh(admin_user)

        print("Super admin created successfully!")
        print(f"  Email: {email}")
        print(f"  Name: {full_name}")
        print(f"  ID: {admin_user.id}")
        print(f"  Role: {Role.SUPER_ADMIN.value}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_super_admin())
