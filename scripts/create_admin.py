#!/usr/bin/env python3
"""Create the first administrator account.

Usage: python scripts/create_admin.py admin@school.edu 'S3cret!pass' [First] [Last]
"""
import asyncio
import sys

from pydantic import ValidationError
from sqlalchemy import select

from smis.core.database import AsyncSessionLocal, close_db_connections
from smis.core.security import get_password_hash
from smis.models.user import User
from smis.schemas.auth_schemas import RegisterRequest
from smis.utils.constants import UserRole


async def create_admin(email: str, password: str, first_name: str = "System", last_name: str = "Administrator"):
    try:
        data = RegisterRequest(
            first_name=first_name, last_name=last_name, email=email, password=password, role=UserRole.ADMIN
        )
    except ValidationError as e:
        for error in e.errors():
            print(f"❌ {'.'.join(str(p) for p in error['loc'])}: {error['msg']}")
        return False

    async with AsyncSessionLocal() as session:
        existing = await session.execute(select(User).where(User.email == data.email))
        if existing.scalar_one_or_none():
            print(f"❌ A user with email {email} already exists")
            return False

        admin = User(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            password_hash=get_password_hash(data.password),
            role=UserRole.ADMIN.value,
        )
        session.add(admin)
        await session.commit()
        print(f"✅ Admin {email} created with id {admin.id}")
        return True


async def main(argv):
    if len(argv) < 3:
        print(__doc__)
        return 1
    try:
        created = await create_admin(*argv[1:5])
    finally:
        await close_db_connections()
    return 0 if created else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv)))
