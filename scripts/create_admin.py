#!/usr/bin/env python3
"""
Create an admin account for the Hope-AI identity service.

Reads credentials from .env:
    ADMIN_EMAIL      — admin account email (required)
    ADMIN_PASSWORD   — admin account password (required)
    ADMIN_PHONE      — phone number, national or with country code (required)
    ADMIN_NAME       — display name (optional, defaults to "Admin")

An existing account with the same email is promoted to admin instead.

Usage:
    python -m scripts.create_admin
"""
from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

# Add backend root to path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "services" / "identity"))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "shared"))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from app.auth.phone import normalize_phone
from app.auth.service import get_user_by_email, register_user
from app.config import get_settings
from app.exceptions import UserAlreadyExists
from shared.constants import Role
from shared.database.postgres import get_async_engine, get_async_session_factory


async def main() -> None:
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    phone = os.getenv("ADMIN_PHONE")
    if not email or not password or not phone:
        print("Error: ADMIN_EMAIL, ADMIN_PASSWORD and ADMIN_PHONE must be set in .env")
        sys.exit(1)
    name = os.getenv("ADMIN_NAME", "Admin")

    settings = get_settings()
    engine = get_async_engine(settings.identity_database_url)
    session_factory = get_async_session_factory(engine)

    async with session_factory() as session:
        existing = await get_user_by_email(session, email)
        if existing is not None:
            print(f"User {email} already exists (id={existing.id}).")
            if existing.role is not Role.ADMIN:
                existing.role = Role.ADMIN
                await session.commit()
                print("  -> Promoted to admin.")
            else:
                print("  -> Already an admin. Nothing to do.")
        else:
            try:
                user = await register_user(
                    session,
                    phone_number=normalize_phone(phone, settings.default_country_code),
                    name=name,
                    email=email,
                    password=password,
                    role=Role.ADMIN,
                )
            except UserAlreadyExists:
                print(f"Error: phone number {phone} belongs to another account")
                await engine.dispose()
                sys.exit(1)
            await session.commit()
            print(f"Admin created: {email} (id={user.id})")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
