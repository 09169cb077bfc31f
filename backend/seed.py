import asyncio
import os
import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from league.db import _async_url
from league.models import Period, Player
from league.services.periods import format_period, period_key

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")
DATABASE_URL = _async_url(DATABASE_URL)

engine = create_async_engine(DATABASE_URL, echo=False, pool_pre_ping=True)
Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Weekly league nights: (weekday, hour, minute, matches per player)
DEFAULT_PERIODS = [
    (2, 17, 0, 3),
    (5, 20, 0, 3),
]

ADMIN_EMAIL = os.getenv("LEAGUE_ADMIN_EMAIL")

async def main():
    async with Session() as s:
        existing = (await s.execute(select(Period))).scalars().all()
        have = {period_key(p) for p in existing}
        for weekday, hour, minute, quota in DEFAULT_PERIODS:
            period = Period(
                id=uuid.uuid4().hex,
                weekday=weekday,
                hour=hour,
                minute=minute,
                matches_per_player=quota,
            )
            if period_key(period) not in have:
                s.add(period)
                print(f"Added period {format_period(period)}")
        await s.commit()

        if ADMIN_EMAIL:
            email = ADMIN_EMAIL.strip().lower()
            admin = (
                await s.execute(select(Player).where(Player.email == email))
            ).scalar_one_or_none()
            if admin is None:
                s.add(Player(id=uuid.uuid4().hex, email=email, is_admin=True))
            else:
                admin.is_admin = True
            await s.commit()

    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(main())
