"""
Provision the demo admin and student accounts from the command line.
"""
import asyncio

from sims.core.config import settings
from sims.core.database import AsyncSessionLocal, engine, init_db
from sims.core.logging import configure_logging
from sims.services.seeding import DemoDataSeeder


async def seed_demo_users():
    """Create tables if needed, then provision the demo accounts."""
    await init_db()

    async with AsyncSessionLocal() as session:
        try:
            results = await DemoDataSeeder(session, settings).run()
            for line in DemoDataSeeder.summary(results):
                print(line)
        finally:
            await session.close()
            await engine.dispose()


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(seed_demo_users())
