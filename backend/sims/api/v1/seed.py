"""
Demo data provisioning endpoint. Intended to be called once during setup.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sims.core.config import settings
from sims.core.database import get_db
from sims.services.seeding import DemoDataSeeder

router = APIRouter()


@router.post("/demo-users")
async def create_demo_users(db: AsyncSession = Depends(get_db)):
    """Create the demo admin and student accounts if they do not exist."""
    results = await DemoDataSeeder(db, settings).run()
    return {"success": not results["errors"], "results": results}
