"""
Database initialization script - Udyam registration tables and form schema

Run once to create tables and seed the default form schema:
    python scripts/init_db.py

Pass --no-seed to only create tables.
"""

import asyncio
import copy
import sys
from pathlib import Path
import logging

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables before settings are read
load_dotenv()

from sqlalchemy import func, select

from app.core.config import settings
from app.db.database import build_engine, build_session_factory, create_tables
from app.models.form_schema import FormSchema
from app.models.form_submission import FormSubmission
from app.models.user import User
from app.services.form_schema_service import DEFAULT_SCHEMA, save_form_schema

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def seed_form_schema(db):
    """Stores the built-in schema unless that version is already present"""
    version = DEFAULT_SCHEMA["version"]
    existing = await db.scalar(select(FormSchema).where(FormSchema.version == version))

    if existing:
        logger.info(f"ℹ️  Form schema {version} already stored (active={existing.is_active})")
        return

    saved = await save_form_schema(db, copy.deepcopy(DEFAULT_SCHEMA), version)
    logger.info(f"  ✅ Form schema {saved['version']} stored as {saved['schema_id']}")


async def main(seed: bool = True):
    """Main initialization"""
    logger.info("=" * 60)
    logger.info("  Udyam Registration Database Setup")
    logger.info("=" * 60 + "\n")

    logger.info(f"🔌 Connecting to {settings.DATABASE_URL.split('@')[-1]}")
    engine = build_engine(settings.DATABASE_URL)

    try:
        await create_tables(engine)
        logger.info("✅ Tables created: users, form_submissions, form_schemas\n")

        async with build_session_factory(engine)() as db:
            if seed:
                logger.info("📋 Seeding form schema...")
                await seed_form_schema(db)

            stats = {
                "users": await db.scalar(select(func.count()).select_from(User)),
                "form_submissions": await db.scalar(select(func.count()).select_from(FormSubmission)),
                "form_schemas": await db.scalar(select(func.count()).select_from(FormSchema)),
            }

        logger.info("\n📊 Current rows:")
        for table, count in stats.items():
            logger.info(f"  {table}: {count}")

        logger.info("\n✅ Database initialization complete!")

    except Exception as e:
        logger.error(f"\n❌ Error: {e}")
        raise

    finally:
        await engine.dispose()

    logger.info("\n" + "=" * 60)


if __name__ == "__main__":
    asyncio.run(main(seed="--no-seed" not in sys.argv[1:]))
