"""
Database initialization script

Run once to create collections and indexes:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

from app.core.logging import setup_logging, get_logger
from app.db.mongo import connect_to_mongo, close_mongo_connection, get_database
from app.db.indexes import create_indexes

setup_logging()
logger = get_logger("scripts.init_db")


async def main():
    """Main initialization"""
    logger.info("=" * 60)
    logger.info("  Chat4Bread Database Setup")
    logger.info("=" * 60)

    await connect_to_mongo()

    try:
        await create_indexes()

        db = get_database()
        stats = {
            name: await db[name].count_documents({})
            for name in ("users", "products", "offers")
        }

        logger.info("📊 Current documents:")
        for name, count in stats.items():
            logger.info(f"  {name}: {count}")

        logger.info("✅ Database initialization complete!")

    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    asyncio.run(main())
