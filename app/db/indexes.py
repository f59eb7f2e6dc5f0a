"""
app/db/indexes.py

Purpose: Database index management

- Creates unique and performance indexes
- 2dsphere index required by the nearby-farmer $geoNear query
- Supports the offer reservation filter and sort
"""

from pymongo import ASCENDING, GEOSPHERE

from app.db.mongo import (
    get_users_collection,
    get_products_collection,
    get_offers_collection
)
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        products = get_products_collection()
        offers = get_offers_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # USERS COLLECTION INDEXES
        # ==============================================

        await users.create_index("user_id", unique=True, name="user_id_unique")
        logger.debug("Created unique index on users.user_id")

        # $geoNear needs exactly one geospatial index on the collection
        await users.create_index([("location", GEOSPHERE)], name="user_loc_2dsphere")
        logger.debug("Created 2dsphere index on users.location")

        # ==============================================
        # PRODUCTS COLLECTION INDEXES
        # ==============================================

        await products.create_index("name", unique=True, name="product_name_unique")
        logger.debug("Created unique index on products.name")

        # ==============================================
        # OFFERS COLLECTION INDEXES
        # ==============================================

        await offers.create_index(
            [("product", ASCENDING), ("quantity_kind", ASCENDING), ("normalized_price", ASCENDING)],
            name="offer_match_idx"
        )
        logger.debug("Created compound index on offers.product + quantity_kind + normalized_price")

        await offers.create_index("seller", name="offer_seller_idx")
        logger.debug("Created index on offers.seller")

        logger.info("✅ All database indexes created successfully")

        user_indexes = await users.index_information()
        product_indexes = await products.index_information()
        offer_indexes = await offers.index_information()

        logger.info(
            f"Index summary: Users={len(user_indexes)}, "
            f"Products={len(product_indexes)}, "
            f"Offers={len(offer_indexes)}"
        )

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise
