"""
Database initialization for Pocketbase collections.

Creates the comparison collections if they don't exist.
"""
import logging

from llm_compare.services.pocketbase import PocketbaseError, PocketbaseService
from llm_compare.services.results import RESULTS_COLLECTION, RUNS_COLLECTION

logger = logging.getLogger(__name__)

# Collections required by the application
SYSTEM_COLLECTIONS = {
    RUNS_COLLECTION: {
        "name": RUNS_COLLECTION,
        "type": "base",
        "fields": [
            {"name": "prompt", "type": "text", "required": True},
            {"name": "user_id", "type": "text", "required": False},
            {"name": "created", "type": "autodate", "onCreate": True, "onUpdate": False},
        ],
    },
    RESULTS_COLLECTION: {
        "name": RESULTS_COLLECTION,
        "type": "base",
        "fields": [
            {"name": "session_id", "type": "text", "required": True},
            {
                "name": "provider",
                "type": "select",
                "required": True,
                "maxSelect": 1,
                "values": ["openai", "google"],
            },
            {"name": "model_name", "type": "text", "required": True},
            {"name": "response_text", "type": "text", "required": False},
            {"name": "token_count", "type": "number", "required": False, "onlyInt": True},
            {"name": "cost_usd", "type": "number", "required": False},
            {"name": "response_time_ms", "type": "number", "required": False, "onlyInt": True},
            {"name": "created", "type": "autodate", "onCreate": True, "onUpdate": False},
        ],
    },
}


async def get_existing_collections(pocketbase: PocketbaseService) -> set[str]:
    """Get names of existing collections."""
    try:
        collections = await pocketbase.list_collections()
        return {col.get("name") for col in collections}
    except PocketbaseError as e:
        logger.error("Failed to list collections: %s", e.message)
        return set()


async def create_collection_if_not_exists(
    pocketbase: PocketbaseService,
    name: str,
    config: dict,
    existing: set[str],
) -> bool:
    """
    Create a collection if it doesn't exist.

    Returns True if created, False if already exists or creation failed.
    """
    if name in existing:
        logger.debug("Collection '%s' already exists", name)
        return False

    try:
        await pocketbase.create_collection(name, config["fields"])
        logger.info("Created collection: %s", name)
        return True
    except PocketbaseError as e:
        logger.error("Failed to create collection '%s': %s", name, e.message)
        return False


async def init_database(pocketbase: PocketbaseService) -> tuple[int, int]:
    """
    Initialize all required database collections.

    Returns tuple of (created_count, existing_count).
    """
    logger.info("Initializing database collections...")

    existing = await get_existing_collections(pocketbase)
    created = 0
    skipped = 0

    for name, config in SYSTEM_COLLECTIONS.items():
        if await create_collection_if_not_exists(pocketbase, name, config, existing):
            created += 1
        else:
            skipped += 1

    logger.info(
        "Database initialization complete: %d created, %d already existed",
        created,
        skipped,
    )
    return created, skipped
