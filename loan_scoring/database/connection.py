import re
import logging
from typing import Optional

import motor.motor_asyncio
from beanie import init_beanie

from loan_scoring.core.config import settings
from loan_scoring.database.models import LoanApplication, LoanDocument, LoanAiScore
from loan_scoring.database.storage import LoanStorage, BeanieLoanStorage
from loan_scoring.database.memory_storage import InMemoryLoanStorage

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Storage selected at startup
storage: Optional[LoanStorage] = None


def _mask_mongo_uri(uri: str) -> str:
    # Never log credentials embedded in the connection string.
    m = re.match(r'(?P<prefix>mongodb(?:\+srv)?://)(?:(?P<creds>[^@]+)@)?(?P<rest>.+)', uri or "")
    if not m:
        return "mongodb://<redacted>"
    host_part = m.group('rest').split('/')[0]
    return f"{m.group('prefix')}***@{host_part}"


async def init_db() -> LoanStorage:
    global storage

    backend = (settings.STORAGE_BACKEND or "mongo").lower()
    if backend == "memory":
        logger.warning("Using in-memory storage; data is lost on restart")
        storage = InMemoryLoanStorage()
        return storage

    if backend != "mongo":
        raise RuntimeError(f"Configuration error: unknown STORAGE_BACKEND '{backend}'")

    mongodb_uri = settings.MONGODB_URI
    mongodb_db_name = settings.MONGODB_DB_NAME
    if not mongodb_uri:
        logger.error("MONGODB_URI is not set in environment variables")
        raise RuntimeError("Configuration error: MONGODB_URI is not set in environment variables")
    if not mongodb_db_name:
        logger.error("MONGODB_DB_NAME is not set in environment variables")
        raise RuntimeError("Configuration error: MONGODB_DB_NAME is not set in environment variables")

    try:
        logger.info(f"Attempting to connect to MongoDB at: {_mask_mongo_uri(mongodb_uri)}")
        client = motor.motor_asyncio.AsyncIOMotorClient(
            mongodb_uri,
            serverSelectionTimeoutMS=30000,
            connectTimeoutMS=30000,
            socketTimeoutMS=30000,
            retryWrites=True,
            w='majority'
        )

        await client.admin.command('ping')
        logger.info("Successfully connected to MongoDB!")

        database = client[mongodb_db_name]
        # Creates the unique index on loan_ai_scores.application_id
        await init_beanie(database, document_models=[LoanApplication, LoanDocument, LoanAiScore])
        logger.info("Beanie initialized successfully!")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        logger.error(f"Exception type: {type(e)}")
        raise

    storage = BeanieLoanStorage(client)
    return storage


def get_storage() -> LoanStorage:
    """Get the initialized storage instance"""
    if storage is None:
        raise RuntimeError("Storage not initialized. Call init_db() first.")
    return storage
