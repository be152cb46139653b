"""MongoDB Client - Connection and Collection Management"""
from typing import Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING
from pymongo.errors import ConnectionFailure

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
        )
        # Test connection
        try:
            _client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            raise
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str) -> Collection:
    """Get a collection from the database"""
    return get_database()[name]


def create_indexes(database: Optional[Database] = None) -> None:
    """Create all required indexes"""
    db = database if database is not None else get_database()
    logger.info("Creating MongoDB indexes...")
    
    # Leave requests collection
    leave_requests = db[settings.leave_requests_collection]
    leave_requests.create_index(
        [("tenant_id", ASCENDING), ("request_id", ASCENDING)], unique=True
    )
    leave_requests.create_index([("tenant_id", ASCENDING), ("status", ASCENDING)])
    leave_requests.create_index([("tenant_id", ASCENDING), ("workflow.current_step", ASCENDING)])
    leave_requests.create_index([("tenant_id", ASCENDING), ("employee_id", ASCENDING)])
    leave_requests.create_index("created_at", background=True)
    
    # Notification outbox collection
    notification_outbox = db[settings.notification_outbox_collection]
    notification_outbox.create_index("notification_id", unique=True)
    notification_outbox.create_index([("status", ASCENDING), ("created_at", ASCENDING)])
    notification_outbox.create_index("request_id")
    
    logger.info("MongoDB indexes created successfully")

