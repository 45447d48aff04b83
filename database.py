# database.py
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from config import MONGODB_URL, DATABASE_NAME

logger = logging.getLogger(__name__)


class MongoDB:
    client: Optional[AsyncIOMotorClient] = None
    is_connected: bool = False

mongodb = MongoDB()

async def get_database():
    if mongodb.client is None:
        logger.info("Connecting to MongoDB...")

        mongodb.client = AsyncIOMotorClient(
            MONGODB_URL,
            serverSelectionTimeoutMS=15000,
            connectTimeoutMS=15000,
            maxPoolSize=10,
            retryWrites=True
        )

        try:
            # Test connection
            await mongodb.client.admin.command('ping')
            mongodb.is_connected = True
            logger.info("Connected to database %s", DATABASE_NAME)
        except PyMongoError as e:
            # Keep the client; requests fail individually until the server is reachable
            mongodb.is_connected = False
            logger.error("MongoDB connection failed: %s", e)

    return mongodb.client[DATABASE_NAME]

async def close_mongo_connection():
    if mongodb.client:
        mongodb.client.close()
        mongodb.client = None
        mongodb.is_connected = False
        logger.info("MongoDB connection closed")

async def create_indexes(db):
    try:
        # User indexes
        await db.users.create_index([("email", ASCENDING)], unique=True)
        await db.users.create_index([("username", ASCENDING)], unique=True)
        await db.users.create_index([("role", ASCENDING)])

        # Assignment indexes
        await db.assignments.create_index([("assignedTo", ASCENDING)])
        await db.assignments.create_index([("deadline", ASCENDING)])
        await db.assignments.create_index([("user", ASCENDING)])
        await db.assignments.create_index([("submissions.user", ASCENDING)])
        logger.info("Database indexes created")
    except PyMongoError as e:
        logger.warning("Could not create indexes: %s", e)
