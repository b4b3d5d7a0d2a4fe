import logging
from decimal import Decimal

from bson.codec_options import CodecOptions, TypeCodec, TypeRegistry
from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from spendshare.core.config import settings

logger = logging.getLogger(__name__)


class DecimalCodec(TypeCodec):
    """Store money as Decimal128, never as a binary float."""
    python_type = Decimal
    bson_type = Decimal128

    def transform_python(self, value):
        return Decimal128(value)

    def transform_bson(self, value):
        return value.to_decimal()


CODEC_OPTIONS = CodecOptions(
    type_registry=TypeRegistry([DecimalCodec()]),
    tz_aware=True
)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client.get_database(
        settings.DATABASE_NAME,
        codec_options=CODEC_OPTIONS
    )

    await create_indexes(mongodb.db)
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
        logger.info("Disconnected from MongoDB")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    await db.users.create_index("email", unique=True)
    await db.users.create_index("username", unique=True)

    # One edge per ordered pair; the service checks the reverse direction
    await db.friendships.create_index(
        [("requester_id", ASCENDING), ("recipient_id", ASCENDING)],
        unique=True
    )
    await db.friendships.create_index([("recipient_id", ASCENDING), ("status", ASCENDING)])

    await db.groups.create_index("members")

    await db.transactions.create_index("group_id")
    await db.transactions.create_index(
        [("creditor_id", ASCENDING), ("idempotency_key", ASCENDING)],
        unique=True,
        partialFilterExpression={"idempotency_key": {"$type": "string"}}
    )

    await db.owes.create_index("transaction_id")
    await db.owes.create_index([("debtor_id", ASCENDING), ("paid", ASCENDING)])
    await db.owes.create_index([("creditor_id", ASCENDING), ("paid", ASCENDING)])

    await db.expenses.create_index([("owner_id", ASCENDING), ("created_at", DESCENDING)])
    await db.expenses.create_index([("owner_id", ASCENDING), ("category", ASCENDING)])

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
