from datetime import datetime
from typing import Any, Dict, List

import structlog
from bson import ObjectId
from bson.decimal128 import Decimal128
from bson.errors import BSONError
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.config import Settings
from app.errors import DatabaseError
from app.schemas.post import UploadRecord

logger = structlog.get_logger()


def create_mongo_client(settings: Settings) -> MongoClient:
    """Build the process-wide client; pymongo connects lazily and pools internally."""
    return MongoClient(settings.mongodb_conn_uri, tz_aware=True)


def to_json_safe(value: Any) -> Any:
    """Render BSON values as plain JSON types; datetimes are left for FastAPI."""
    if isinstance(value, dict):
        return {str(key): to_json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(item) for item in value]
    if isinstance(value, (ObjectId, Decimal128)):
        return str(value)
    if value is None or isinstance(value, (str, bool, int, float, datetime)):
        return value
    return str(value)


class MongoService:
    def __init__(self, settings: Settings, client: MongoClient):
        self.client = client
        self.db_name = settings.mongodb_db_name
        self.collection_name = settings.collection_name

    def connect(self) -> Collection:
        """
        Check the server is reachable and return the records collection.

        Raises:
            DatabaseError: If the server cannot be reached
        """
        try:
            self.client.admin.command("ping")
        except PyMongoError as e:
            logger.error(
                "Failed to connect to MongoDB",
                error=str(e),
                database=self.db_name,
                collection=self.collection_name
            )
            raise DatabaseError("Failed to connect to database") from e
        return self.client[self.db_name][self.collection_name]

    def insert(self, record: UploadRecord) -> None:
        """
        Insert one upload record verbatim.

        Raises:
            DatabaseError: If the connection or the insert fails
        """
        collection = self.connect()
        try:
            result = collection.insert_one(record.to_document())
        except PyMongoError as e:
            logger.error(
                "Failed to save record to MongoDB",
                error=str(e),
                picture_url=record.pictureUrl
            )
            raise DatabaseError("Failed to save data") from e

        logger.info("Saved record to MongoDB", record_id=str(result.inserted_id))

    def find_all(self) -> List[Dict[str, Any]]:
        """
        Return every document in the collection, in the store's natural order.

        Documents are returned as stored, with `_id` renamed to `id` and BSON
        types rendered as strings.

        Raises:
            DatabaseError: If the connection, query or decoding fails
        """
        collection = self.connect()
        try:
            documents = list(collection.find({}))
        except (PyMongoError, BSONError) as e:
            logger.error("Failed to fetch records from MongoDB", error=str(e))
            raise DatabaseError("Failed to fetch data") from e

        records = []
        for document in documents:
            if "_id" in document:
                document["id"] = document.pop("_id")
            records.append(to_json_safe(document))

        logger.info("Fetched records from MongoDB", count=len(records))
        return records
