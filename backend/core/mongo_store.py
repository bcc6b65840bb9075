"""
mongo_store.py — MongoDB-backed record store.

Handles:
- Client creation with a bounded server selection timeout
- Index provisioning (class_id, learner_id, compound)
- `$jsonSchema` validator installation on the grades collection
- Mapping driver failures onto the gradebook error kinds
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from pymongo import ASCENDING, MongoClient
from pymongo.errors import BulkWriteError, PyMongoError, WriteError

from core.config import GRADES_COLLECTION, MONGO_DB, MONGO_TIMEOUT_MS, MONGO_URI
from core.errors import RecordValidationError, StorageUnavailableError
from core.records import CLASS_ID_MAX, CLASS_ID_MIN, LEARNER_ID_MIN, SCORE_TYPES, validate_records
from core.store import GradeStore

logger = logging.getLogger(__name__)

GRADES_SCHEMA = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["class_id", "learner_id"],
        "properties": {
            "class_id": {
                "bsonType": ["int", "long"],
                "minimum": CLASS_ID_MIN,
                "maximum": CLASS_ID_MAX,
                "description": f"must be an integer between {CLASS_ID_MIN} and {CLASS_ID_MAX}",
            },
            "learner_id": {
                "bsonType": ["int", "long"],
                "minimum": LEARNER_ID_MIN,
                "description": f"must be an integer >= {LEARNER_ID_MIN}",
            },
            "scores": {
                "bsonType": "array",
                "items": {
                    "bsonType": "object",
                    "required": ["type", "score"],
                    "properties": {
                        "type": {
                            "bsonType": "string",
                            "enum": list(SCORE_TYPES),
                            "description": "must be 'exam', 'quiz', or 'homework'",
                        },
                        "score": {
                            "bsonType": "number",
                            "minimum": 0,
                            "maximum": 100,
                            "description": "must be a number between 0 and 100",
                        },
                    },
                },
            },
        },
    }
}


class MongoGradeStore(GradeStore):
    """Score records kept in a MongoDB collection."""

    name = "mongo"

    def __init__(
        self,
        uri: str = MONGO_URI,
        database: str = MONGO_DB,
        collection: str = GRADES_COLLECTION,
        timeout_ms: int = MONGO_TIMEOUT_MS,
        client: Optional[MongoClient] = None,
    ):
        self.client = client or MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)
        self.db = self.client[database]
        self.collection_name = collection
        self.collection = self.db[collection]

    # ── Reads ───────────────────────────────────────────────────────

    def find(self, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            return list(self.collection.find(query or {}, {"_id": 0}))
        except PyMongoError as exc:
            raise StorageUnavailableError(f"Record lookup failed: {exc}") from exc

    def distinct(self, field: str, query: Optional[Dict[str, Any]] = None) -> List[Any]:
        try:
            return list(self.collection.distinct(field, query or {}))
        except PyMongoError as exc:
            raise StorageUnavailableError(f"Distinct lookup on '{field}' failed: {exc}") from exc

    def ping(self) -> bool:
        try:
            self.client.admin.command("ping")
            return True
        except PyMongoError:
            return False

    # ── Writes ──────────────────────────────────────────────────────

    def insert_many(self, records: Iterable[Dict[str, Any]]) -> int:
        validated = validate_records(records)
        if not validated:
            return 0
        try:
            result = self.collection.insert_many(validated)
        except (BulkWriteError, WriteError) as exc:
            raise RecordValidationError(f"Insert rejected by collection validator: {exc}") from exc
        except PyMongoError as exc:
            raise StorageUnavailableError(f"Insert failed: {exc}") from exc
        return len(result.inserted_ids)

    # ── Provisioning ────────────────────────────────────────────────

    def ensure_indexes(self) -> None:
        try:
            self.collection.create_index([("class_id", ASCENDING)])
            self.collection.create_index([("learner_id", ASCENDING)])
            self.collection.create_index([("class_id", ASCENDING), ("learner_id", ASCENDING)])
        except PyMongoError as exc:
            raise StorageUnavailableError(f"Index creation failed: {exc}") from exc
        logger.info("Indexes ensured on '%s'", self.collection_name)

    def ensure_validator(self) -> None:
        try:
            if self.collection_name not in self.db.list_collection_names():
                self.db.create_collection(self.collection_name)
            self.db.command({
                "collMod": self.collection_name,
                "validator": GRADES_SCHEMA,
                "validationLevel": "strict",
                "validationAction": "error",
            })
        except PyMongoError as exc:
            raise StorageUnavailableError(f"Schema validator setup failed: {exc}") from exc
        logger.info("Schema validation installed on '%s'", self.collection_name)

    def close(self) -> None:
        self.client.close()
