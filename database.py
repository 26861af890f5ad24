"""
MongoDB access helpers.

Collections are named after the lowercase schema class (``user``, ``task``).
Documents store their ``_id`` as a string ObjectId so they can be returned
to clients without conversion; ``create_document`` injects the id and the
timestamps.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import get_settings

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
_db: Optional[Database] = None


def ensure_indexes(db: Database) -> None:
    db["user"].create_index([("email", ASCENDING)], unique=True)
    db["task"].create_index([("user_id", ASCENDING)])


def get_db() -> Database:
    """FastAPI dependency returning the application database."""
    global _client, _db
    if _db is None:
        settings = get_settings()
        _client = MongoClient(settings.database_url, tz_aware=True)
        _db = _client[settings.database_name]
        ensure_indexes(_db)
        logger.info("Connected to MongoDB database=%s", settings.database_name)
    return _db


def close_db() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_document(db: Database, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
    now = now_utc()
    doc = {
        **data,
        "_id": str(ObjectId()),
        "created_at": now,
        "updated_at": now,
    }
    db[collection].insert_one(doc)
    return doc


def get_documents(db: Database, collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    return list(db[collection].find(filter_dict or {}))
