"""
Database helpers

MongoDB connection plus the small helpers every route uses. `db` is None
when DATABASE_URL is not set; the app refuses to start in that case.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient

import config

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None
db = None

if config.DATABASE_URL:
    client = MongoClient(
        config.DATABASE_URL,
        serverSelectionTimeoutMS=5000,
        socketTimeoutMS=45000,
        tz_aware=True,
    )
    db = client[config.DATABASE_NAME]


def ping() -> None:
    """Raise if the database cannot be reached."""
    if client is None:
        raise RuntimeError("DATABASE_URL is not set")
    client.admin.command("ping")


def ensure_indexes(database) -> None:
    database["blog"].create_index("slug", unique=True)
    database["collection"].create_index("slug", unique=True)
    database["collection"].create_index("category")
    database["collection"].create_index([("isPublished", ASCENDING), ("createdAt", DESCENDING)])
    database["prompt"].create_index([("createdAt", DESCENDING)])
    # at most one prompt may carry the prompt-of-the-day flag
    database["prompt"].create_index(
        "isPromptOfDay",
        name="single_prompt_of_day",
        unique=True,
        partialFilterExpression={"isPromptOfDay": True},
    )


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Make a stored document JSON friendly: `_id` -> `id`, ObjectIds as strings."""
    if doc is None:
        return None
    out: Dict[str, Any] = {}
    for key, value in doc.items():
        if key == "_id":
            key = "id"
        out[key] = _plain(value)
    return out


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return serialize_doc(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def create_document(database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Insert a document and return it with its `_id`."""
    if isinstance(data, BaseModel):
        doc = data.model_dump()
    else:
        doc = dict(data)
    result = database[collection_name].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def get_documents(
    database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    newest_first: bool = True,
) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if newest_first:
        cursor = cursor.sort("createdAt", DESCENDING)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
