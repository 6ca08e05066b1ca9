"""
Data access for prompts, blogs and collections.

Every function takes the database handle first so routes can hand in
whatever `get_db` resolves to.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import create_document, get_documents, now, to_object_id
from errors import ConflictError

logger = logging.getLogger(__name__)

PROMPT_OF_DAY_ATTEMPTS = 3


# Prompts

def prompt_filter(
    model: Optional[str] = None,
    industry: Optional[str] = None,
    topic: Optional[str] = None,
    trending: Optional[str] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if model and model != "All":
        query["aiModel"] = model
    if industry and industry != "All":
        query["industry"] = industry
    if topic and topic != "All":
        query["topic"] = topic
    if trending == "true":
        query["isTrending"] = True
    return query


def find_prompts(db, query: Dict[str, Any]) -> List[dict]:
    return get_documents(db, "prompt", query)


def find_prompt(db, prompt_id: str) -> Optional[dict]:
    oid = to_object_id(prompt_id)
    if oid is None:
        return None
    return db["prompt"].find_one({"_id": oid})


def insert_prompt(db, data: Dict[str, Any]) -> dict:
    """Insert a prompt. A prompt of the day first takes the flag from every other prompt."""
    if not data.get("isPromptOfDay"):
        return create_document(db, "prompt", data)
    for attempt in range(1, PROMPT_OF_DAY_ATTEMPTS + 1):
        db["prompt"].update_many({"isPromptOfDay": True}, {"$set": {"isPromptOfDay": False}})
        try:
            return create_document(db, "prompt", dict(data))
        except DuplicateKeyError:
            # another writer set the flag between the clear and the insert
            logger.warning("Prompt of the day changed concurrently, retrying (attempt %d)", attempt)
    raise ConflictError("Prompt of the day is being changed by another request")


def prompt_of_the_day(db) -> Optional[dict]:
    prompts = db["prompt"]
    prompt = prompts.find_one({"isPromptOfDay": True})
    if prompt is None:
        prompt = prompts.find_one({"isTrending": True}, sort=[("createdAt", DESCENDING)])
    if prompt is None:
        prompt = prompts.find_one({}, sort=[("createdAt", DESCENDING)])
    return prompt


def increment_copy_count(db, prompt_id: str) -> Optional[int]:
    oid = to_object_id(prompt_id)
    if oid is None:
        return None
    updated = db["prompt"].find_one_and_update(
        {"_id": oid},
        {"$inc": {"copyCount": 1}},
        return_document=ReturnDocument.AFTER,
    )
    return updated["copyCount"] if updated else None


# Shared by blogs and collections

def unique_slug(db, collection_name: str, slug: str) -> str:
    """Best effort: an existing slug gets the current epoch-ms appended."""
    if db[collection_name].find_one({"slug": slug}, {"_id": 1}):
        return f"{slug}-{int(time.time() * 1000)}"
    return slug


def insert_with_slug(db, collection_name: str, data: Dict[str, Any]) -> dict:
    try:
        return create_document(db, collection_name, data)
    except DuplicateKeyError as exc:
        raise ConflictError() from exc


def view_by_slug(db, collection_name: str, slug: str) -> Optional[dict]:
    return db[collection_name].find_one_and_update(
        {"slug": slug},
        {"$inc": {"views": 1}},
        return_document=ReturnDocument.AFTER,
    )


def delete_by_id(db, collection_name: str, doc_id: str) -> Optional[dict]:
    oid = to_object_id(doc_id)
    if oid is None:
        return None
    return db[collection_name].find_one_and_delete({"_id": oid})


# Blogs

def published_blogs(db) -> List[dict]:
    return get_documents(db, "blog", {"isPublished": True})


# Collections

def resolve_prompts_many(db, collections: List[dict]) -> List[dict]:
    """Replace prompt references with the prompt documents, keeping order and dropping dangling ones.

    All references across `collections` are fetched with a single query.
    """
    refs = {ref for c in collections for ref in (c.get("prompts") or [])}
    found = {p["_id"]: p for p in db["prompt"].find({"_id": {"$in": list(refs)}})} if refs else {}
    resolved = []
    for collection in collections:
        doc = dict(collection)
        doc["prompts"] = [found[ref] for ref in (collection.get("prompts") or []) if ref in found]
        resolved.append(doc)
    return resolved


def resolve_prompts(db, collection: dict) -> dict:
    return resolve_prompts_many(db, [collection])[0]


def published_collections(db, category: Optional[str] = None) -> List[dict]:
    query: Dict[str, Any] = {"isPublished": True}
    if category:
        query["category"] = category
    return resolve_prompts_many(db, get_documents(db, "collection", query))


def increment_downloads(db, slug: str) -> Optional[int]:
    updated = db["collection"].find_one_and_update(
        {"slug": slug},
        {"$inc": {"downloads": 1}, "$set": {"updatedAt": now()}},
        return_document=ReturnDocument.AFTER,
    )
    return updated["downloads"] if updated else None
