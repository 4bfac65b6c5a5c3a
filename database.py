"""
MongoDB access helpers.

`db` is the shared database handle (None when DATABASE_URL is not set).
Collection names are the ones the storefront has always written to, so
existing documents stay readable.
Every helper is a single independent write; there are no transactions.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.errors import PyMongoError

import settings
from errors import NotFound, StorageUnavailable

logger = logging.getLogger(__name__)

ORDERS = "orders"
ORDERS_HISTORY = "orders_history"
SALES = "sales"
NOTIFICATIONS = "notifications"
CONTACTS = "contacts"
PRODUCTS = "products"
CATEGORIES = "categories"

client: Optional[MongoClient] = None
db = None

if settings.DATABASE_URL:
    try:
        client = MongoClient(settings.DATABASE_URL, serverSelectionTimeoutMS=5000, tz_aware=True)
        db = client[settings.DATABASE_NAME or "store"]
    except PyMongoError as e:
        logger.error(f"Could not initialise MongoDB client: {e}")
        db = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes may come back naive; they are always UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def oid(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise NotFound(f"Unknown id: {id_str}")


def get_collection(collection_name: str):
    if db is None:
        raise StorageUnavailable("Database not configured")
    return db[collection_name]


def _payload(data: Any) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, exclude_none=True)
    return dict(data)


def create_document(collection_name: str, data: Any) -> str:
    """Insert a document stamped with createdAt/updatedAt and return its id."""
    doc = _payload(data)
    now = utcnow()
    doc.setdefault("createdAt", now)
    doc["updatedAt"] = now
    try:
        result = get_collection(collection_name).insert_one(doc)
    except PyMongoError as e:
        raise StorageUnavailable(str(e))
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    sort: Optional[List[tuple]] = None,
) -> List[Dict[str, Any]]:
    try:
        cursor = get_collection(collection_name).find(filter_dict or {})
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)
    except PyMongoError as e:
        raise StorageUnavailable(str(e))


def get_document(collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
    try:
        return get_collection(collection_name).find_one({"_id": oid(doc_id)})
    except PyMongoError as e:
        raise StorageUnavailable(str(e))


def update_document(
    collection_name: str,
    doc_id: str,
    fields: Dict[str, Any],
    unset: Optional[List[str]] = None,
) -> bool:
    """$set the given fields ($unset the `unset` ones) and refresh updatedAt.

    Returns False when nothing matched.
    """
    update: Dict[str, Any] = {"$set": {**fields, "updatedAt": utcnow()}}
    if unset:
        update["$unset"] = {k: "" for k in unset}
    try:
        result = get_collection(collection_name).update_one({"_id": oid(doc_id)}, update)
    except PyMongoError as e:
        raise StorageUnavailable(str(e))
    return result.matched_count > 0


def delete_document(collection_name: str, doc_id: str) -> bool:
    try:
        result = get_collection(collection_name).delete_one({"_id": oid(doc_id)})
    except PyMongoError as e:
        raise StorageUnavailable(str(e))
    return result.deleted_count > 0


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    d = {**doc}
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    # Convert ObjectIds and datetimes for JSON
    for k, v in list(d.items()):
        if isinstance(v, ObjectId):
            d[k] = str(v)
        elif isinstance(v, datetime):
            d[k] = as_utc(v).isoformat()
    return d
