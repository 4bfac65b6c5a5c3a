"""
Admin inbox notifications.

Created as a side effect of new orders, sales and contact messages. Clients
poll the list; there is no push and no expiry.
"""
import logging
from typing import Dict, List, Optional

from pymongo.errors import PyMongoError

import settings
from database import NOTIFICATIONS, create_document, delete_document, get_collection, get_documents, oid, utcnow
from errors import NotFound, StorageUnavailable, StoreError
from schemas import Notification, NotificationCreate

logger = logging.getLogger(__name__)

UNREAD = {"isRead": {"$ne": True}}


def create_notification(payload: NotificationCreate) -> str:
    doc = payload.to_document()
    doc["isRead"] = False
    return create_document(NOTIFICATIONS, doc)


def notify(type: str, title: str, message: str, link: Optional[str] = None) -> Optional[str]:
    """Fire-and-forget variant: a failed notification never fails the caller."""
    try:
        return create_notification(NotificationCreate(type=type, title=title, message=message, link=link))
    except StoreError as e:
        logger.error(f"Could not create {type} notification: {e}", exc_info=True)
        return None


def list_notifications(limit: Optional[int] = None) -> List[Notification]:
    docs = get_documents(
        NOTIFICATIONS,
        limit=limit or settings.NOTIFICATION_LIMIT,
        sort=[("createdAt", -1), ("_id", -1)],
    )
    return [Notification.from_doc(d) for d in docs]


def unread_count() -> int:
    try:
        return get_collection(NOTIFICATIONS).count_documents(UNREAD)
    except PyMongoError as e:
        raise StorageUnavailable(str(e))


def inbox(limit: Optional[int] = None) -> Dict[str, object]:
    return {
        "notifications": [n.to_public() for n in list_notifications(limit)],
        "unreadCount": unread_count(),
    }


def mark_read(notification_id: str) -> bool:
    """Mark one notification read. Returns True only if it was unread before."""
    collection = get_collection(NOTIFICATIONS)
    try:
        result = collection.update_one(
            {"_id": oid(notification_id), **UNREAD},
            {"$set": {"isRead": True, "updatedAt": utcnow()}},
        )
        if result.matched_count:
            return True
        if collection.count_documents({"_id": oid(notification_id)}) == 0:
            raise NotFound(f"Notification {notification_id} not found")
    except PyMongoError as e:
        raise StorageUnavailable(str(e))
    return False


def mark_all_read() -> int:
    try:
        result = get_collection(NOTIFICATIONS).update_many(
            UNREAD, {"$set": {"isRead": True, "updatedAt": utcnow()}}
        )
    except PyMongoError as e:
        raise StorageUnavailable(str(e))
    return result.modified_count


def delete_notification(notification_id: str) -> bool:
    return delete_document(NOTIFICATIONS, notification_id)
