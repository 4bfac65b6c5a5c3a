import pytest
from bson import ObjectId

import database
from errors import NotFound
from notifications import (
    create_notification, delete_notification, inbox, list_notifications, mark_all_read, mark_read,
    notify, unread_count,
)
from schemas import NotificationCreate


def _make(n=1, type="system"):
    return [notify(type, f"Title {i}", f"Message {i}") for i in range(n)]


def test_new_notifications_are_unread(db):
    [note_id] = _make()
    assert db["notifications"].find_one({"_id": ObjectId(note_id)})["isRead"] is False
    assert unread_count() == 1


def test_mark_read_decrements_once(db):
    first, _ = _make(2)
    assert unread_count() == 2

    assert mark_read(first) is True
    assert unread_count() == 1

    assert mark_read(first) is False
    assert unread_count() == 1


def test_mark_read_unknown_id(db):
    with pytest.raises(NotFound):
        mark_read(str(ObjectId()))
    with pytest.raises(NotFound):
        mark_read("nope")


def test_mark_all_read(db):
    _make(3)
    assert mark_all_read() == 3
    assert unread_count() == 0
    assert mark_all_read() == 0


def test_list_is_newest_first_and_capped(db):
    ids = _make(55)
    listed = list_notifications()
    assert len(listed) == 50
    assert listed[0].id == ids[-1]
    assert len(list_notifications(limit=5)) == 5


def test_inbox_shape(db):
    _make(2, type="order")
    box = inbox()
    assert box["unreadCount"] == 2
    assert box["notifications"][0]["isRead"] is False
    assert box["notifications"][0]["type"] == "order"
    assert "createdAt" in box["notifications"][0]


def test_create_notification_with_link(db):
    note_id = create_notification(NotificationCreate(type="auth", title="Login", message="Admin signed in", link="/x"))
    assert db["notifications"].find_one({"_id": ObjectId(note_id)})["link"] == "/x"


def test_delete_notification(db):
    [note_id] = _make()
    assert delete_notification(note_id) is True
    assert delete_notification(note_id) is False


def test_notify_swallows_storage_errors(monkeypatch):
    monkeypatch.setattr(database, "db", None)
    assert notify("system", "t", "m") is None
