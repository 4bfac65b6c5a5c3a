import pytest

from conftest import utc
from errors import InvalidInput
from orders import list_orders
from reports import dashboard_stats, revenue


def _order(db, status, total, created):
    return str(db["orders"].insert_one({
        "name": "C", "phone": "1", "address": "a", "total": total, "status": status,
        "items": [{"id": "p", "name": "Thing", "price": total, "quantity": 1}],
        "createdAt": created, "updatedAt": created,
    }).inserted_id)


def _sale(db, total, created, order_id=None):
    doc = {"customerName": "C", "items": [], "total": total, "createdAt": created, "updatedAt": created}
    if order_id:
        doc["orderId"] = order_id
    db["sales"].insert_one(doc)


NOW = utc(2026, 3, 10, 12, 0)


def test_both_spellings_count_as_revenue(db):
    _order(db, "terminee", 40, utc(2026, 3, 10, 9))
    _order(db, "completed", 10, utc(2026, 3, 10, 10))
    _order(db, "annulee", 100, utc(2026, 3, 10, 10))
    _order(db, "cancelled", 100, utc(2026, 3, 10, 10))
    _order(db, "en_cours", 7, utc(2026, 3, 10, 10))

    assert revenue(list_orders()) == 50


def test_revenue_period_is_half_open(db):
    _order(db, "completed", 5, utc(2026, 3, 9, 23, 59))
    _order(db, "completed", 7, utc(2026, 3, 10, 0, 0))
    _order(db, "completed", 11, utc(2026, 3, 11, 0, 0))

    orders = list_orders()
    assert revenue(orders, utc(2026, 3, 10), utc(2026, 3, 11)) == 7
    # Pure read: same answer every time
    assert revenue(orders, utc(2026, 3, 10), utc(2026, 3, 11)) == 7


def test_dashboard_revenue_buckets(db):
    _order(db, "terminee", 40, utc(2026, 3, 10, 8))
    _order(db, "completed", 15, utc(2026, 3, 2, 8))
    _order(db, "completed", 25, utc(2026, 2, 27, 8))
    _order(db, "annulee", 99, utc(2026, 3, 10, 8))

    stats = dashboard_stats(now=NOW)

    assert stats["revenue"] == {"today": 40, "month": 55, "total": 80}
    assert stats["totalOrders"] == 3
    assert stats["statusCounts"]["completed"] == 3
    assert stats["statusCounts"]["cancelled"] == 1
    assert stats["statusCounts"]["pending"] == 0


def test_day_boundaries_follow_caller_time_zone(db):
    # 22:00 UTC on the 10th is 23:00 on the 10th in Tunis; at 23:30 UTC it is already the 11th there
    _order(db, "completed", 40, utc(2026, 3, 10, 22, 0))
    now = utc(2026, 3, 10, 23, 30)

    assert dashboard_stats(tz="UTC", now=now)["revenue"]["today"] == 40
    assert dashboard_stats(tz="Africa/Tunis", now=now)["revenue"]["today"] == 0


def test_unknown_time_zone(db):
    with pytest.raises(InvalidInput):
        dashboard_stats(tz="Mars/Olympus", now=NOW)


def test_manual_sales_are_reported_separately(db):
    order_id = _order(db, "completed", 40, utc(2026, 3, 10, 8))
    _sale(db, 40, utc(2026, 3, 10, 8), order_id=order_id)
    _sale(db, 12, utc(2026, 3, 10, 9))

    stats = dashboard_stats(now=NOW)

    assert stats["revenue"]["today"] == 40
    assert stats["salesRevenue"]["today"] == 12
    assert stats["totalRevenue"] == 52


def test_series_cover_requested_days(db):
    _order(db, "completed", 40, utc(2026, 3, 10, 8))
    _order(db, "pending", 9, utc(2026, 3, 9, 8))
    _order(db, "completed", 3, utc(2026, 1, 1, 8))

    stats = dashboard_stats(days=3, now=NOW)

    assert stats["revenueSeries"] == [
        {"date": "2026-03-08", "amount": 0},
        {"date": "2026-03-09", "amount": 0},
        {"date": "2026-03-10", "amount": 40},
    ]
    assert [p["count"] for p in stats["ordersSeries"]] == [0, 1, 1]


def test_recent_orders_skip_cancelled(db):
    for day in range(1, 8):
        _order(db, "pending", day, utc(2026, 3, day, 8))
    _order(db, "annulee", 50, utc(2026, 3, 9, 8))

    recent = dashboard_stats(now=NOW)["recentOrders"]

    assert [r["amount"] for r in recent] == [7, 6, 5, 4, 3]
    assert all(r["status"] == "pending" for r in recent)


def test_days_must_be_positive(db):
    with pytest.raises(InvalidInput):
        dashboard_stats(days=0, now=NOW)
