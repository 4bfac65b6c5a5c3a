"""
Dashboard figures, computed by scanning orders and sales on every request.

Day and month boundaries are taken in the caller's time zone.
"""
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from database import utcnow
from errors import InvalidInput
from order_status import OrderStatus, counts_as_revenue
from orders import list_orders
from sales import list_sales
from schemas import Order, Sale


def resolve_zone(name: Optional[str]) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidInput(f"Unknown time zone: {name}")


def _start_of(day: date, zone: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone)


def _in_range(value: Optional[datetime], start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is None and end is None:
        return True
    if value is None:
        return False
    if start is not None and value < start:
        return False
    if end is not None and value >= end:
        return False
    return True


def revenue(orders: Iterable[Order], start: Optional[datetime] = None, end: Optional[datetime] = None) -> float:
    """Sum of totals of completed orders created in [start, end)."""
    total = sum(
        o.total for o in orders
        if counts_as_revenue(o.status) and _in_range(o.created_at, start, end)
    )
    return round(total, 2)


def manual_sales_total(sales: Iterable[Sale], start: Optional[datetime] = None,
                       end: Optional[datetime] = None) -> float:
    # Sales carrying an orderId are already counted through their order
    total = sum(
        s.total for s in sales
        if not s.order_id and _in_range(s.created_at, start, end)
    )
    return round(total, 2)


def status_counts(orders: Iterable[Order]) -> Dict[str, int]:
    counts = {s.value: 0 for s in OrderStatus}
    for o in orders:
        counts[o.status.value] += 1
    return counts


def recent_orders(orders: List[Order], limit: int = 5) -> List[Dict[str, Any]]:
    live = [o for o in orders if o.status is not OrderStatus.CANCELLED]
    live.sort(key=lambda o: o.created_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
    return [
        {"id": o.id, "customer": o.name, "amount": round(o.total, 2), "status": o.status.value}
        for o in live[:limit]
    ]


def daily_series(orders: List[Order], sales: List[Sale], zone: tzinfo, today: date, days: int):
    dates = [today - timedelta(days=days - 1 - i) for i in range(days)]
    revenue_by_day = {d: 0.0 for d in dates}
    orders_by_day = {d: 0 for d in dates}

    for o in orders:
        if o.created_at is None:
            continue
        key = o.created_at.astimezone(zone).date()
        if key in orders_by_day:
            orders_by_day[key] += 1
            if counts_as_revenue(o.status):
                revenue_by_day[key] += o.total
    for s in sales:
        if s.order_id or s.created_at is None:
            continue
        key = s.created_at.astimezone(zone).date()
        if key in revenue_by_day:
            revenue_by_day[key] += s.total

    revenue_series = [{"date": d.isoformat(), "amount": round(revenue_by_day[d], 2)} for d in dates]
    orders_series = [{"date": d.isoformat(), "count": orders_by_day[d]} for d in dates]
    return revenue_series, orders_series


def dashboard_stats(tz: Optional[str] = None, days: int = 14, now: Optional[datetime] = None) -> Dict[str, Any]:
    if days < 1:
        raise InvalidInput("days must be at least 1")
    zone = resolve_zone(tz)
    local_now = (now or utcnow()).astimezone(zone)
    today = local_now.date()
    day_start = _start_of(today, zone)
    day_end = _start_of(today + timedelta(days=1), zone)
    month_start = _start_of(today.replace(day=1), zone)
    next_month = (today.replace(day=28) + timedelta(days=4)).replace(day=1)
    month_end = _start_of(next_month, zone)

    orders = list_orders()
    sales = list_sales()
    revenue_series, orders_series = daily_series(orders, sales, zone, today, days)

    order_revenue = {
        "today": revenue(orders, day_start, day_end),
        "month": revenue(orders, month_start, month_end),
        "total": revenue(orders),
    }
    sales_revenue = {
        "today": manual_sales_total(sales, day_start, day_end),
        "month": manual_sales_total(sales, month_start, month_end),
        "total": manual_sales_total(sales),
    }
    return {
        "revenue": order_revenue,
        "salesRevenue": sales_revenue,
        "totalRevenue": round(order_revenue["total"] + sales_revenue["total"], 2),
        "totalOrders": sum(1 for o in orders if o.status is not OrderStatus.CANCELLED),
        "statusCounts": status_counts(orders),
        "recentOrders": recent_orders(orders),
        "revenueSeries": revenue_series,
        "ordersSeries": orders_series,
    }
