"""
Order records and their lifecycle.

Orders are created from checkout submissions with a snapshot of the cart
(name/price/quantity per line), then moved through their statuses by admins.

Moving an order into `completed` converts it into a sale. There is no
transaction across the order, sale and product collections, so the status
write also sets a `pendingSale` marker on the order. The marker is cleared
once the sale exists; anything left marked is picked up again by
`reconcile_pending_sales()`.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from pymongo.errors import PyMongoError

import settings
from catalog import decrement_stock
from database import (
    ORDERS, ORDERS_HISTORY, create_document, delete_document, get_collection, get_document,
    get_documents, oid, update_document, utcnow,
)
from errors import InvalidInput, NotFound, StorageUnavailable, StoreError
from notifications import notify
from order_status import OrderStatus, check_transition, enters_completed, is_terminal, spellings
from schemas import ArchivedOrder, Order, OrderCreate, OrderItem, OrderUpdate
from sales import create_sale, find_sale_for_order, sale_for_order

logger = logging.getLogger(__name__)

NEWEST_FIRST = [("createdAt", -1), ("_id", -1)]


def items_total(items: List[OrderItem]) -> float:
    return round(sum(i.price * i.quantity for i in items), 2)


def _check_total(items: List[OrderItem], total: Optional[float]) -> float:
    expected = items_total(items)
    if total is None:
        return expected
    if abs(total - expected) > settings.TOTAL_TOLERANCE:
        raise InvalidInput(f"Order total {total:.2f} does not match its items ({expected:.2f})")
    return total


def create_order(payload: OrderCreate) -> str:
    status = payload.status or OrderStatus.PENDING
    doc = payload.to_document()
    doc["total"] = _check_total(payload.items, payload.total)
    doc["status"] = status.value
    doc.setdefault("paymentMethod", settings.DEFAULT_PAYMENT_METHOD)
    if status is OrderStatus.COMPLETED:
        doc["pendingSale"] = True

    order_id = create_document(ORDERS, doc)
    logger.info(f"Order {order_id} created for {payload.name} ({doc['total']:.2f}, {status.value})")

    notify(
        "order",
        "Nouvelle commande",
        f"Nouvelle commande de {payload.name} pour un montant de {doc['total']:.2f}dt",
        link="/dashboard/commandes",
    )
    if status is OrderStatus.COMPLETED:
        complete_order(order_id)
    return order_id


def get_order(order_id: str) -> Order:
    doc = get_document(ORDERS, order_id)
    if not doc:
        raise NotFound(f"Order {order_id} not found")
    return Order.from_doc(doc)


def list_orders() -> List[Order]:
    return [Order.from_doc(d) for d in get_documents(ORDERS, sort=NEWEST_FIRST)]


def list_orders_by_user(user_id: str) -> List[Order]:
    return [Order.from_doc(d) for d in get_documents(ORDERS, {"userId": user_id}, sort=NEWEST_FIRST)]


def _last_touched(order: Order) -> Optional[datetime]:
    return order.updated_at or order.created_at


def is_expired(order: Order, now: Optional[datetime] = None) -> bool:
    """Terminal orders drop off the live boards once past the retention window."""
    if not is_terminal(order.status):
        return False
    touched = _last_touched(order)
    if touched is None:
        return False
    cutoff = (now or utcnow()) - timedelta(hours=settings.ORDER_RETENTION_HOURS)
    return touched < cutoff


def list_live_orders(now: Optional[datetime] = None) -> List[Order]:
    return [o for o in list_orders() if not is_expired(o, now)]


def update_order(order_id: str, payload: OrderUpdate, strict: Optional[bool] = None) -> Order:
    current = get_order(order_id)
    changes = payload.changes()
    if not changes:
        raise InvalidInput("No updates provided")

    if payload.items is not None:
        changes["total"] = _check_total(payload.items, payload.total)
    elif payload.total is not None:
        changes["total"] = _check_total(current.items, payload.total)

    target = payload.status
    completing = False
    unset = []
    if target is not None:
        if strict is None:
            strict = settings.STRICT_ORDER_TRANSITIONS
        check_transition(current.status, target, strict)
        changes["status"] = target.value
        # Re-sending `completed` also retries an unfinished conversion
        completing = enters_completed(current.status, target) or (
            target is OrderStatus.COMPLETED and bool(current.pending_sale)
        )
        if completing:
            changes["pendingSale"] = True
        elif target is not OrderStatus.COMPLETED:
            unset.append("pendingSale")

    if not update_document(ORDERS, order_id, changes, unset=unset):
        raise NotFound(f"Order {order_id} not found")
    if target is not None and target is not current.status:
        logger.info(f"Order {order_id}: {current.status.value} -> {target.value}")

    if completing:
        complete_order(order_id)
    return get_order(order_id)


def complete_order(order_id: str) -> Optional[str]:
    """Record the sale for a completed order and clear its pendingSale marker.

    Safe to repeat: an order that already has a sale gets no second one, and
    stock is only taken when the sale is created here. An order that has left
    `completed` in the meantime only loses its marker.
    """
    order = get_order(order_id)
    existing = find_sale_for_order(order.id)
    if order.status is not OrderStatus.COMPLETED:
        logger.warning(f"Order {order_id} is {order.status.value}, no sale recorded")
        sale_id = existing.id if existing else None
    elif existing:
        sale_id = existing.id
    else:
        sale_id = create_sale(sale_for_order(order))
        for item in order.items:
            try:
                decrement_stock(item.id, item.quantity, size=item.size, color=item.color)
            except StoreError as e:
                logger.error(f"Stock decrement failed for product {item.id}: {e}", exc_info=True)

    try:
        get_collection(ORDERS).update_one({"_id": oid(order_id)}, {"$unset": {"pendingSale": ""}})
    except PyMongoError as e:
        raise StorageUnavailable(str(e))
    return sale_id


def reconcile_pending_sales() -> int:
    processed = 0
    for doc in get_documents(ORDERS, {"pendingSale": True}):
        order_id = str(doc["_id"])
        try:
            complete_order(order_id)
            processed += 1
        except StorageUnavailable:
            raise
        except StoreError as e:
            logger.error(f"Could not complete order {order_id}: {e}", exc_info=True)
    if processed:
        logger.info(f"Reconciled {processed} pending sale(s)")
    return processed


def delete_order(order_id: str) -> bool:
    """Delete an order. Deleting an absent order is a no-op."""
    deleted = delete_document(ORDERS, order_id)
    if deleted:
        logger.info(f"Order {order_id} deleted")
    return deleted


def cleanup_orders(now: Optional[datetime] = None) -> Dict[str, int]:
    """Archive completed and drop cancelled orders past the retention window."""
    now = now or utcnow()
    terminal = spellings(OrderStatus.COMPLETED) + spellings(OrderStatus.CANCELLED)
    archived = deleted = 0
    for doc in get_documents(ORDERS, {"status": {"$in": terminal}}):
        order = Order.from_doc(doc)
        if not is_expired(order, now):
            continue
        if order.status is OrderStatus.COMPLETED:
            # Its sale must exist before the order leaves the reconcile scan
            if order.pending_sale:
                complete_order(order.id)
            history = {k: v for k, v in doc.items() if k not in ("_id", "pendingSale")}
            history.update(archivedAt=now, originalId=doc["_id"])
            create_document(ORDERS_HISTORY, history)
            archived += 1
        else:
            deleted += 1
        delete_document(ORDERS, order.id)
    logger.info(f"Order cleanup: {archived} archived, {deleted} deleted")
    return {"deleted": deleted, "archived": archived}


def list_order_history(limit: int = 100) -> List[ArchivedOrder]:
    docs = get_documents(ORDERS_HISTORY, limit=limit, sort=[("archivedAt", -1), ("_id", -1)])
    return [ArchivedOrder.from_doc(d) for d in docs]
