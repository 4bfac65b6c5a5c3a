"""
Sales ledger: manual point-of-sale entries and sales converted from completed orders.

`orderId` is a weak reference. Nothing keeps it consistent with the order
collection, so every lookup or delete through it tolerates a missing order.
"""
import logging
import secrets
from typing import List, Optional

from database import SALES, create_document, delete_document, get_document, get_documents, oid, update_document, utcnow
from errors import NotFound
from notifications import notify
from schemas import Order, Sale, SaleCreate, SaleItem

logger = logging.getLogger(__name__)

# Fields a PUT replaces; orderId and timestamps are kept
REPLACED_FIELDS = (
    "customerName", "customerPhone", "items", "total",
    "paymentMethod", "receiptNumber", "notes",
)


def generate_receipt_number() -> str:
    return f"REC-{utcnow():%Y%m%d}-{secrets.token_hex(3).upper()}"


def create_sale(payload: SaleCreate) -> str:
    doc = payload.to_document()
    doc.setdefault("receiptNumber", generate_receipt_number())
    sale_id = create_document(SALES, doc)
    logger.info(f"Sale {sale_id} recorded for {payload.customer_name} ({payload.total:.2f})")
    notify(
        "sale",
        "Nouvelle vente",
        f"Vente enregistrée pour {payload.customer_name} d'un montant de {payload.total:.2f}dt",
        link="/dashboard/vente",
    )
    return sale_id


def sale_for_order(order: Order) -> SaleCreate:
    return SaleCreate(
        order_id=order.id,
        customer_name=order.name or "Client",
        customer_phone=order.phone or None,
        items=[SaleItem(name=i.name, price=i.price, quantity=i.quantity) for i in order.items],
        total=order.total,
        payment_method=order.payment_method,
    )


def get_sale(sale_id: str) -> Sale:
    doc = get_document(SALES, sale_id)
    if not doc:
        raise NotFound(f"Sale {sale_id} not found")
    return Sale.from_doc(doc)


def list_sales() -> List[Sale]:
    docs = get_documents(SALES, sort=[("createdAt", -1), ("_id", -1)])
    return [Sale.from_doc(d) for d in docs]


def find_sale_for_order(order_id: str) -> Optional[Sale]:
    # Older sales stored the reference as an ObjectId
    refs = [order_id, oid(order_id)]
    docs = get_documents(SALES, {"orderId": {"$in": refs}}, limit=1)
    return Sale.from_doc(docs[0]) if docs else None


def update_sale(sale_id: str, payload: SaleCreate) -> None:
    doc = payload.to_document()
    fields = {k: doc.get(k) for k in REPLACED_FIELDS}
    if not update_document(SALES, sale_id, fields):
        raise NotFound(f"Sale {sale_id} not found")


def delete_sale(sale_id: str, cascade: bool = False) -> bool:
    """Delete a sale; an absent sale is not an error.

    With `cascade`, the linked order is deleted too, best effort.
    """
    doc = get_document(SALES, sale_id)
    if not doc:
        return False
    delete_document(SALES, sale_id)
    order_id = doc.get("orderId")
    if cascade and order_id:
        # Imported here: orders imports this module for the completion step
        from orders import delete_order
        try:
            delete_order(str(order_id))
        except NotFound:
            logger.warning(f"Sale {sale_id} referenced an invalid order id {order_id}")
    return True
