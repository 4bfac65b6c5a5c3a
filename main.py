import logging
import os

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Local imports
import database
import settings
from contacts import create_contact, list_contacts
from database import serialize_doc
from errors import StoreError
from notifications import create_notification, delete_notification, inbox, mark_all_read, mark_read
from orders import (
    cleanup_orders, create_order, delete_order, get_order, list_live_orders, list_order_history,
    list_orders, list_orders_by_user, reconcile_pending_sales, update_order,
)
from reports import dashboard_stats
from sales import create_sale, delete_sale, get_sale, list_sales, update_sale
from schemas import ContactCreate, NotificationCreate, OrderCreate, OrderUpdate, SaleCreate

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Storefront Orders API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error mapping: every failure leaves as {"error": message}
@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        where = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{where}: {err.get('msg')}" if where else err.get("msg"))
    return JSONResponse(status_code=400, content={"error": "; ".join(problems) or "Invalid input"})


@app.exception_handler(Exception)
def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} crashed", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/")
def read_root():
    return {"message": "Storefront Orders API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
            response["database_name"] = getattr(database.db, "name", None) or "Unknown"
            response["connection_status"] = "Connected"
            try:
                response["collections"] = database.db.list_collection_names()[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# Orders
@app.post("/api/orders")
def post_order(payload: OrderCreate):
    order_id = create_order(payload)
    return {"success": True, "orderId": order_id}


@app.get("/api/orders")
def get_orders():
    return {"orders": [o.to_public() for o in list_orders()]}


@app.get("/api/orders/live")
def get_live_orders():
    return {"orders": [o.to_public() for o in list_live_orders()]}


@app.get("/api/orders/history")
def get_order_history(limit: int = Query(100, ge=1, le=500)):
    return {"orders": [o.to_public() for o in list_order_history(limit)]}


@app.post("/api/orders/cleanup")
def post_orders_cleanup():
    result = cleanup_orders()
    return {"success": True, **result}


@app.post("/api/orders/reconcile")
def post_orders_reconcile():
    return {"success": True, "processed": reconcile_pending_sales()}


@app.get("/api/orders/user/{user_id}")
def get_user_orders(user_id: str):
    return {"orders": [o.to_public() for o in list_orders_by_user(user_id)]}


@app.get("/api/orders/{order_id}")
def get_one_order(order_id: str):
    return {"order": get_order(order_id).to_public()}


@app.put("/api/orders/{order_id}")
def put_order(order_id: str, payload: OrderUpdate):
    order = update_order(order_id, payload)
    return {"success": True, "order": order.to_public()}


@app.delete("/api/orders/{order_id}")
def remove_order(order_id: str):
    delete_order(order_id)
    return {"success": True}


# Sales
@app.get("/api/sales")
def get_sales():
    return {"sales": [s.to_public() for s in list_sales()]}


@app.post("/api/sales")
def post_sale(payload: SaleCreate):
    return {"success": True, "saleId": create_sale(payload)}


@app.get("/api/sales/{sale_id}")
def get_one_sale(sale_id: str):
    return {"sale": get_sale(sale_id).to_public()}


@app.put("/api/sales/{sale_id}")
def put_sale(sale_id: str, payload: SaleCreate):
    update_sale(sale_id, payload)
    return {"success": True}


@app.delete("/api/sales/{sale_id}")
def remove_sale(sale_id: str, cascade: bool = False):
    delete_sale(sale_id, cascade=cascade)
    return {"success": True}


# Notifications
@app.get("/api/notifications")
def get_notifications(limit: int = Query(settings.NOTIFICATION_LIMIT, ge=1, le=settings.NOTIFICATION_LIMIT)):
    return inbox(limit)


@app.post("/api/notifications")
def post_notification(payload: NotificationCreate):
    return {"success": True, "notificationId": create_notification(payload)}


@app.put("/api/notifications")
def put_all_notifications_read():
    return {"success": True, "updated": mark_all_read()}


@app.put("/api/notifications/{notification_id}")
def put_notification_read(notification_id: str):
    mark_read(notification_id)
    return {"success": True}


@app.delete("/api/notifications/{notification_id}")
def remove_notification(notification_id: str):
    delete_notification(notification_id)
    return {"success": True}


# Contact messages
@app.get("/api/contacts")
def get_contacts():
    return {"contacts": [serialize_doc(c) for c in list_contacts()]}


@app.post("/api/contacts")
def post_contact(payload: ContactCreate):
    return {"success": True, "contactId": create_contact(payload)}


# Dashboard
@app.get("/api/dashboard/stats")
def get_dashboard_stats(tz: str = "UTC", days: int = Query(14, ge=1, le=90)):
    return dashboard_stats(tz=tz, days=days)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
