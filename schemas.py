"""
Database Schemas

Pydantic models for the MongoDB collections used by the order workflow.
Collections (names in database.py):
- Order -> "orders" (archived copies live in "orders_history")
- Sale -> "sales"
- Notification -> "notifications"
- Contact -> "contacts"
- Product / Category -> "products" / "categories" (read for stock rules only)

Attributes are snake_case in Python and camelCase in documents and JSON
(userId, paymentMethod, createdAt, ...), which is what existing data uses.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from database import as_utc
from errors import InvalidInput
from order_status import OrderStatus, normalize_status


class Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_document(self, **kwargs) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, **kwargs)

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Stored(Document):
    """A document loaded back from a collection."""
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, v):
        return as_utc(v)

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]):
        return cls.model_validate({**doc, "id": str(doc["_id"])})


def _status_field(v):
    try:
        return normalize_status(v)
    except InvalidInput as e:
        raise ValueError(e.message)


# Orders
class OrderItem(Document):
    """Line item snapshot; never linked back to the live product."""
    id: str = Field(..., min_length=1)
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    size: Optional[str] = None
    color: Optional[str] = None


class OrderCreate(Document):
    user_id: Optional[str] = None
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    items: List[OrderItem] = Field(..., min_length=1)
    total: Optional[float] = Field(None, ge=0)
    status: Optional[OrderStatus] = None
    payment_method: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, v):
        return v or None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return _status_field(v)


class OrderUpdate(Document):
    user_id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = Field(None, min_length=1)
    items: Optional[List[OrderItem]] = Field(None, min_length=1)
    total: Optional[float] = Field(None, ge=0)
    status: Optional[OrderStatus] = None
    payment_method: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v):
        return _status_field(v)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


class Order(Stored):
    user_id: Optional[str] = None
    name: str = ""
    email: Optional[str] = None
    phone: str = ""
    address: str = ""
    items: List[OrderItem] = Field(default_factory=list)
    total: float = 0.0
    status: OrderStatus = OrderStatus.PENDING
    payment_method: Optional[str] = None
    pending_sale: Optional[bool] = None

    @field_validator("status", mode="before")
    @classmethod
    def _legacy_status(cls, v):
        return _status_field(v) or OrderStatus.PENDING


class ArchivedOrder(Order):
    original_id: Optional[str] = None
    archived_at: Optional[datetime] = None

    @field_validator("original_id", mode="before")
    @classmethod
    def _str_id(cls, v):
        return str(v) if v is not None else None


# Sales ledger
class SaleItem(Document):
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)


class SaleCreate(Document):
    order_id: Optional[str] = None
    customer_name: str = Field(..., min_length=1)
    customer_phone: Optional[str] = None
    items: List[SaleItem] = Field(default_factory=list)
    total: float = Field(..., ge=0)
    payment_method: Optional[str] = None
    receipt_number: Optional[str] = None
    notes: Optional[str] = None


class Sale(Stored):
    order_id: Optional[str] = None
    customer_name: str = ""
    customer_phone: Optional[str] = None
    items: List[SaleItem] = Field(default_factory=list)
    total: float = 0.0
    payment_method: Optional[str] = None
    receipt_number: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("order_id", mode="before")
    @classmethod
    def _str_id(cls, v):
        return str(v) if v is not None else None


# Notifications
NotificationType = Literal["contact", "order", "sale", "auth", "system"]


class NotificationCreate(Document):
    type: NotificationType
    title: str = Field(..., min_length=1)
    message: str
    link: Optional[str] = None


class Notification(Stored):
    type: NotificationType = "system"
    title: str = ""
    message: str = ""
    link: Optional[str] = None
    is_read: bool = False


# Contact messages
class ContactCreate(Document):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str = Field(..., min_length=1)


# Catalog (stock rules only)
CategoryType = Literal["chaussures", "vetements", "bijoux", "autre"]


class Category(Stored):
    name: str = ""
    category_type: Optional[CategoryType] = None
    size_type: Optional[Literal["numeric", "letter", "none"]] = None
    sizes: Optional[List[str]] = None


class SizeStock(Document):
    size: str
    stock: int = 0


class ColorStock(Document):
    color: str
    color_code: Optional[str] = None
    stock: Optional[int] = None


class Product(Stored):
    name: str = ""
    price: float = 0.0
    category: Optional[str] = None
    sizes: Optional[List[SizeStock]] = None
    colors: Optional[List[ColorStock]] = None
    stock: Optional[int] = None

    @field_validator("category", mode="before")
    @classmethod
    def _str_ref(cls, v):
        return str(v) if v is not None else None
