"""
Order status vocabulary and lifecycle rules.

Orders move pending -> processing -> confirmed -> shipping -> completed.
Any non-terminal order can be cancelled; completed and cancelled are terminal.

Older documents carry the French spellings (en_attente, terminee, ...). Those
are accepted on input and translated when documents are loaded, so every
comparison in the service works on OrderStatus members only. Database filters
that run before loading use `spellings()` to match both forms.
"""
from enum import Enum
from typing import Dict, List, Optional, Union

from errors import InvalidInput, InvalidTransition


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPING = "shipping"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


LEGACY_SPELLINGS: Dict[OrderStatus, str] = {
    OrderStatus.PENDING: "en_attente",
    OrderStatus.PROCESSING: "en_cours",
    OrderStatus.CONFIRMED: "confirmee",
    OrderStatus.SHIPPING: "en_livraison",
    OrderStatus.COMPLETED: "terminee",
    OrderStatus.CANCELLED: "annulee",
}

_TRANSLATIONS: Dict[str, OrderStatus] = {s.value: s for s in OrderStatus}
_TRANSLATIONS.update({legacy: status for status, legacy in LEGACY_SPELLINGS.items()})

HAPPY_PATH: List[OrderStatus] = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.CONFIRMED,
    OrderStatus.SHIPPING,
    OrderStatus.COMPLETED,
]

TERMINAL = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


def normalize_status(value: Union[str, OrderStatus, None]) -> Optional[OrderStatus]:
    if value is None:
        return None
    if isinstance(value, OrderStatus):
        return value
    status = _TRANSLATIONS.get(str(value).strip().lower())
    if status is None:
        raise InvalidInput(f"Unknown order status: {value}")
    return status


def spellings(status: OrderStatus) -> List[str]:
    """Every spelling under which `status` may be stored."""
    return [status.value, LEGACY_SPELLINGS[status]]


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL


def counts_as_revenue(status: OrderStatus) -> bool:
    return status is OrderStatus.COMPLETED


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current is target:
        return True
    if is_terminal(current):
        return False
    if target is OrderStatus.CANCELLED:
        return True
    return HAPPY_PATH.index(target) > HAPPY_PATH.index(current)


def check_transition(current: OrderStatus, target: OrderStatus, strict: bool) -> None:
    if strict and not can_transition(current, target):
        raise InvalidTransition(f"Cannot move order from {current.value} to {target.value}")


def enters_completed(previous: Optional[OrderStatus], target: Optional[OrderStatus]) -> bool:
    return target is OrderStatus.COMPLETED and previous is not OrderStatus.COMPLETED
