import logging
from typing import List

from database import CONTACTS, create_document, get_documents
from notifications import notify
from schemas import ContactCreate

logger = logging.getLogger(__name__)


def create_contact(payload: ContactCreate) -> str:
    doc = payload.to_document()
    doc["status"] = "new"
    contact_id = create_document(CONTACTS, doc)
    logger.info(f"Contact message {contact_id} received from {payload.name}")
    subject = f" : {payload.subject}" if payload.subject else ""
    notify(
        "contact",
        "Nouveau message de contact",
        f"Message reçu de {payload.name}{subject}",
        link="/dashboard/contact",
    )
    return contact_id


def list_contacts() -> List[dict]:
    return get_documents(CONTACTS, sort=[("createdAt", -1), ("_id", -1)])
