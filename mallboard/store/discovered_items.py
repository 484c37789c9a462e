"""MallBoard — Discovered Item Lists.

Item codes found on a marketplace, kept per mall as one settings document
(``{mall}_products``) so the product registry can offer them without calling
the marketplace again.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ValidationError
from sqlmodel import Session

from mallboard.core.malls import Mall
from mallboard.models.catalog_models import SettingsDocument
from mallboard.models.dashboard_models import MarketplaceItem
from mallboard.store.credentials import CorruptDocumentError
from mallboard.core.logging import get_logger

logger = get_logger("store.items")


class DiscoveredItems(BaseModel):
    items: List[MarketplaceItem] = []
    source: str = ""
    updated_at: Optional[datetime] = None


def _key(mall: Mall) -> str:
    return f"{mall.value}_products"


def load_discovered_items(session: Session, mall: Mall) -> DiscoveredItems:
    doc = session.get(SettingsDocument, _key(mall))
    if doc is None:
        return DiscoveredItems()
    try:
        return DiscoveredItems.model_validate_json(doc.payload_json)
    except ValidationError as e:
        raise CorruptDocumentError(_key(mall), str(e)) from e


def save_discovered_items(
    session: Session, mall: Mall, items: List[MarketplaceItem], source: str
) -> DiscoveredItems:
    """Replace the stored list for the mall."""
    now = datetime.now(timezone.utc)
    result = DiscoveredItems(items=items, source=source, updated_at=now)
    doc = session.get(SettingsDocument, _key(mall))
    if doc is None:
        doc = SettingsDocument(key=_key(mall), payload_json=result.model_dump_json())
    else:
        doc.payload_json = result.model_dump_json()
        doc.updated_at = now
    session.add(doc)
    session.commit()
    logger.info(f"Saved {len(items)} {mall.value} items ({source})", extra={"mall": mall.value})
    return result
