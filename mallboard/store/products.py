"""MallBoard — Product Registry (SKU mappings)."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from mallboard.models.catalog_models import ProductSkuMapping
from mallboard.core.logging import get_logger

logger = get_logger("store.products")


class ProductIn(BaseModel):
    """Create / replace payload for a product mapping."""

    product_name: str
    sku_name: str = ""
    amazon_code: str = ""
    rakuten_code: str = ""
    qoo10_code: str = ""

    @field_validator("product_name")
    @classmethod
    def _require_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("product_name is required")
        return v

    @field_validator("sku_name", "amazon_code", "rakuten_code", "qoo10_code")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()


def list_products(session: Session) -> List[ProductSkuMapping]:
    return list(
        session.exec(
            select(ProductSkuMapping).order_by(
                ProductSkuMapping.product_name, ProductSkuMapping.id  # type: ignore
            )
        ).all()
    )


def get_product(session: Session, product_id: int) -> Optional[ProductSkuMapping]:
    return session.get(ProductSkuMapping, product_id)


def get_many(session: Session, ids: List[int]) -> List[ProductSkuMapping]:
    """Mappings for the given ids; unknown ids are skipped."""
    if not ids:
        return []
    return list(
        session.exec(
            select(ProductSkuMapping).where(ProductSkuMapping.id.in_(ids))  # type: ignore
        ).all()
    )


def find_by_product_name(session: Session, product_name: str) -> List[ProductSkuMapping]:
    """Every SKU mapping registered under one product name."""
    return list(
        session.exec(
            select(ProductSkuMapping).where(
                ProductSkuMapping.product_name == product_name
            )
        ).all()
    )


def create_product(session: Session, data: ProductIn) -> ProductSkuMapping:
    product = ProductSkuMapping(**data.model_dump())
    session.add(product)
    session.commit()
    session.refresh(product)
    logger.info(f"Registered product {product.id}: {product.product_name}")
    return product


def update_product(
    session: Session, product_id: int, data: ProductIn
) -> Optional[ProductSkuMapping]:
    product = session.get(ProductSkuMapping, product_id)
    if product is None:
        return None
    for field, value in data.model_dump().items():
        setattr(product, field, value)
    product.updated_at = datetime.now(timezone.utc)
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def delete_product(session: Session, product_id: int) -> bool:
    product = session.get(ProductSkuMapping, product_id)
    if product is None:
        return False
    session.delete(product)
    session.commit()
    logger.info(f"Deleted product {product_id}")
    return True
