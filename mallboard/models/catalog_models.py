"""MallBoard — Catalog, Flag & Settings Models."""

from datetime import datetime, timezone
from typing import Dict, Optional
from pydantic import BaseModel
from sqlmodel import SQLModel, Field

from mallboard.core.malls import MALLS, Mall


# ─────────────────────────────────────────────
# DATABASE MODELS
# ─────────────────────────────────────────────


class ProductSkuMapping(SQLModel, table=True):
    """A logical product and the marketplace item codes that roll up to it.

    A blank code means the product is not sold on that mall.
    """

    __tablename__ = "registered_products"

    id: Optional[int] = Field(default=None, primary_key=True)
    product_name: str = Field(index=True)
    sku_name: str = Field(default="", description="Optional SKU label")
    amazon_code: str = Field(default="")
    rakuten_code: str = Field(default="")
    qoo10_code: str = Field(default="")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def mall_codes(self) -> Dict[Mall, str]:
        """Non-blank codes, in stacking order."""
        codes: Dict[Mall, str] = {}
        for mall in MALLS:
            code = (getattr(self, f"{mall.value}_code") or "").strip()
            if code:
                codes[mall] = code
        return codes


class EventFlag(SQLModel, table=True):
    """A named annotation on the sales timeline."""

    __tablename__ = "event_flags"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    date: str = Field(index=True, description="YYYY-MM-DD")
    description: str = Field(default="")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SettingsDocument(SQLModel, table=True):
    """Key/value settings store; the payload is a JSON document."""

    __tablename__ = "settings"

    key: str = Field(primary_key=True)
    payload_json: str = Field(description="Document body as JSON")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS — Credentials document
# ─────────────────────────────────────────────


class MallCredential(BaseModel):
    """Login fields or API keys for one marketplace."""

    login_id: str = ""
    password: str = ""
    api_key: str = ""
    service_secret: str = ""
    license_key: str = ""

    model_config = {"extra": "forbid"}


class CredentialSettings(BaseModel):
    """The single global ``mall_credentials`` document."""

    amazon: MallCredential = MallCredential()
    rakuten: MallCredential = MallCredential()
    qoo10: MallCredential = MallCredential()

    model_config = {"extra": "forbid"}

    def for_mall(self, mall: Mall) -> MallCredential:
        return getattr(self, mall.value)

    def masked(self) -> "CredentialSettings":
        """Copy with every secret replaced by a fixed mask."""
        data = self.model_dump()
        for fields in data.values():
            for name in ("password", "api_key", "service_secret", "license_key"):
                if fields[name]:
                    fields[name] = "********"
        return CredentialSettings.model_validate(data)
