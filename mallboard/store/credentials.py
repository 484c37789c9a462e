"""MallBoard — Credential Settings Store.

The ``mall_credentials`` document is read and written as a whole. Stored
content is decoded through ``CredentialSettings`` so that a malformed document
fails loudly instead of turning into empty fields.
"""

from datetime import datetime, timezone

from pydantic import ValidationError
from sqlmodel import Session

from mallboard.core.malls import Mall
from mallboard.models.catalog_models import (
    CredentialSettings,
    MallCredential,
    SettingsDocument,
)
from mallboard.core.logging import get_logger

logger = get_logger("store.credentials")

CREDENTIALS_KEY = "mall_credentials"
SECRET_MASK = "********"
_SECRET_FIELDS = ("password", "api_key", "service_secret", "license_key")


class CorruptDocumentError(Exception):
    """Raised when a stored document does not match its schema."""

    def __init__(self, key: str, detail: str):
        self.key = key
        super().__init__(f"Stored document '{key}' is malformed: {detail}")


class MissingCredentialsError(Exception):
    """Raised when a marketplace call needs credentials that are not set."""

    def __init__(self, mall: Mall, fields: tuple[str, ...]):
        self.mall = mall
        self.fields = fields
        super().__init__(
            f"{mall.value} credentials are not configured ({', '.join(fields)})"
        )


def load_credentials(session: Session) -> CredentialSettings:
    """Read the credentials document; absent document means all blank."""
    doc = session.get(SettingsDocument, CREDENTIALS_KEY)
    if doc is None:
        return CredentialSettings()
    try:
        return CredentialSettings.model_validate_json(doc.payload_json)
    except ValidationError as e:
        logger.error(f"Credentials document failed validation: {e}")
        raise CorruptDocumentError(CREDENTIALS_KEY, str(e)) from e


def save_credentials(session: Session, incoming: CredentialSettings) -> CredentialSettings:
    """Overwrite the document.

    A secret sent back as the mask keeps its stored value, so a masked read
    can be edited and saved without wiping secrets.
    """
    current = load_credentials(session).model_dump()
    merged = incoming.model_dump()
    for mall, fields in merged.items():
        stored = current[mall]
        for name in _SECRET_FIELDS:
            if fields[name] == SECRET_MASK:
                fields[name] = stored[name]
    result = CredentialSettings.model_validate(merged)

    doc = session.get(SettingsDocument, CREDENTIALS_KEY)
    if doc is None:
        doc = SettingsDocument(key=CREDENTIALS_KEY, payload_json=result.model_dump_json())
    else:
        doc.payload_json = result.model_dump_json()
        doc.updated_at = datetime.now(timezone.utc)
    session.add(doc)
    session.commit()
    logger.info("Mall credentials saved")
    return result


def require_credential(
    credentials: CredentialSettings, mall: Mall, *fields: str
) -> MallCredential:
    """Return the mall's credential, or raise if any named field is blank."""
    cred = credentials.for_mall(mall)
    missing = tuple(f for f in fields if not getattr(cred, f).strip())
    if missing:
        raise MissingCredentialsError(mall, missing)
    return cred
