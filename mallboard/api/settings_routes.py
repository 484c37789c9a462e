"""MallBoard — Mall Credential Settings Routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from mallboard.database import get_session
from mallboard.models.catalog_models import CredentialSettings
from mallboard.store.credentials import (
    CorruptDocumentError,
    load_credentials,
    save_credentials,
)
from mallboard.core.logging import get_logger

logger = get_logger("api.settings")

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/mall-credentials")
async def get_mall_credentials(session: Session = Depends(get_session)):
    """Current credentials with secrets masked."""
    try:
        credentials = load_credentials(session)
    except CorruptDocumentError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "success", "credentials": credentials.masked().model_dump()}


@router.put("/mall-credentials")
async def put_mall_credentials(
    credentials: CredentialSettings, session: Session = Depends(get_session)
):
    """Overwrite the whole credentials document.

    Secrets sent back as the mask keep their stored value.
    """
    try:
        saved = save_credentials(session, credentials)
    except CorruptDocumentError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "success", "credentials": saved.masked().model_dump()}
