"""MallBoard — Event Flag Routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from mallboard.database import get_session
from mallboard.store import flags as flag_store
from mallboard.store.flags import FlagIn

router = APIRouter(prefix="/flags", tags=["Flags"])


@router.get("")
async def list_flags(session: Session = Depends(get_session)):
    """All flags, newest date first."""
    flags = flag_store.list_flags(session)
    return {
        "status": "success",
        "count": len(flags),
        "flags": [f.model_dump(mode="json") for f in flags],
    }


@router.post("", status_code=201)
async def create_flag(data: FlagIn, session: Session = Depends(get_session)):
    flag = flag_store.create_flag(session, data)
    return {"status": "success", "flag": flag.model_dump(mode="json")}


@router.get("/{flag_id}")
async def get_flag(flag_id: int, session: Session = Depends(get_session)):
    flag = flag_store.get_flag(session, flag_id)
    if flag is None:
        raise HTTPException(status_code=404, detail="Flag not found")
    return {"status": "success", "flag": flag.model_dump(mode="json")}


@router.put("/{flag_id}")
async def update_flag(flag_id: int, data: FlagIn, session: Session = Depends(get_session)):
    flag = flag_store.update_flag(session, flag_id, data)
    if flag is None:
        raise HTTPException(status_code=404, detail="Flag not found")
    return {"status": "success", "flag": flag.model_dump(mode="json")}


@router.delete("/{flag_id}")
async def delete_flag(flag_id: int, session: Session = Depends(get_session)):
    if not flag_store.delete_flag(session, flag_id):
        raise HTTPException(status_code=404, detail="Flag not found")
    return {"status": "success", "deleted": flag_id}
