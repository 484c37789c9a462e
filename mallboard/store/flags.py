"""MallBoard — Event Flag Registry."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from mallboard.core.dates import validate_date
from mallboard.models.catalog_models import EventFlag
from mallboard.core.logging import get_logger

logger = get_logger("store.flags")


class FlagIn(BaseModel):
    """Create / replace payload for an event flag."""

    name: str
    date: str
    description: str = ""

    @field_validator("name")
    @classmethod
    def _require_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("date")
    @classmethod
    def _check_date(cls, v: str) -> str:
        if validate_date(v) is None:
            raise ValueError("date must be YYYY-MM-DD")
        return v


def list_flags(session: Session) -> List[EventFlag]:
    """All flags, newest date first."""
    flags = list(session.exec(select(EventFlag)).all())
    # Sorted here rather than in SQL: ties keep insertion order
    flags.sort(key=lambda f: f.date, reverse=True)
    return flags


def list_flags_in_range(session: Session, date_start: str, date_stop: str) -> List[EventFlag]:
    """Flags with ``date_start <= date <= date_stop``, oldest first."""
    return list(
        session.exec(
            select(EventFlag)
            .where(EventFlag.date >= date_start, EventFlag.date <= date_stop)
            .order_by(EventFlag.date, EventFlag.id)  # type: ignore
        ).all()
    )


def get_flag(session: Session, flag_id: int) -> Optional[EventFlag]:
    return session.get(EventFlag, flag_id)


def create_flag(session: Session, data: FlagIn) -> EventFlag:
    flag = EventFlag(**data.model_dump())
    session.add(flag)
    session.commit()
    session.refresh(flag)
    logger.info(f"Created flag {flag.id} '{flag.name}' on {flag.date}")
    return flag


def update_flag(session: Session, flag_id: int, data: FlagIn) -> Optional[EventFlag]:
    flag = session.get(EventFlag, flag_id)
    if flag is None:
        return None
    flag.name = data.name
    flag.date = data.date
    flag.description = data.description
    flag.updated_at = datetime.now(timezone.utc)
    session.add(flag)
    session.commit()
    session.refresh(flag)
    return flag


def delete_flag(session: Session, flag_id: int) -> bool:
    flag = session.get(EventFlag, flag_id)
    if flag is None:
        return False
    session.delete(flag)
    session.commit()
    logger.info(f"Deleted flag {flag_id}")
    return True
