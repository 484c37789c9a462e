"""MallBoard — Per-request context.

Carries what the caller is allowed to see for one request, resolved from
headers by a FastAPI dependency instead of living in global state.
"""

from typing import Optional

from fastapi import Header
from pydantic import BaseModel

DATA_MODE_LIVE = "live"
DATA_MODE_DEMO = "demo"


class RequestContext(BaseModel):
    """Explicit request-scoped session information."""

    data_mode: str = DATA_MODE_LIVE
    user: str = ""

    @property
    def is_demo(self) -> bool:
        return self.data_mode == DATA_MODE_DEMO


def get_request_context(
    x_data_mode: Optional[str] = Header(None),
    x_user: Optional[str] = Header(None),
) -> RequestContext:
    """Dependency — build the context from ``X-Data-Mode`` / ``X-User``."""
    mode = (x_data_mode or DATA_MODE_LIVE).strip().lower()
    if mode not in (DATA_MODE_LIVE, DATA_MODE_DEMO):
        mode = DATA_MODE_LIVE
    return RequestContext(data_mode=mode, user=(x_user or "").strip())
