"""
spotlight_api/core/auth.py
Admin gate for the write endpoints (force refresh, invalidate, schedule).
The rotation core itself never checks; routers attach require_admin.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException

from spotlight_api.core import config

log = logging.getLogger("auth")


async def require_admin(x_auth_token: Optional[str] = Header(None, alias=config.AUTH_HEADER)) -> None:
    if not x_auth_token:
        raise HTTPException(401, detail=f"Missing {config.AUTH_HEADER}")
    if not config.ADMIN_TOKEN or not hmac.compare_digest(x_auth_token.encode(), config.ADMIN_TOKEN.encode()):
        log.warning("Rejected admin request with bad token")
        raise HTTPException(403, detail="Admin only")
