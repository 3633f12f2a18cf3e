"""Dependency injection for FastAPI endpoints"""

import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request
from dealer_gateway.config import settings


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def verify_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    """Reject callers whose X-API-Key does not match the configured key"""
    if not settings.api_key:
        return
    # Compare bytes: headers arrive latin-1 decoded and may hold non-ASCII text
    if x_api_key is None or not secrets.compare_digest(
        x_api_key.encode("utf-8"), settings.api_key.encode("utf-8")
    ):
        raise HTTPException(status_code=401, detail="Invalid API key")
