"""Shared-secret verification for service-to-service endpoints."""

from __future__ import annotations

import hmac
import logging

from fastapi import HTTPException, Request

from config.settings import get_settings

logger = logging.getLogger(__name__)


def verify_internal_secret(request: Request) -> None:
    """Verify the X-Internal-Secret header for internal calls."""
    settings = get_settings()
    if not settings.internal_api_secret:
        logger.warning("INTERNAL_API_SECRET not configured — internal endpoints unprotected")
        return

    provided = request.headers.get("X-Internal-Secret", "")
    if not hmac.compare_digest(provided, settings.internal_api_secret):
        raise HTTPException(status_code=403, detail="Invalid internal secret")
