"""Health check — service status and which credentials are configured."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from config.settings import get_settings
from services.index_queue import get_indexing_queue

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health():
    settings = get_settings()
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "envCheck": {
            "hasPortkeyKey": bool(settings.portkey_api_key),
            "hasPortkeyBaseUrl": bool(settings.portkey_base_url),
            "hasAiModel": bool(settings.ai_model),
            "hasInternalSecret": bool(settings.internal_api_secret),
        },
        "storeType": settings.store_type,
        "pendingIndexTasks": get_indexing_queue().pending_count,
    }
