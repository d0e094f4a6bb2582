from __future__ import annotations

from fastapi import APIRouter, Depends

from chat.core.state import Config
from ...state import get_config

router = APIRouter(tags=["meta"])


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/meta")
async def meta(cfg: Config = Depends(get_config)) -> dict:
    return {
        "app": "Chat Assistant API",
        "version": "0.1.0",
        "provider": cfg.provider,
        "model": cfg.model,
        "max_input_chars": cfg.max_input_chars,
    }
