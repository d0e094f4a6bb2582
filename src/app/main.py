from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chat.core.config import load_config
from chat.core.state import Config
from chat.llm.providers import AnswerProvider
from chat.storage.kv import DurableStore

from .api.routes.health import router as health_router
from .api.routes.sessions import router as sessions_router
from .api.routes.messages import router as messages_router
from .state import build_controller


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def create_app(
    cfg: Optional[Config] = None,
    *,
    durable: Optional[DurableStore] = None,
    provider: Optional[AnswerProvider] = None,
) -> FastAPI:
    """Build the API. Serve with ``uvicorn app.main:create_app --factory``."""
    cfg = cfg or load_config(os.getenv("CHAT_PROFILE", "default"))
    setup_logging(cfg.log_level, os.getenv("CHAT_LOG_FILE"))

    app = FastAPI(title="Chat Assistant API", version=os.getenv("APP_VERSION", "0.1.0"))

    # CORS for local dev and typical frontend origins
    web_origin = os.getenv("WEB_ORIGIN", "http://localhost:5173")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[web_origin, "http://localhost:3000", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = cfg
    app.state.controller = build_controller(cfg, durable=durable, provider=provider)

    app.include_router(health_router)
    app.include_router(sessions_router, prefix="/sessions", tags=["sessions"])
    app.include_router(messages_router, tags=["messages"])

    return app
