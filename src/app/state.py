from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request

from chat.core.config import load_config
from chat.core.controller import ConversationController
from chat.core.sessions import SessionStore
from chat.core.state import Config
from chat.llm.providers import AnswerProvider, build_answer_provider
from chat.storage.kv import DurableStore, FileKV

logger = logging.getLogger("app.state")


def build_controller(
    cfg: Optional[Config] = None,
    *,
    durable: Optional[DurableStore] = None,
    provider: Optional[AnswerProvider] = None,
) -> ConversationController:
    """Wire store, durable backend and answer provider; restore persisted sessions."""
    cfg = cfg or load_config()
    store = SessionStore(
        durable if durable is not None else FileKV(cfg.storage_dir),
        key=cfg.storage_key,
        title_max_chars=cfg.title_max_chars,
    )
    if store.load():
        logger.info("Restored %d session(s) from key %s", store.stats()["sessions"], cfg.storage_key)
    return ConversationController(store, provider or build_answer_provider(cfg))


def get_controller(request: Request) -> ConversationController:
    return request.app.state.controller


def get_config(request: Request) -> Config:
    return request.app.state.config
