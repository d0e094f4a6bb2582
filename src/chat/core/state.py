# core/state.py

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

ROLE_USER = "user"
ROLE_BOT = "bot"
ROLES = (ROLE_USER, ROLE_BOT)

# Title every session starts with until its first user message arrives
DEFAULT_TITLE = "New Chat"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------- Config ----------
@dataclass
class Config:
    profile: str
    provider: str
    model: str
    max_tokens: int
    storage_dir: Path = Path("runtime")
    storage_key: str = "aiChatHistory"
    answer_delay_s: float = 1.5
    max_input_chars: int = 2000
    title_max_chars: int = 30
    log_level: str = "INFO"


# ---------- Message ----------
@dataclass(frozen=True)
class Message:
    role: str  # user | bot
    content: str
    timestamp: datetime
    is_error: bool = False


# ---------- Session ----------
@dataclass
class Session:
    id: str
    title: str
    created_at: datetime
    last_updated_at: datetime
    messages: List[Message] = field(default_factory=list)


# ---------- Session Collection ----------
@dataclass
class SessionCollection:
    sessions: List[Session] = field(default_factory=list)  # newest first
    active_id: Optional[str] = None
