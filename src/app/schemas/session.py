from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from chat.core import state
from chat.core.formatting import format_relative_date, format_time


class Message(BaseModel):
    role: str = Field(pattern=r"^(user|bot)$")
    content: str
    timestamp: datetime
    is_error: bool = False
    html: str
    time: str

    @classmethod
    def build(cls, m: state.Message, html: str) -> "Message":
        return cls(
            role=m.role,
            content=m.content,
            timestamp=m.timestamp,
            is_error=m.is_error,
            html=html,
            time=format_time(m.timestamp),
        )


class SessionSummary(BaseModel):
    id: str
    title: str
    created_at: datetime
    last_updated_at: datetime
    label: str
    message_count: int
    active: bool = False

    @classmethod
    def build(cls, s: state.Session, active_id: Optional[str]) -> "SessionSummary":
        return cls(
            id=s.id,
            title=s.title,
            created_at=s.created_at,
            last_updated_at=s.last_updated_at,
            label=format_relative_date(s.created_at),
            message_count=len(s.messages),
            active=s.id == active_id,
        )


class Session(SessionSummary):
    messages: List[Message] = []


class Stats(BaseModel):
    sessions: int
    messages: int


class CreateSessionResponse(BaseModel):
    id: str
    title: str
    created_at: datetime


class ListSessionsResponse(BaseModel):
    items: List[SessionSummary]
    active_id: Optional[str] = None
    stats: Stats
