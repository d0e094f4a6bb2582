from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel

from .session import Message


class PostMessageRequest(BaseModel):
    content: str


class PostMessageResponse(BaseModel):
    accepted: bool
    session_id: Optional[str] = None
    user: Optional[Message] = None
    bot: Optional[Message] = None


class MessagesPage(BaseModel):
    items: List[Message]
    next_cursor: Optional[int] = None
