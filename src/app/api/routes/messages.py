from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from chat.core.controller import ConversationController
from chat.core.state import Config
from chat.errors import ConversationBusy
from ...state import get_config, get_controller
from ...schemas.message import PostMessageRequest, PostMessageResponse, MessagesPage
from ...schemas.session import Message as MessageSchema


router = APIRouter()


@router.get("/sessions/{session_id}/messages", response_model=MessagesPage)
async def list_messages(
    session_id: str,
    cursor: int | None = None,
    limit: int = 50,
    ctl: ConversationController = Depends(get_controller),
) -> MessagesPage:
    s = ctl.store.get_session(session_id)
    if not s:
        raise HTTPException(status_code=404, detail="Session not found")
    start = max(0, int(cursor or 0))
    end = min(start + max(1, limit), len(s.messages))
    items = [MessageSchema.build(m, ctl.display(m)) for m in s.messages[start:end]]
    next_cursor = end if end < len(s.messages) else None
    return MessagesPage(items=items, next_cursor=next_cursor)


@router.post("/messages", response_model=PostMessageResponse)
async def post_message(
    payload: PostMessageRequest,
    ctl: ConversationController = Depends(get_controller),
    cfg: Config = Depends(get_config),
) -> PostMessageResponse:
    if len(payload.content) > cfg.max_input_chars:
        raise HTTPException(status_code=422, detail=f"Message exceeds {cfg.max_input_chars} characters")
    try:
        turn = await ctl.submit(payload.content)
    except ConversationBusy:
        raise HTTPException(status_code=409, detail="An answer is still being generated")
    if turn is None:
        return PostMessageResponse(accepted=False)
    return PostMessageResponse(
        accepted=True,
        session_id=turn.session_id,
        user=MessageSchema.build(turn.user, ctl.display(turn.user)),
        bot=MessageSchema.build(turn.bot, ctl.display(turn.bot)) if turn.bot else None,
    )
