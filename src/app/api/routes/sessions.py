from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from chat.core.controller import ConversationController
from ...state import get_controller
from ...schemas.session import (
    CreateSessionResponse,
    ListSessionsResponse,
    Message as MessageSchema,
    Session as SessionSchema,
    SessionSummary,
    Stats,
)


router = APIRouter()


@router.post("/", response_model=CreateSessionResponse)
@router.post("", response_model=CreateSessionResponse)
async def create_session(ctl: ConversationController = Depends(get_controller)) -> CreateSessionResponse:
    sid = ctl.store.create_session()
    s = ctl.store.get_session(sid)
    return CreateSessionResponse(id=s.id, title=s.title, created_at=s.created_at)


@router.get("/", response_model=ListSessionsResponse)
@router.get("", response_model=ListSessionsResponse)
async def list_sessions(ctl: ConversationController = Depends(get_controller)) -> ListSessionsResponse:
    active_id = ctl.store.active_id
    items = [SessionSummary.build(s, active_id) for s in ctl.store.list_sessions()]
    return ListSessionsResponse(items=items, active_id=active_id, stats=Stats(**ctl.store.stats()))


@router.delete("/")
@router.delete("")
async def clear_sessions(ctl: ConversationController = Depends(get_controller)) -> dict:
    # Confirmation happens client-side before this call
    ctl.store.clear_all()
    return {"ok": True}


@router.get("/{session_id}", response_model=SessionSchema)
async def get_session(session_id: str, ctl: ConversationController = Depends(get_controller)) -> SessionSchema:
    s = ctl.store.get_session(session_id)
    if not s:
        raise HTTPException(status_code=404, detail="Session not found")
    summary = SessionSummary.build(s, ctl.store.active_id)
    return SessionSchema(
        **summary.model_dump(),
        messages=[MessageSchema.build(m, ctl.display(m)) for m in s.messages],
    )


@router.post("/{session_id}/select")
async def select_session(session_id: str, ctl: ConversationController = Depends(get_controller)) -> dict:
    if not ctl.store.select_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"ok": True, "active_id": session_id}


@router.delete("/{session_id}")
async def delete_session(session_id: str, ctl: ConversationController = Depends(get_controller)) -> dict:
    if not ctl.store.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"ok": True, "active_id": ctl.store.active_id}
