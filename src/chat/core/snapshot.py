from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from chat.core.state import Message, Session, SessionCollection
from chat.errors import SnapshotError

SNAPSHOT_VERSION = 1


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MessageDoc(BaseModel):
    role: str = Field(pattern=r"^(user|bot)$")
    content: str
    timestamp: datetime
    is_error: bool = False

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class SessionDoc(BaseModel):
    id: str = Field(min_length=1)
    title: str
    created_at: datetime
    last_updated_at: datetime
    messages: List[MessageDoc] = []

    @field_validator("created_at", "last_updated_at")
    @classmethod
    def _instants_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class CollectionDoc(BaseModel):
    version: int = SNAPSHOT_VERSION
    active_id: Optional[str] = None
    sessions: List[SessionDoc] = []

    @model_validator(mode="after")
    def _unique_ids(self) -> "CollectionDoc":
        ids = [s.id for s in self.sessions]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate session ids")
        return self


def to_doc(collection: SessionCollection) -> CollectionDoc:
    return CollectionDoc(
        active_id=collection.active_id,
        sessions=[
            SessionDoc(
                id=s.id,
                title=s.title,
                created_at=s.created_at,
                last_updated_at=s.last_updated_at,
                messages=[
                    MessageDoc(role=m.role, content=m.content, timestamp=m.timestamp, is_error=m.is_error)
                    for m in s.messages
                ],
            )
            for s in collection.sessions
        ],
    )


def from_doc(doc: CollectionDoc) -> SessionCollection:
    return SessionCollection(
        active_id=doc.active_id,
        sessions=[
            Session(
                id=s.id,
                title=s.title,
                created_at=s.created_at,
                last_updated_at=s.last_updated_at,
                messages=[
                    Message(role=m.role, content=m.content, timestamp=m.timestamp, is_error=m.is_error)
                    for m in s.messages
                ],
            )
            for s in doc.sessions
        ],
    )


def encode_collection(collection: SessionCollection) -> bytes:
    """Serialize a SessionCollection to the persisted JSON document."""
    return to_doc(collection).model_dump_json().encode("utf-8")


def decode_collection(data: Union[bytes, str, Mapping[str, Any], SessionCollection]) -> SessionCollection:
    """Parse and validate a persisted document; raise SnapshotError when malformed.

    An in-memory SessionCollection is accepted too and goes through the same checks.
    """
    try:
        if isinstance(data, SessionCollection):
            doc = CollectionDoc.model_validate(to_doc(data).model_dump())
        elif isinstance(data, Mapping):
            doc = CollectionDoc.model_validate(data)
        else:
            doc = CollectionDoc.model_validate_json(data)
    except (ValidationError, ValueError, TypeError) as e:
        raise SnapshotError(f"Malformed session snapshot: {e}") from e
    return from_doc(doc)
