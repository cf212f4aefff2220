from __future__ import annotations

from enum import Enum
from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field


class Sender(str, Enum):
    harini = "harini"
    deva = "deva"


class NoteCreate(BaseModel):
    # Kept as plain strings so validate_note can report its own reasons
    sender: str = Field("", description="One of the two chat identities")
    message: str = Field("", description="Message body, 1-500 characters after trimming")
    parent_id: Optional[int] = Field(None, description="Note being replied to, null for a root note")


class NoteUpdate(BaseModel):
    message: str = Field("", description="New message body")


class NoteDraft(BaseModel):
    sender: Sender
    message: str


class NoteRead(BaseModel):
    id: int
    sender: str
    message: str
    parent_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
        validate_by_name = True


class NoteNode(NoteRead):
    replies: List[NoteNode] = Field(default_factory=list)


class NoteForest(BaseModel):
    roots: List[NoteNode] = Field([], description="Root notes with nested replies")
    orphans: List[NoteRead] = Field([], description="Notes not reachable from any root")


class ThreadEntry(BaseModel):
    depth: int
    note: NoteRead
    reply_count: int = 0


NoteNode.model_rebuild()
