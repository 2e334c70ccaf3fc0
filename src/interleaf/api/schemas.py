"""
API request/response schemas.

The block and event contracts are reused as-is; this module only adds the
envelopes the HTTP layer needs.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from interleaf.core.contracts.block import Block
from interleaf.core.editor.interpreter import Transition
from interleaf.publish import TopicInput


class CaretView(BaseModel):
    block_id: str
    offset: int


class DocumentView(BaseModel):
    """Current state of an editing session."""

    id: str
    revision: int
    blocks: list[Block]
    caret: CaretView | None = None
    awaiting_image: str | None = None


class CreateDocumentRequest(BaseModel):
    """Optional initial content; normalized on creation."""

    blocks: list[Block] = Field(default_factory=list)


class EventResponse(BaseModel):
    """Result of applying one editor event."""

    transition: Transition | None
    document: DocumentView


class PublishRequest(BaseModel):
    title: str
    course_id: str


class PublishResponse(BaseModel):
    topics: list[TopicInput]
