"""
Block Contracts

A document is an ordered sequence of blocks. Each block is an immutable
Pydantic value object tagged by ``kind``:

- :class:`TextBlock`  : an editable run of plain text.
- :class:`ImageBlock` : an image with a local preview and an upload status.

Identity
--------
``id`` is stable for the whole life of a block. Array positions shift on every
insert/remove, so the caret is always re-targeted by id, never by index.
Updates go through ``model_copy(update=...)`` which keeps the id.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def new_block_id() -> str:
    """Return a fresh opaque block id."""
    return uuid.uuid4().hex[:12]


class UploadStatus(str, Enum):
    """Lifecycle of the resource backing an :class:`ImageBlock`."""

    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


class TextBlock(BaseModel):
    """A block of plain text content."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_block_id, description="Stable block identifier.")
    kind: Literal["text"] = "text"
    content: str = Field(default="", description="Raw text; the caret indexes into it.")


class ImageBlock(BaseModel):
    """An image block whose resource is uploaded asynchronously."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_block_id, description="Stable block identifier.")
    kind: Literal["image"] = "image"
    resource_ref: str | None = Field(
        default=None, description="Reference returned by the upload collaborator."
    )
    preview_uri: str | None = Field(
        default=None, description="Locally derived preview (data: URI) shown before upload."
    )
    upload_status: UploadStatus = Field(default=UploadStatus.PENDING)
    caption: str = Field(default="")
    alt_text: str = Field(default="")


Block = Annotated[TextBlock | ImageBlock, Field(discriminator="kind")]

_DOCUMENT_ADAPTER: TypeAdapter[list[Block]] = TypeAdapter(list[Block])


def is_text(block: Block | None) -> bool:
    """Return ``True`` if ``block`` is a :class:`TextBlock`."""
    return isinstance(block, TextBlock)


def is_image(block: Block | None) -> bool:
    """Return ``True`` if ``block`` is an :class:`ImageBlock`."""
    return isinstance(block, ImageBlock)


def index_of(blocks: Sequence[Block], block_id: str) -> int:
    """Return the position of ``block_id`` in ``blocks`` or ``-1``."""
    for i, block in enumerate(blocks):
        if block.id == block_id:
            return i
    return -1


def empty_document() -> list[Block]:
    """The initial document: one empty text block."""
    return [TextBlock()]


def document_from_payload(payload: object) -> list[Block]:
    """Validate a JSON-like list of block dicts into block models."""
    return _DOCUMENT_ADAPTER.validate_python(payload)


def document_to_payload(blocks: Sequence[Block]) -> list[dict[str, object]]:
    """Dump blocks into JSON-safe dicts (enums as values)."""
    return [b.model_dump(mode="json") for b in blocks]


__all__ = [
    "Block",
    "ImageBlock",
    "TextBlock",
    "UploadStatus",
    "document_from_payload",
    "document_to_payload",
    "empty_document",
    "index_of",
    "is_image",
    "is_text",
    "new_block_id",
]
