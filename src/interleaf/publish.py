"""
Topic payloads for publishing a document.

The editor does not own a storage format. When the surrounding application
saves, each block becomes one "create topic" request for the external topics
service:

- text blocks are trimmed; blank ones are skipped,
- image blocks must already carry an uploaded ``resource_ref``,
- every payload shares the document title and course id.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from interleaf.core.contracts.block import Block, ImageBlock, TextBlock, UploadStatus


class PublishError(ValueError):
    """Raised when a document cannot be turned into topic payloads."""


class TopicInput(BaseModel):
    """A single create-topic request."""

    course_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    kind: Literal["TEXT", "IMAGE"]
    text: str | None = None
    image_url: str | None = None

    @model_validator(mode="after")
    def _payload_matches_kind(self) -> TopicInput:
        """TEXT topics carry text only, IMAGE topics an image URL only."""
        if self.kind == "TEXT" and (not self.text or self.image_url is not None):
            raise ValueError("TEXT topics need non-empty text and no image_url")
        if self.kind == "IMAGE" and (not self.image_url or self.text is not None):
            raise ValueError("IMAGE topics need an image_url and no text")
        return self


def to_topic_inputs(title: str, course_id: str, blocks: Sequence[Block]) -> list[TopicInput]:
    """Convert ``blocks`` into ordered topic payloads.

    Raises
    ------
    PublishError
        If the title is blank or an image has not finished uploading.
    """
    title = title.strip()
    if not title:
        raise PublishError("A title is required")

    out: list[TopicInput] = []
    for block in blocks:
        if isinstance(block, TextBlock):
            text = block.content.strip()
            if text:
                out.append(TopicInput(course_id=course_id, title=title, kind="TEXT", text=text))
        elif isinstance(block, ImageBlock):
            if block.upload_status is not UploadStatus.DONE or not block.resource_ref:
                raise PublishError(
                    f"Image block {block.id} is not uploaded (status={block.upload_status.value})"
                )
            out.append(
                TopicInput(
                    course_id=course_id, title=title, kind="IMAGE", image_url=block.resource_ref
                )
            )
    return out


__all__ = ["PublishError", "TopicInput", "to_topic_inputs"]
