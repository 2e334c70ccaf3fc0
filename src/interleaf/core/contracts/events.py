"""
Editor Input Events

Raw editing events as reported by the editable surface. The interpreter turns
each of them into at most one mutation.

- ``key_down``     : a key press inside a text block (Enter, Backspace, ...).
- ``text_input``   : the surface changed a block's text (ordinary typing).
- ``focus``        : a block gained focus.
- ``paste``/``drop``: clipboard or drag payloads; image items are intercepted.
- ``image_chosen`` : the file picked after the reserved image command.
- ``remove_block`` : an explicit delete affordance (e.g. on an image).
- ``image_meta``   : caption / alt text edits on an image block.

Image bytes travel as base64 in JSON so the same models serve the HTTP API and
the CLI replay files.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Base64Bytes, BaseModel, Field, TypeAdapter

KeyName = Literal["Enter", "Backspace", "Delete", "Other"]


class ImageResource(BaseModel):
    """An image payload held locally until it is uploaded."""

    filename: str = Field(default="image.png")
    mime_type: str = Field(default="image/png")
    data: Base64Bytes = Field(..., repr=False)

    @property
    def is_image(self) -> bool:
        """Return True if the declared MIME type is an image type."""
        return self.mime_type.startswith("image/")

    @classmethod
    def from_path(cls, path: str | Path) -> ImageResource:
        """Read a local file into a resource, guessing its MIME type."""
        p = Path(path)
        mime, _ = mimetypes.guess_type(p.name)
        # Base64Bytes validates from encoded input; build the raw instance directly.
        return cls.model_construct(
            filename=p.name,
            mime_type=mime or "application/octet-stream",
            data=p.read_bytes(),
        )

    @classmethod
    def from_bytes(cls, data: bytes, *, mime_type: str, filename: str = "image") -> ImageResource:
        """Wrap raw bytes (e.g. a clipboard item) in a resource."""
        return cls.model_construct(filename=filename, mime_type=mime_type, data=data)


class KeyDown(BaseModel):
    """A key press inside a text block.

    ``offset`` and ``selection_end`` are optional: when absent the interpreter
    asks the render adapter for the current selection of ``block_id``.
    """

    type: Literal["key_down"] = "key_down"
    block_id: str
    key: KeyName
    shift: bool = False
    offset: int | None = None
    selection_end: int | None = None


class TextInput(BaseModel):
    """The surface replaced a block's text content."""

    type: Literal["text_input"] = "text_input"
    block_id: str
    content: str


class Focus(BaseModel):
    """A block received focus at ``offset``."""

    type: Literal["focus"] = "focus"
    block_id: str
    offset: int = 0


class Paste(BaseModel):
    """Clipboard paste; only the first image item is considered."""

    type: Literal["paste"] = "paste"
    items: list[ImageResource] = Field(default_factory=list)
    text: str | None = None


class Drop(BaseModel):
    """Files dropped on the editing surface."""

    type: Literal["drop"] = "drop"
    files: list[ImageResource] = Field(default_factory=list)


class ImageChosen(BaseModel):
    """The externally supplied file answering a pending image command."""

    type: Literal["image_chosen"] = "image_chosen"
    resource: ImageResource


class RemoveBlock(BaseModel):
    """Explicit removal of a block (e.g. an image delete button)."""

    type: Literal["remove_block"] = "remove_block"
    block_id: str


class ImageMeta(BaseModel):
    """Caption / alt text edits; ``None`` leaves a field untouched."""

    type: Literal["image_meta"] = "image_meta"
    block_id: str
    caption: str | None = None
    alt_text: str | None = None


EditorEvent = Annotated[
    KeyDown | TextInput | Focus | Paste | Drop | ImageChosen | RemoveBlock | ImageMeta,
    Field(discriminator="type"),
]

EVENT_ADAPTER: TypeAdapter[EditorEvent] = TypeAdapter(EditorEvent)
EVENT_LIST_ADAPTER: TypeAdapter[list[EditorEvent]] = TypeAdapter(list[EditorEvent])


__all__ = [
    "EVENT_ADAPTER",
    "EVENT_LIST_ADAPTER",
    "Drop",
    "EditorEvent",
    "Focus",
    "ImageChosen",
    "ImageMeta",
    "ImageResource",
    "KeyDown",
    "KeyName",
    "Paste",
    "RemoveBlock",
    "TextInput",
]
