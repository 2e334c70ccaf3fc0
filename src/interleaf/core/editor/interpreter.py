"""
Input Event Interpreter

Maps raw editing events onto Mutation Engine calls. One event produces at
most one mutation pass:

    read store -> compute EditResult -> store.apply (normalize, on_change)
               -> take the caret placement -> adapter.focus (exactly once)

State
-----
``Idle`` until a block receives focus, then ``Editing(block_id, offset)``.
Paste and drop target the focused block; with no focus they target the last
block of the document.

Transitions
-----------
``split``, ``merge``, ``insert_image``, ``remove_block``, ``clear_in_place``.
Events that only edit content (typing, image captions) or that the text
surface handles itself return ``None``.

Reserved command
----------------
Enter inside a text block whose trimmed, lower-cased content equals
``settings.image_command`` clears the block and arms a pending image request
for it. The next :class:`ImageChosen` event inserts the image after that
block. The command check runs before the Enter split.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from interleaf.core.contracts.block import ImageBlock, TextBlock, UploadStatus, is_image
from interleaf.core.contracts.caret import EditResult
from interleaf.core.contracts.events import (
    Drop,
    EditorEvent,
    Focus,
    ImageChosen,
    ImageMeta,
    ImageResource,
    KeyDown,
    Paste,
    RemoveBlock,
    TextInput,
)
from interleaf.core.settings import get_logger, load_settings
from interleaf.media.preview import derive_preview
from interleaf.media.upload_queue import UploadQueue

from . import mutations
from .render import RenderAdapter
from .store import BlockStore

logger = get_logger("interleaf.interpreter")


class Transition(str, Enum):
    """Structural transitions of the editor state machine."""

    SPLIT = "split"
    MERGE = "merge"
    INSERT_IMAGE = "insert_image"
    REMOVE_BLOCK = "remove_block"
    CLEAR_IN_PLACE = "clear_in_place"


@dataclass(frozen=True, slots=True)
class Idle:
    """No block has focus."""


@dataclass(frozen=True, slots=True)
class Editing:
    """The caret is inside ``block_id`` at ``offset``."""

    block_id: str
    offset: int = 0


EditorState = Idle | Editing

PreviewFn = Callable[[ImageResource], str]


class InputInterpreter:
    """Drive a :class:`BlockStore` from editor events."""

    def __init__(
        self,
        store: BlockStore,
        adapter: RenderAdapter,
        *,
        uploads: UploadQueue | None = None,
        preview: PreviewFn = derive_preview,
        image_command: str | None = None,
    ) -> None:
        self.store = store
        self.adapter = adapter
        self.uploads = uploads
        self.preview = preview
        self.image_command = (image_command or load_settings().image_command).strip().lower()
        self.state: EditorState = Idle()
        self.awaiting_image: str | None = None

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    def dispatch(self, event: EditorEvent) -> Transition | None:
        """Interpret one event; returns the structural transition taken."""
        if isinstance(event, KeyDown):
            return self._key_down(event)
        if isinstance(event, TextInput):
            self._commit(mutations.update_text(self.store.blocks, event.block_id, event.content))
            self.adapter.autosize(event.block_id)
            return None
        if isinstance(event, Focus):
            self.state = Editing(event.block_id, event.offset)
            return None
        if isinstance(event, Paste):
            return self._image_payload(event.items)
        if isinstance(event, Drop):
            return self._image_payload(event.files)
        if isinstance(event, ImageChosen):
            return self._image_chosen(event.resource)
        if isinstance(event, RemoveBlock):
            index = self.store.index_of(event.block_id)
            if index < 0:
                return None
            return self._run(
                mutations.remove_block(self.store.blocks, event.block_id),
                Transition.REMOVE_BLOCK,
            )
        if isinstance(event, ImageMeta):
            self._commit(
                mutations.update_image(
                    self.store.blocks,
                    event.block_id,
                    caption=event.caption,
                    alt_text=event.alt_text,
                )
            )
            return None
        return None  # pragma: no cover - exhaustive over EditorEvent

    # ------------------------------------------------------------------ #
    # Keys
    # ------------------------------------------------------------------ #

    def _selection(self, event: KeyDown) -> tuple[int, int]:
        if event.offset is not None:
            start = event.offset
            end = event.selection_end if event.selection_end is not None else start
            return start, end
        return self.adapter.selection(event.block_id)

    def _key_down(self, event: KeyDown) -> Transition | None:
        index = self.store.index_of(event.block_id)
        if index < 0:
            return None
        block = self.store.blocks[index]
        if not isinstance(block, TextBlock):
            return None
        start, end = self._selection(event)
        self.state = Editing(event.block_id, start)

        if event.key == "Enter" and not event.shift:
            if block.content.strip().lower() == self.image_command:
                self.awaiting_image = block.id
                return self._run(
                    mutations.clear_text(self.store.blocks, index), Transition.CLEAR_IN_PLACE
                )
            return self._run(
                mutations.split_at_caret(self.store.blocks, index, start), Transition.SPLIT
            )

        if event.key == "Backspace":
            return self._backspace(index, start, end)

        return None

    def _backspace(self, index: int, start: int, end: int) -> Transition | None:
        blocks = self.store.blocks
        result = mutations.backspace(blocks, index, start, end)
        if result is None:
            return None

        if not result.changed:
            transition = None
        elif len(result.blocks) == len(blocks):
            transition = Transition.CLEAR_IN_PLACE
        elif index > 0 and is_image(blocks[index - 1]):
            transition = Transition.REMOVE_BLOCK
        elif index > 0:
            transition = Transition.MERGE
        else:
            transition = Transition.REMOVE_BLOCK
        return self._run(result, transition)

    # ------------------------------------------------------------------ #
    # Images
    # ------------------------------------------------------------------ #

    def _image_payload(self, items: list[ImageResource]) -> Transition | None:
        resource = next((r for r in items if r.is_image), None)
        if resource is None:
            return None
        return self.insert_image(self._anchor_index(), resource)

    def _image_chosen(self, resource: ImageResource) -> Transition | None:
        block_id, self.awaiting_image = self.awaiting_image, None
        index = self.store.index_of(block_id) if block_id else -1
        if index < 0:
            index = self._anchor_index()
        return self.insert_image(index, resource)

    def _anchor_index(self) -> int:
        if isinstance(self.state, Editing):
            index = self.store.index_of(self.state.block_id)
            if index >= 0:
                return index
        return len(self.store.blocks) - 1

    def insert_image(self, index: int, resource: ImageResource) -> Transition | None:
        """Insert ``resource`` as a pending image after the block at ``index``."""
        image = ImageBlock(
            preview_uri=self.preview(resource),
            upload_status=UploadStatus.PENDING,
            alt_text=resource.filename,
        )
        transition = self._run(
            mutations.insert_image_after(self.store.blocks, index, image),
            Transition.INSERT_IMAGE,
        )
        if self.uploads is not None:
            self.uploads.enqueue(image.id, resource)
        return transition

    # ------------------------------------------------------------------ #
    # Commit helpers
    # ------------------------------------------------------------------ #

    def _commit(self, result: EditResult) -> None:
        self.store.apply(result)

    def _run(self, result: EditResult, transition: Transition | None) -> Transition | None:
        """Commit ``result`` and hand its caret placement to the adapter."""
        self.store.apply(result)
        caret = self.store.take_caret()
        if caret is not None:
            self.adapter.focus(caret.block_id, caret.offset)
            self.adapter.autosize(caret.block_id)
            self.state = Editing(caret.block_id, caret.offset)
        if transition is not None:
            logger.debug("transition=%s state=%s", transition.value, self.state)
        return transition


__all__ = ["Editing", "EditorState", "Idle", "InputInterpreter", "Transition"]
