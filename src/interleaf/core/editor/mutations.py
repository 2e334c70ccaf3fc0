"""
Mutation Engine

Pure operations over a block sequence. Every function:

- takes the current sequence (never mutates it),
- returns an :class:`EditResult` with the next sequence and, for structural
  changes, the caret placement the render layer should apply,
- ends by running the invariant passes (:func:`normalize`).

Ill-formed requests (unknown ids, out-of-range indexes or offsets, merges at
index 0) are clamped or turned into no-op results; nothing here raises.

Backspace
---------
:func:`backspace` is the deletion state machine. It returns ``None`` when the
key press is ordinary character deletion that the text surface handles itself.
"""

from __future__ import annotations

from collections.abc import Sequence

from interleaf.core.contracts.block import (
    Block,
    ImageBlock,
    TextBlock,
    UploadStatus,
    index_of,
    is_image,
    is_text,
)
from interleaf.core.contracts.caret import CaretPlacement, EditResult

from .invariants import normalize


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _finish(blocks: Sequence[Block], caret: CaretPlacement | None) -> EditResult:
    """Normalize ``blocks``; a caret requested by the repair pass wins."""
    seq, repair_caret = normalize(blocks)
    if repair_caret is not None:
        caret = repair_caret
    return EditResult(blocks=tuple(seq), caret=caret)


def _text_at(blocks: Sequence[Block], index: int) -> TextBlock | None:
    if 0 <= index < len(blocks):
        block = blocks[index]
        if isinstance(block, TextBlock):
            return block
    return None


def _nearest_text_caret(blocks: Sequence[Block], removed_index: int) -> CaretPlacement | None:
    """Caret for the text block closest to a removed position.

    Prefers the nearest text block before the gap (caret at its end), else the
    first one after it (caret at its start).
    """
    for block in reversed(blocks[:removed_index]):
        if isinstance(block, TextBlock):
            return CaretPlacement(block.id, len(block.content))
    for block in blocks[removed_index:]:
        if isinstance(block, TextBlock):
            return CaretPlacement(block.id, 0)
    return None


# ----------------------------------------------------------------------------
# Structural operations
# ----------------------------------------------------------------------------


def split_at_caret(blocks: Sequence[Block], index: int, offset: int) -> EditResult:
    """Split the text block at ``index`` into ``[0, offset)`` and ``[offset, len)``.

    The caret moves to offset 0 of the new (second) block. ``offset`` is
    clamped into ``[0, len]``; a non-text target is a no-op.
    """
    current = _text_at(blocks, index)
    if current is None:
        return EditResult.unchanged(blocks)

    offset = _clamp(offset, 0, len(current.content))
    head = current.model_copy(update={"content": current.content[:offset]})
    tail = TextBlock(content=current.content[offset:])

    seq = [*blocks[:index], head, tail, *blocks[index + 1 :]]
    return _finish(seq, CaretPlacement(tail.id, 0))


def merge_with_previous(blocks: Sequence[Block], index: int) -> EditResult:
    """Append the text block at ``index`` to the text block before it.

    The caret lands on the join point, i.e. the previous block's length
    before concatenation.
    """
    current = _text_at(blocks, index)
    previous = _text_at(blocks, index - 1) if index > 0 else None
    if current is None or previous is None:
        return EditResult.unchanged(blocks)

    join = len(previous.content)
    merged = previous.model_copy(update={"content": previous.content + current.content})

    seq = [*blocks[: index - 1], merged, *blocks[index + 1 :]]
    return _finish(seq, CaretPlacement(merged.id, join))


def insert_image_after(blocks: Sequence[Block], index: int, image: ImageBlock) -> EditResult:
    """Insert ``image`` at ``index + 1`` and make sure text follows it.

    When the slot after the image is not a text block an empty one is added.
    The caret goes to offset 0 of that following text block.
    """
    seq: list[Block] = list(blocks) if blocks else [TextBlock()]
    index = _clamp(index, 0, len(seq) - 1)

    seq.insert(index + 1, image)
    follower = seq[index + 2] if index + 2 < len(seq) else None
    if not isinstance(follower, TextBlock):
        follower = TextBlock()
        seq.insert(index + 2, follower)

    return _finish(seq, CaretPlacement(follower.id, 0))


def clear_text(blocks: Sequence[Block], index: int) -> EditResult:
    """Empty the text block at ``index`` in place; caret at offset 0."""
    current = _text_at(blocks, index)
    if current is None:
        return EditResult.unchanged(blocks)
    caret = CaretPlacement(current.id, 0)
    if current.content == "":
        return EditResult.unchanged(blocks, caret)

    seq = list(blocks)
    seq[index] = current.model_copy(update={"content": ""})
    return _finish(seq, caret)


def remove_image_before(blocks: Sequence[Block], index: int) -> EditResult:
    """Remove the image directly before the text block at ``index``.

    An empty current block folds into a text block preceding the image, so
    the caret stays at the same visual spot (the end of that text). Otherwise
    the caret stays at offset 0 of the current block.
    """
    current = _text_at(blocks, index)
    if current is None or index == 0 or not is_image(blocks[index - 1]):
        return EditResult.unchanged(blocks)

    before = _text_at(blocks, index - 2) if index >= 2 else None
    if before is not None and current.content == "":
        seq = [*blocks[: index - 1], *blocks[index + 1 :]]
        return _finish(seq, CaretPlacement(before.id, len(before.content)))

    seq = [*blocks[: index - 1], *blocks[index:]]
    return _finish(seq, CaretPlacement(current.id, 0))


def remove_block(blocks: Sequence[Block], block_id: str) -> EditResult:
    """Explicitly remove the block ``block_id``.

    The sole text block of a single-block document is cleared, never removed.
    Text blocks left adjacent by the removal are not merged.
    """
    index = index_of(blocks, block_id)
    if index < 0:
        return EditResult.unchanged(blocks)

    if len(blocks) == 1 and is_text(blocks[0]):
        return clear_text(blocks, 0)

    seq = [*blocks[:index], *blocks[index + 1 :]]
    return _finish(seq, _nearest_text_caret(seq, index))


# ----------------------------------------------------------------------------
# Backspace state machine
# ----------------------------------------------------------------------------


def backspace(
    blocks: Sequence[Block],
    index: int,
    offset: int,
    selection_end: int | None = None,
) -> EditResult | None:
    """Resolve a Backspace press inside the text block at ``index``.

    A selection spanning the whole non-empty content (from offset 0) is
    treated as a blank block: that text is what the key deletes.

    Returns
    -------
    EditResult | None
        ``None`` when the press is ordinary character deletion (or has nothing
        to delete) and belongs to the text surface.
    """
    current = _text_at(blocks, index)
    if current is None:
        return EditResult.unchanged(blocks)

    length = len(current.content)
    offset = _clamp(offset, 0, length)
    end = offset if selection_end is None else _clamp(selection_end, offset, length)
    whole = offset == 0 and length > 0 and end == length

    if offset > 0 or (end > offset and not whole):
        return None

    previous = blocks[index - 1] if index > 0 else None

    if is_image(previous):
        # Non-empty text shields the image from a stray keystroke.
        if current.content:
            return clear_text(blocks, index)
        return remove_image_before(blocks, index)

    if len(blocks) == 1:
        if whole:
            return clear_text(blocks, index)
        return EditResult.unchanged(blocks, CaretPlacement(current.id, 0))

    if is_text(previous):
        if whole:
            seq = list(blocks)
            seq[index] = current.model_copy(update={"content": ""})
            return merge_with_previous(seq, index)
        return merge_with_previous(blocks, index)

    if current.content == "" or whole:
        return remove_block(blocks, current.id)
    return None


# ----------------------------------------------------------------------------
# Non-structural edits
# ----------------------------------------------------------------------------


def update_text(blocks: Sequence[Block], block_id: str, content: str) -> EditResult:
    """Replace the content of a text block (ordinary typing)."""
    index = index_of(blocks, block_id)
    current = _text_at(blocks, index)
    if current is None or current.content == content:
        return EditResult.unchanged(blocks)
    seq = list(blocks)
    seq[index] = current.model_copy(update={"content": content})
    return EditResult(blocks=tuple(seq))


def update_image(
    blocks: Sequence[Block],
    block_id: str,
    *,
    caption: str | None = None,
    alt_text: str | None = None,
    resource_ref: str | None = None,
    upload_status: UploadStatus | None = None,
) -> EditResult:
    """Patch fields of an image block in place; ``None`` keeps a field."""
    index = index_of(blocks, block_id)
    if index < 0 or not isinstance(blocks[index], ImageBlock):
        return EditResult.unchanged(blocks)

    fields = {
        "caption": caption,
        "alt_text": alt_text,
        "resource_ref": resource_ref,
        "upload_status": upload_status,
    }
    update = {k: v for k, v in fields.items() if v is not None}
    current = blocks[index]
    patched = current.model_copy(update=update)
    if patched == current:
        return EditResult.unchanged(blocks)

    seq = list(blocks)
    seq[index] = patched
    return EditResult(blocks=tuple(seq))


__all__ = [
    "backspace",
    "clear_text",
    "insert_image_after",
    "merge_with_previous",
    "remove_block",
    "remove_image_before",
    "split_at_caret",
    "update_image",
    "update_text",
]
