"""
Invariant Maintainer

Normalization passes applied as the last step of every mutation. Both are
pure (input sequences are never mutated) and idempotent:

- :func:`ensure_minimum_text`     : the document always holds a text block.
- :func:`ensure_text_after_images`: every image is directly followed by text.

Violations are repaired silently; callers never see them as errors.
"""

from __future__ import annotations

from collections.abc import Sequence

from interleaf.core.contracts.block import Block, TextBlock, is_image, is_text
from interleaf.core.contracts.caret import CaretPlacement


def ensure_minimum_text(blocks: Sequence[Block]) -> tuple[list[Block], CaretPlacement | None]:
    """
    Guarantee at least one text block.

    Returns
    -------
    tuple[list[Block], CaretPlacement | None]
        The (possibly replaced) sequence, plus a caret request at offset 0 of
        the fresh text block when the whole sequence had to be replaced.
    """
    if any(is_text(b) for b in blocks):
        return list(blocks), None
    fresh = TextBlock()
    return [fresh], CaretPlacement(fresh.id, 0)


def ensure_text_after_images(blocks: Sequence[Block]) -> list[Block]:
    """Insert an empty text block after any image not followed by text."""
    out: list[Block] = []
    for i, block in enumerate(blocks):
        out.append(block)
        if is_image(block):
            nxt = blocks[i + 1] if i + 1 < len(blocks) else None
            if not is_text(nxt):
                out.append(TextBlock())
    return out


def normalize(blocks: Sequence[Block]) -> tuple[list[Block], CaretPlacement | None]:
    """Run both passes; the caret is set only if the sequence was replaced."""
    seq, caret = ensure_minimum_text(blocks)
    return ensure_text_after_images(seq), caret


def satisfies_invariants(blocks: Sequence[Block]) -> bool:
    """Return True when ``blocks`` needs no repair."""
    if not any(is_text(b) for b in blocks):
        return False
    for i, block in enumerate(blocks):
        if is_image(block) and not (i + 1 < len(blocks) and is_text(blocks[i + 1])):
            return False
    return True


__all__ = [
    "ensure_minimum_text",
    "ensure_text_after_images",
    "normalize",
    "satisfies_invariants",
]
