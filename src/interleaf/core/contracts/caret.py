"""
Caret placement and edit results.

A mutation never focuses anything itself. It returns an :class:`EditResult`
holding the new block sequence plus an optional :class:`CaretPlacement`; the
block store keeps that placement until the render layer takes it, exactly once.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .block import Block


@dataclass(frozen=True, slots=True)
class CaretPlacement:
    """
    Instruction to put the caret inside a text block.

    Attributes
    ----------
    block_id : str
        Target block; ids survive structural changes, indexes do not.
    offset : int
        Zero-based position inside the block's content.
    """

    block_id: str
    offset: int = 0


@dataclass(frozen=True, slots=True)
class EditResult:
    """Outcome of one mutation: the next sequence and where the caret lands."""

    blocks: tuple[Block, ...]
    caret: CaretPlacement | None = None
    changed: bool = field(default=True)

    @classmethod
    def unchanged(cls, blocks: Sequence[Block], caret: CaretPlacement | None = None) -> EditResult:
        """Wrap ``blocks`` as a no-op result."""
        return cls(blocks=tuple(blocks), caret=caret, changed=False)


__all__ = ["CaretPlacement", "EditResult"]
