"""
Block Store

The single owner of a document's block sequence.

- ``apply(result)``  : commit an :class:`EditResult`, bump the revision,
  remember the caret placement and notify ``on_change`` listeners.
- ``take_caret()``   : hand the pending caret placement to the render layer;
  a placement is returned exactly once.
- ``get_document()`` : ordered, id-stable snapshot for persistence.
- ``patch_upload()`` : the only entry point used by asynchronous uploads; it
  touches ``resource_ref``/``upload_status`` of one block id and nothing else.

Design Notes
------------
- Blocks are frozen models, so a snapshot is a shallow list copy.
- One store per editing surface; commits are synchronous, no locking.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from interleaf.core.contracts.block import Block, UploadStatus, empty_document, index_of
from interleaf.core.contracts.caret import CaretPlacement, EditResult
from interleaf.core.settings import get_logger

from . import mutations
from .invariants import normalize

ChangeListener = Callable[[list[Block]], None]

logger = get_logger("interleaf.store")


class BlockStore:
    """
    Ordered block sequence with revisioned commits and a pending caret slot.

    Attributes
    ----------
    _blocks : tuple[Block, ...]
        Current, always-normalized sequence.
    _rev : int
        Monotonically increasing revision counter (bumps on every commit).
    _caret : CaretPlacement | None
        Placement waiting to be consumed by the render layer.
    _listeners : list[ChangeListener]
        Callbacks fired with a snapshot after every commit.
    """

    __slots__ = ("_blocks", "_rev", "_caret", "_listeners")

    def __init__(self, blocks: Sequence[Block] | None = None) -> None:
        seq, caret = normalize(blocks if blocks else empty_document())
        self._blocks: tuple[Block, ...] = tuple(seq)
        self._rev: int = 0
        self._caret: CaretPlacement | None = caret
        self._listeners: list[ChangeListener] = []

    # ------------------------------- Read API -------------------------------

    @property
    def blocks(self) -> tuple[Block, ...]:
        return self._blocks

    @property
    def revision(self) -> int:
        return self._rev

    def get_document(self) -> list[Block]:
        """Return an ordered snapshot of the document."""
        return list(self._blocks)

    def get(self, block_id: str) -> Block | None:
        index = index_of(self._blocks, block_id)
        return self._blocks[index] if index >= 0 else None

    def index_of(self, block_id: str) -> int:
        return index_of(self._blocks, block_id)

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._blocks)

    # ------------------------------- Commit API -----------------------------

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def apply(self, result: EditResult) -> bool:
        """
        Commit a mutation result.

        The result is normalized once more (idempotent for engine output), so
        hand-built results cannot break the invariants either.

        Returns
        -------
        bool
            ``True`` if the sequence changed and listeners were notified.
        """
        seq, repair_caret = normalize(result.blocks)
        caret = repair_caret or result.caret
        if caret is not None:
            self._caret = caret

        if not result.changed and tuple(seq) == self._blocks:
            return False

        self._blocks = tuple(seq)
        self._rev += 1
        logger.debug(
            "commit rev=%d blocks=%d caret=%s", self._rev, len(self._blocks), self._caret
        )
        snapshot = self.get_document()
        for listener in list(self._listeners):
            listener(snapshot)
        return True

    def replace(self, blocks: Sequence[Block]) -> bool:
        """Load an externally supplied sequence (normalized on the way in)."""
        return self.apply(EditResult(blocks=tuple(blocks)))

    def take_caret(self) -> CaretPlacement | None:
        """Return the pending caret placement and clear it."""
        caret, self._caret = self._caret, None
        return caret

    def patch_upload(
        self,
        block_id: str,
        *,
        status: UploadStatus,
        resource_ref: str | None = None,
    ) -> bool:
        """Write an upload outcome back onto the image ``block_id``.

        A patch for a block that has been removed meanwhile is dropped.
        """
        if self.index_of(block_id) < 0:
            logger.info("dropping upload patch for removed block %s", block_id)
            return False
        result = mutations.update_image(
            self._blocks, block_id, resource_ref=resource_ref, upload_status=status
        )
        return self.apply(result)


__all__ = ["BlockStore", "ChangeListener"]
