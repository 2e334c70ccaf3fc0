"""
Render Adapter seam.

The render layer owns the editable surfaces; the core only talks to it through
:class:`RenderAdapter`. Surface handles live in a :class:`HandleRegistry`
(``block id -> handle``) owned by the adapter and looked up on demand; they
are never stored on block values.

:class:`MemoryRenderAdapter` is a headless adapter used by the CLI, the HTTP
sessions and the tests. It tracks one selection per block and records every
focus instruction it executes.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from interleaf.core.contracts.block import Block, TextBlock

H = TypeVar("H")


class RenderAdapter(Protocol):
    """What the interpreter needs from the editing surface."""

    def selection(self, block_id: str) -> tuple[int, int]:
        """Return ``(start, end)`` of the selection inside ``block_id``."""
        ...

    def focus(self, block_id: str, offset: int) -> None:
        """Focus ``block_id`` and collapse the selection at ``offset``."""
        ...

    def autosize(self, block_id: str) -> None:
        """Grow the visible height of a text surface to its content."""
        ...


class HandleRegistry(Generic[H]):
    """Back-references from block ids to surface handles."""

    def __init__(self) -> None:
        self._handles: dict[str, H] = {}

    def register(self, block_id: str, handle: H) -> None:
        self._handles[block_id] = handle

    def unregister(self, block_id: str) -> None:
        self._handles.pop(block_id, None)

    def lookup(self, block_id: str) -> H | None:
        return self._handles.get(block_id)

    def prune(self, live_ids: set[str]) -> None:
        """Forget handles whose blocks are gone."""
        for block_id in [k for k in self._handles if k not in live_ids]:
            del self._handles[block_id]

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._handles

    def __iter__(self) -> Iterator[str]:
        return iter(self._handles)


@dataclass
class TextSurface:
    """Headless stand-in for a textarea."""

    content: str = ""
    sel_start: int = 0
    sel_end: int = 0
    rows: int = 1


class MemoryRenderAdapter:
    """In-memory render adapter mirroring the store's text blocks."""

    def __init__(self) -> None:
        self.surfaces: HandleRegistry[TextSurface] = HandleRegistry()
        self.focused: str | None = None
        self.focus_log: list[tuple[str, int]] = []

    def sync(self, blocks: list[Block]) -> None:
        """Repaint: create/update one surface per text block, drop stale ones.

        Intended to be registered as a store ``on_change`` listener.
        """
        for block in blocks:
            if not isinstance(block, TextBlock):
                continue
            surface = self.surfaces.lookup(block.id)
            if surface is None:
                surface = TextSurface()
                self.surfaces.register(block.id, surface)
            surface.content = block.content
            surface.sel_start = min(surface.sel_start, len(block.content))
            surface.sel_end = min(surface.sel_end, len(block.content))
            self.autosize(block.id)
        self.surfaces.prune({b.id for b in blocks if isinstance(b, TextBlock)})
        if self.focused is not None and self.focused not in self.surfaces:
            self.focused = None

    def select(self, block_id: str, start: int, end: int | None = None) -> None:
        """Move the selection of a surface (what the user's mouse would do)."""
        surface = self.surfaces.lookup(block_id)
        if surface is None:
            return
        start = max(0, min(start, len(surface.content)))
        end = start if end is None else max(start, min(end, len(surface.content)))
        surface.sel_start, surface.sel_end = start, end
        self.focused = block_id

    # ---- RenderAdapter ---------------------------------------------------

    def selection(self, block_id: str) -> tuple[int, int]:
        surface = self.surfaces.lookup(block_id)
        if surface is None:
            return (0, 0)
        return (surface.sel_start, surface.sel_end)

    def focus(self, block_id: str, offset: int) -> None:
        self.select(block_id, offset)
        self.focus_log.append((block_id, offset))

    def autosize(self, block_id: str) -> None:
        surface = self.surfaces.lookup(block_id)
        if surface is not None:
            surface.rows = surface.content.count("\n") + 1


__all__ = ["HandleRegistry", "MemoryRenderAdapter", "RenderAdapter", "TextSurface"]
