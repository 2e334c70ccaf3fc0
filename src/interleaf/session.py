"""
Editing sessions.

An :class:`EditorSession` wires one document together:

    BlockStore  <- owned state
    MemoryRenderAdapter (on_change listener) <- headless surface
    UploadQueue <- asynchronous resource uploads
    InputInterpreter <- event entry point

Both outer surfaces (HTTP API and CLI replay) work through sessions, so the
editing loop is identical everywhere.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from interleaf.core.contracts.block import Block, document_to_payload
from interleaf.core.contracts.events import EditorEvent
from interleaf.core.editor.interpreter import Editing, InputInterpreter, Transition
from interleaf.core.editor.render import MemoryRenderAdapter
from interleaf.core.editor.store import BlockStore
from interleaf.media.upload_queue import UploadQueue
from interleaf.media.uploader import Uploader


@dataclass
class EditorSession:
    """One document, its headless surface and its upload queue."""

    store: BlockStore
    adapter: MemoryRenderAdapter
    uploads: UploadQueue
    interpreter: InputInterpreter
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def create(
        cls,
        uploader: Uploader,
        blocks: Sequence[Block] | None = None,
        *,
        image_command: str | None = None,
    ) -> EditorSession:
        store = BlockStore(blocks)
        adapter = MemoryRenderAdapter()
        adapter.sync(store.get_document())
        store.on_change(adapter.sync)
        uploads = UploadQueue(store, uploader)
        interpreter = InputInterpreter(
            store, adapter, uploads=uploads, image_command=image_command
        )
        return cls(store=store, adapter=adapter, uploads=uploads, interpreter=interpreter)

    def dispatch(self, event: EditorEvent) -> Transition | None:
        return self.interpreter.dispatch(event)

    def replay(self, events: Iterable[EditorEvent]) -> list[Transition | None]:
        """Dispatch ``events`` in order and return each transition taken."""
        return [self.dispatch(e) for e in events]

    def view(self) -> dict[str, Any]:
        """JSON-safe view of the session used by the API and the CLI."""
        state = self.interpreter.state
        caret = (
            {"block_id": state.block_id, "offset": state.offset}
            if isinstance(state, Editing)
            else None
        )
        return {
            "id": self.id,
            "revision": self.store.revision,
            "blocks": document_to_payload(self.store.get_document()),
            "caret": caret,
            "awaiting_image": self.interpreter.awaiting_image,
        }


__all__ = ["EditorSession"]
