"""
Upload queue: the asynchronous half of image insertion.

Inserting an image is synchronous and immediate; the resource upload happens
later and commits only a single-field patch on the same block id:

    enqueue(block_id, resource)  -> remembered, status stays PENDING
    await run(block_id)          -> DONE + resource_ref, or FAILED
    await drain()                -> run every queued upload concurrently
    await retry(block_id)        -> re-run a FAILED upload

Failures never propagate: the block keeps its preview, is marked FAILED and
stays addressable for a retry.
"""

from __future__ import annotations

import asyncio

from interleaf.core.contracts.block import Block, ImageBlock, UploadStatus
from interleaf.core.contracts.events import ImageResource
from interleaf.core.editor.store import BlockStore
from interleaf.core.settings import get_logger

from .uploader import UploadError, Uploader

logger = get_logger("interleaf.uploads")


class UploadQueue:
    """Tracks local resources per image block and uploads them on demand."""

    def __init__(self, store: BlockStore, uploader: Uploader) -> None:
        self.store = store
        self.uploader = uploader
        self._resources: dict[str, ImageResource] = {}
        self._queued: list[str] = []
        self._running: set[str] = set()
        store.on_change(self._forget_removed)

    def enqueue(self, block_id: str, resource: ImageResource) -> None:
        """Remember ``resource`` for ``block_id`` and queue its upload."""
        self._resources[block_id] = resource
        if block_id not in self._queued:
            self._queued.append(block_id)

    @property
    def queued(self) -> tuple[str, ...]:
        return tuple(self._queued)

    def holds(self, block_id: str) -> bool:
        """Return True while a local resource is kept for ``block_id``."""
        return block_id in self._resources

    def _forget_removed(self, blocks: list[Block]) -> None:
        """Drop resources (and queue entries) of blocks no longer in the document."""
        live = {b.id for b in blocks}
        for block_id in [i for i in self._resources if i not in live]:
            del self._resources[block_id]
        self._queued = [i for i in self._queued if i in live]

    async def run(self, block_id: str) -> UploadStatus | None:
        """Upload the resource of ``block_id`` and patch the block.

        Each enqueued upload runs once: the call claims the queue entry, and
        further calls for the same id return ``None``. So does a call for a
        block that was never enqueued or was removed from the document.
        """
        if block_id not in self._queued:
            return None
        self._queued.remove(block_id)
        return await self._upload(block_id)

    async def drain(self) -> dict[str, UploadStatus | None]:
        """Run every queued upload concurrently."""
        ids = list(self._queued)
        results = await asyncio.gather(*(self.run(i) for i in ids))
        return dict(zip(ids, results, strict=True))

    async def retry(self, block_id: str) -> UploadStatus | None:
        """Re-run the upload of a FAILED image block."""
        block = self.store.get(block_id)
        if block is None:
            self._resources.pop(block_id, None)
            return None
        if not isinstance(block, ImageBlock) or block.upload_status is not UploadStatus.FAILED:
            return None
        self.store.patch_upload(block_id, status=UploadStatus.PENDING)
        return await self._upload(block_id)

    async def _upload(self, block_id: str) -> UploadStatus | None:
        resource = self._resources.get(block_id)
        if resource is None or block_id in self._running:
            return None
        if self.store.index_of(block_id) < 0:
            self._resources.pop(block_id, None)
            return None

        self._running.add(block_id)
        try:
            ref = await self.uploader.upload(resource)
        except UploadError as exc:
            logger.warning("upload failed for block %s: %s", block_id, exc)
            self.store.patch_upload(block_id, status=UploadStatus.FAILED)
            return UploadStatus.FAILED
        except Exception:
            logger.exception("unexpected upload error for block %s", block_id)
            self.store.patch_upload(block_id, status=UploadStatus.FAILED)
            return UploadStatus.FAILED
        finally:
            self._running.discard(block_id)

        self.store.patch_upload(block_id, status=UploadStatus.DONE, resource_ref=ref)
        self._resources.pop(block_id, None)
        return UploadStatus.DONE


__all__ = ["UploadQueue"]
