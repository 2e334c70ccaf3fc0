"""
Background upload runner.

Image insertion returns immediately; the upload of the inserted resource is
scheduled through FastAPI's ``BackgroundTasks`` and only patches the image
block's ``resource_ref``/``upload_status`` when it completes.
"""

from __future__ import annotations

from interleaf.api.session_store import get_session_store
from interleaf.core.settings import get_logger

logger = get_logger("interleaf.api.background")


async def run_upload_task(session_id: str, block_id: str, *, retry: bool = False) -> None:
    """Run (or retry) the upload for ``block_id`` in session ``session_id``.

    The session may have been deleted meanwhile; then nothing happens.
    """
    session = get_session_store().get(session_id)
    if session is None:
        logger.info("session %s gone before upload of %s", session_id, block_id)
        return
    if retry:
        status = await session.uploads.retry(block_id)
    else:
        status = await session.uploads.run(block_id)
    logger.debug("upload session=%s block=%s status=%s", session_id, block_id, status)


__all__ = ["run_upload_task"]
