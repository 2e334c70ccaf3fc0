"""
API Routes for editing sessions.

Endpoints
---------
- `POST /documents`: open a new editing session.
- `GET /documents/{id}`: current blocks, caret and revision.
- `POST /documents/{id}/events`: apply one editor event.
- `POST /documents/{id}/blocks/{block_id}/retry`: retry a failed image upload.
- `POST /documents/{id}/topics`: topic payloads for publishing.

Uploads for inserted images run as background tasks after the response is
sent; clients poll `GET /documents/{id}` to see `upload_status` change.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, HTTPException, status
from pydantic import BaseModel

from interleaf.api.background import run_upload_task
from interleaf.api.schemas import (
    CreateDocumentRequest,
    DocumentView,
    EventResponse,
    PublishRequest,
    PublishResponse,
)
from interleaf.api.session_store import get_session_store
from interleaf.core.contracts.block import ImageBlock, UploadStatus
from interleaf.core.contracts.events import EditorEvent
from interleaf.publish import to_topic_inputs
from interleaf.session import EditorSession

router = APIRouter(prefix="/documents", tags=["Documents"])


class EventRequest(BaseModel):
    event: EditorEvent


def _session_or_404(document_id: str) -> EditorSession:
    session = get_session_store().get(document_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document {document_id} not found",
        )
    return session


@router.post(
    "",
    response_model=DocumentView,
    status_code=status.HTTP_201_CREATED,
    summary="Open a new editing session",
)
async def create_document(request: CreateDocumentRequest | None = None) -> DocumentView:
    blocks = request.blocks if request is not None else None
    session = get_session_store().create(blocks)
    return DocumentView.model_validate(session.view())


@router.get("/{document_id}", response_model=DocumentView, summary="Get a document")
async def get_document(document_id: str) -> DocumentView:
    return DocumentView.model_validate(_session_or_404(document_id).view())


@router.post(
    "/{document_id}/events",
    response_model=EventResponse,
    summary="Apply one editor event",
)
async def post_event(
    document_id: str,
    request: EventRequest,
    background_tasks: BackgroundTasks,
) -> EventResponse:
    """
    Interpret one event against the session.

    Every image inserted by the event gets its upload scheduled in the
    background; the response already shows the block as ``pending``.
    """
    session = _session_or_404(document_id)
    transition = session.dispatch(request.event)

    for block_id in session.uploads.queued:
        background_tasks.add_task(run_upload_task, session.id, block_id)

    return EventResponse(
        transition=transition,
        document=DocumentView.model_validate(session.view()),
    )


@router.post(
    "/{document_id}/blocks/{block_id}/retry",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Retry a failed image upload",
)
async def retry_upload(
    document_id: str,
    block_id: str,
    background_tasks: BackgroundTasks,
) -> dict[str, str]:
    session = _session_or_404(document_id)
    block = session.store.get(block_id)
    if not isinstance(block, ImageBlock):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Image block {block_id} not found",
        )
    if block.upload_status is not UploadStatus.FAILED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Image block {block_id} is {block.upload_status.value}, not failed",
        )
    background_tasks.add_task(run_upload_task, session.id, block_id, retry=True)
    return {"status": "scheduled", "block_id": block_id}


@router.post(
    "/{document_id}/topics",
    response_model=PublishResponse,
    summary="Build topic payloads for publishing",
)
async def publish_topics(document_id: str, request: PublishRequest) -> PublishResponse:
    """`PublishError` is a `ValueError` and surfaces as HTTP 400."""
    session = _session_or_404(document_id)
    topics = to_topic_inputs(request.title, request.course_id, session.store.get_document())
    return PublishResponse(topics=topics)


__all__ = ["router"]
