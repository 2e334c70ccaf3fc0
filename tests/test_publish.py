"""Tests for converting documents into topic payloads."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from interleaf.core.contracts.block import ImageBlock, TextBlock, UploadStatus
from interleaf.publish import PublishError, TopicInput, to_topic_inputs


def test_blocks_map_to_ordered_topics() -> None:
    """Text is trimmed, blank text skipped, uploaded images referenced by URL."""
    blocks = [
        TextBlock(content="  Intro  "),
        ImageBlock(resource_ref="/uploads/a.png", upload_status=UploadStatus.DONE),
        TextBlock(content="   "),
        TextBlock(content="Outro"),
    ]
    topics = to_topic_inputs(" Week 1 ", "course-7", blocks)

    assert [t.kind for t in topics] == ["TEXT", "IMAGE", "TEXT"]
    assert topics[0].text == "Intro"
    assert topics[1].image_url == "/uploads/a.png" and topics[1].text is None
    assert {t.title for t in topics} == {"Week 1"}
    assert {t.course_id for t in topics} == {"course-7"}


def test_blank_title_is_rejected() -> None:
    with pytest.raises(PublishError, match="title"):
        to_topic_inputs("   ", "c", [TextBlock(content="x")])


@pytest.mark.parametrize(  # type: ignore[misc]
    "image",
    [
        ImageBlock(upload_status=UploadStatus.PENDING),
        ImageBlock(upload_status=UploadStatus.FAILED),
        ImageBlock(upload_status=UploadStatus.DONE),
    ],
)
def test_unuploaded_images_block_publishing(image: ImageBlock) -> None:
    """Pending, failed, or reference-less images cannot be published."""
    with pytest.raises(PublishError, match=image.id):
        to_topic_inputs("T", "c", [TextBlock(content="x"), image, TextBlock()])


def test_empty_document_publishes_nothing() -> None:
    assert to_topic_inputs("T", "c", [TextBlock()]) == []


def test_topic_input_kind_must_match_payload() -> None:
    with pytest.raises(ValidationError):
        TopicInput(course_id="c", title="t", kind="TEXT", image_url="/x.png")
    with pytest.raises(ValidationError):
        TopicInput(course_id="c", title="t", kind="IMAGE", text="hi")
