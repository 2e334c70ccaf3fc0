"""
Tests for the input event interpreter.

Scope
-----
These tests drive a full editing session (store + headless render adapter +
upload queue) through raw events and check:
1.  **Key handling**: Enter splits, Backspace follows the deletion state machine.
2.  **Image paths**: paste, drop and the reserved `/image` command.
3.  **Caret hand-off**: every structural transition focuses exactly one block.
"""

from __future__ import annotations

from interleaf.core.contracts.block import ImageBlock, TextBlock, UploadStatus
from interleaf.core.contracts.events import (
    Drop,
    Focus,
    ImageChosen,
    ImageMeta,
    ImageResource,
    KeyDown,
    Paste,
    RemoveBlock,
    TextInput,
)
from interleaf.core.editor.interpreter import Editing, Idle, Transition
from interleaf.session import EditorSession

# --- Module-level stubs ---


class RecordingUploader:
    async def upload(self, resource: ImageResource) -> str:
        return f"/uploads/{resource.filename}"


def _session() -> EditorSession:
    return EditorSession.create(RecordingUploader(), image_command="/image")


def _image(png: bytes, name: str = "pic.png") -> ImageResource:
    return ImageResource.from_bytes(png, mime_type="image/png", filename=name)


def _texts(session: EditorSession) -> list[str | None]:
    return [b.content if isinstance(b, TextBlock) else None for b in session.store.blocks]


# --------------------------------------------------------------------------- #
# Keys
# --------------------------------------------------------------------------- #


def test_enter_splits_at_adapter_caret() -> None:
    """Enter without offsets asks the render adapter where the caret is."""
    s = _session()
    first = s.store.blocks[0].id
    s.dispatch(TextInput(block_id=first, content="Hello world"))
    s.adapter.select(first, 5)

    assert s.dispatch(KeyDown(block_id=first, key="Enter")) is Transition.SPLIT

    assert _texts(s) == ["Hello", " world"]
    new_id = s.store.blocks[1].id
    assert s.adapter.focused == new_id
    assert s.adapter.focus_log[-1] == (new_id, 0)
    assert s.interpreter.state == Editing(new_id, 0)


def test_shift_enter_and_other_keys_are_delegated() -> None:
    """Soft line breaks and unrelated keys leave the document alone."""
    s = _session()
    first = s.store.blocks[0].id
    assert s.dispatch(KeyDown(block_id=first, key="Enter", shift=True, offset=0)) is None
    assert s.dispatch(KeyDown(block_id=first, key="Other", offset=0)) is None
    assert s.dispatch(KeyDown(block_id="missing", key="Enter")) is None
    assert len(s.store.blocks) == 1 and s.store.revision == 0


def test_backspace_at_start_merges_into_previous() -> None:
    """Split then Backspace at offset 0 restores one block, caret at the join."""
    s = _session()
    first = s.store.blocks[0].id
    s.dispatch(TextInput(block_id=first, content="abcd"))
    s.dispatch(KeyDown(block_id=first, key="Enter", offset=2))
    second = s.store.blocks[1].id

    assert s.dispatch(KeyDown(block_id=second, key="Backspace")) is Transition.MERGE

    assert _texts(s) == ["abcd"]
    assert s.interpreter.state == Editing(first, 2)
    assert s.adapter.selection(first) == (2, 2)


def test_backspace_inside_text_is_left_to_the_surface() -> None:
    """Character deletion is not a structural transition."""
    s = _session()
    first = s.store.blocks[0].id
    s.dispatch(TextInput(block_id=first, content="abc"))
    rev = s.store.revision
    assert s.dispatch(KeyDown(block_id=first, key="Backspace", offset=2)) is None
    assert s.store.revision == rev


def test_backspace_on_sole_empty_block_keeps_it() -> None:
    """The last block survives any number of Backspaces."""
    s = _session()
    first = s.store.blocks[0].id
    for _ in range(3):
        s.dispatch(KeyDown(block_id=first, key="Backspace", offset=0))
    assert len(s.store.blocks) == 1 and s.store.blocks[0].id == first


def test_backspace_guard_then_image_removal(png_bytes: bytes) -> None:
    """After an image: first Backspace clears the text, the second removes the image."""
    s = _session()
    first = s.store.blocks[0].id
    s.dispatch(Focus(block_id=first))
    s.dispatch(Paste(items=[_image(png_bytes)]))
    trailing = s.store.blocks[2].id
    s.dispatch(TextInput(block_id=trailing, content="x"))

    assert s.dispatch(KeyDown(block_id=trailing, key="Backspace", offset=0)) is (
        Transition.CLEAR_IN_PLACE
    )
    assert _texts(s) == ["", None, ""]

    assert s.dispatch(KeyDown(block_id=trailing, key="Backspace", offset=0)) is (
        Transition.REMOVE_BLOCK
    )
    assert _texts(s) == [""]
    assert s.interpreter.state == Editing(first, 0)


# --------------------------------------------------------------------------- #
# Images
# --------------------------------------------------------------------------- #


def test_paste_inserts_after_focused_block_regardless_of_offset(png_bytes: bytes) -> None:
    """An image paste lands after the focused block and is queued for upload."""
    s = _session()
    first = s.store.blocks[0].id
    s.dispatch(TextInput(block_id=first, content="intro"))
    s.dispatch(Focus(block_id=first, offset=2))

    assert s.dispatch(Paste(items=[_image(png_bytes)])) is Transition.INSERT_IMAGE

    kinds = [b.kind for b in s.store.blocks]
    assert kinds == ["text", "image", "text"]
    assert _texts(s)[0] == "intro"
    img = s.store.blocks[1]
    assert isinstance(img, ImageBlock)
    assert img.upload_status is UploadStatus.PENDING
    assert img.preview_uri is not None and img.preview_uri.startswith("data:image/png;base64,")
    assert s.uploads.queued == (img.id,)
    assert s.interpreter.state == Editing(s.store.blocks[2].id, 0)


def test_paste_without_image_is_delegated() -> None:
    """Plain-text and non-image clipboard items fall through to the surface."""
    s = _session()
    pdf = ImageResource.from_bytes(b"%PDF", mime_type="application/pdf", filename="a.pdf")
    assert s.dispatch(Paste(text="hello")) is None
    assert s.dispatch(Paste(items=[pdf])) is None
    assert s.dispatch(Drop(files=[pdf])) is None
    assert len(s.store.blocks) == 1


def test_drop_without_focus_targets_last_block(png_bytes: bytes) -> None:
    """When idle, dropped images are appended after the last block."""
    s = _session()
    assert isinstance(s.interpreter.state, Idle)
    first = s.store.blocks[0].id
    s.dispatch(TextInput(block_id=first, content="a"))
    s.dispatch(KeyDown(block_id=first, key="Enter", offset=1))
    s.interpreter.state = Idle()

    assert s.dispatch(Drop(files=[_image(png_bytes)])) is Transition.INSERT_IMAGE
    assert [b.kind for b in s.store.blocks] == ["text", "text", "image", "text"]


def test_image_command_clears_block_and_waits_for_file(png_bytes: bytes) -> None:
    """`/image` + Enter clears the block; the chosen file is inserted after it."""
    s = _session()
    first = s.store.blocks[0].id
    s.dispatch(TextInput(block_id=first, content="  /Image "))

    assert s.dispatch(KeyDown(block_id=first, key="Enter", offset=9)) is (
        Transition.CLEAR_IN_PLACE
    )
    assert _texts(s) == [""]
    assert s.interpreter.awaiting_image == first

    assert s.dispatch(ImageChosen(resource=_image(png_bytes))) is Transition.INSERT_IMAGE
    assert s.interpreter.awaiting_image is None
    assert [b.kind for b in s.store.blocks] == ["text", "image", "text"]
    assert s.store.blocks[0].id == first


def test_remove_block_event_and_image_meta(png_bytes: bytes) -> None:
    """Image captions are edited in place; explicit removal re-targets the caret."""
    s = _session()
    first = s.store.blocks[0].id
    s.dispatch(TextInput(block_id=first, content="a"))
    s.dispatch(Focus(block_id=first, offset=1))
    s.dispatch(Paste(items=[_image(png_bytes)]))
    img_id = s.store.blocks[1].id

    assert s.dispatch(ImageMeta(block_id=img_id, caption="Figure 1")) is None
    img = s.store.get(img_id)
    assert isinstance(img, ImageBlock) and img.caption == "Figure 1"
    assert img.alt_text == "pic.png"

    assert s.dispatch(RemoveBlock(block_id=img_id)) is Transition.REMOVE_BLOCK
    assert _texts(s) == ["a", ""]
    assert s.interpreter.state == Editing(first, 1)
    assert s.dispatch(RemoveBlock(block_id=img_id)) is None


def test_each_structural_event_notifies_once(png_bytes: bytes) -> None:
    """One event -> one commit -> one `on_change` call."""
    s = _session()
    calls: list[int] = []
    s.store.on_change(lambda blocks: calls.append(len(blocks)))
    first = s.store.blocks[0].id

    s.dispatch(KeyDown(block_id=first, key="Enter", offset=0))
    s.dispatch(Paste(items=[_image(png_bytes)]))

    assert calls == [2, 4]
