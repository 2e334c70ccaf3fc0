# scripts/smoke.py
"""
Smoke Test Script for an Interleaf editing session.

Usage
-----
1. Edit a built-in sample and paste a generated image:
    $ uv run python scripts/smoke.py

2. Paste a local image instead:
    $ uv run python scripts/smoke.py --image samples/figure.png

Uploads go to ``INTERLEAF_UPLOAD_DIR`` (default ``artifacts/uploads``).
"""

import argparse
import asyncio
import io
import logging
import sys
import traceback
from pathlib import Path

from dotenv import load_dotenv
from PIL import Image

from interleaf.core.contracts.block import ImageBlock, TextBlock
from interleaf.core.contracts.events import Focus, ImageResource, KeyDown, Paste, TextInput
from interleaf.core.settings import load_settings
from interleaf.media.uploader import build_uploader
from interleaf.publish import to_topic_inputs
from interleaf.session import EditorSession

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# --------------------------------------------------------------------------- #
# Test Data
# --------------------------------------------------------------------------- #
DEFAULT_TEXT = "Photosynthesis turns light into sugar. The diagram shows the two stages."


def _sample_image() -> ImageResource:
    buf = io.BytesIO()
    Image.new("RGB", (640, 360), (40, 120, 60)).save(buf, format="PNG")
    return ImageResource.from_bytes(buf.getvalue(), mime_type="image/png", filename="sample.png")


def main() -> None:
    """Execute the smoke test workflow."""
    parser = argparse.ArgumentParser(description="Run Interleaf Smoke Test")
    parser.add_argument("--image", "-i", type=str, help="Path to an image to paste")
    args = parser.parse_args()

    # 1. Prepare the image
    if args.image:
        image_path = Path(args.image)
        if not image_path.exists():
            print(f"❌ File not found: {image_path}")
            return
        print(f"\n📂 Using image: {image_path}")
        resource = ImageResource.from_path(image_path)
    else:
        print("\n🖼  Using a generated sample image (no --image provided)")
        resource = _sample_image()

    # 2. Editing Phase
    try:
        session = EditorSession.create(build_uploader(load_settings()))
        first = session.store.blocks[0].id
        session.dispatch(TextInput(block_id=first, content=DEFAULT_TEXT))
        cut = DEFAULT_TEXT.index(" The diagram")
        session.dispatch(KeyDown(block_id=first, key="Enter", offset=cut))
        session.dispatch(Focus(block_id=first, offset=cut))
        session.dispatch(Paste(items=[resource]))
        statuses = asyncio.run(session.uploads.drain())
    except Exception as exc:
        print(f"\n❌ Session Crashed: {exc}")
        traceback.print_exc()
        return

    # 3. Inspection Phase
    print("\n" + "=" * 60)
    print(f"✅ Session Finished (revision {session.store.revision})")
    print("=" * 60)

    for i, block in enumerate(session.store.blocks):
        if isinstance(block, ImageBlock):
            print(f"  {i}. [image] {block.upload_status.value} {block.resource_ref or ''}")
        elif isinstance(block, TextBlock):
            print(f"  {i}. [text]  {block.content!r}")

    print(f"\n📤 Uploads: {statuses}")
    print(f"🎯 Caret: {session.view()['caret']}")

    topics = to_topic_inputs("Smoke test", "smoke-course", session.store.get_document())
    print(f"\n📚 Topics: {[t.kind for t in topics]}")


if __name__ == "__main__":
    main()
