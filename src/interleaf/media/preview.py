"""
Local image previews.

An inserted image is shown immediately, long before its upload finishes. The
preview is a bounded PNG thumbnail encoded as a ``data:`` URI so the render
layer needs no file access. Pillow does the decoding and resizing.
"""

from __future__ import annotations

import base64
import io

from PIL import Image, UnidentifiedImageError

from interleaf.core.contracts.events import ImageResource
from interleaf.core.settings import get_logger, load_settings

logger = get_logger("interleaf.preview")


def _data_uri(mime_type: str, data: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def derive_preview(resource: ImageResource, max_px: int | None = None) -> str:
    """Return a ``data:`` URI thumbnail for ``resource``.

    Parameters
    ----------
    resource:
        The local image payload.
    max_px:
        Longest edge of the thumbnail; defaults to ``settings.preview_max_px``.

    Notes
    -----
    Payloads Pillow cannot decode, or refuses as decompression bombs, are
    embedded as-is with their declared MIME type; a preview is never a reason to refuse an insertion.
    """
    limit = max_px if max_px is not None else load_settings().preview_max_px
    try:
        with Image.open(io.BytesIO(resource.data)) as img:
            img.thumbnail((limit, limit))
            if img.mode not in ("RGB", "RGBA", "L", "LA"):
                img = img.convert("RGBA")
            buf = io.BytesIO()
            img.save(buf, format="PNG")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        logger.warning("preview fallback for %s: %s", resource.filename, exc)
        return _data_uri(resource.mime_type, resource.data)
    return _data_uri("image/png", buf.getvalue())


__all__ = ["derive_preview"]
