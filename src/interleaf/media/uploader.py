# -----------------------------------------------------------------------------
# Upload collaborators for image resources.
#
# An uploader turns a local ImageResource into a resource reference (usually a
# URL) that the surrounding application persists. Two implementations ship:
#
#   - LocalDirUploader: writes the bytes into a directory and returns
#     `<base_url>/<stored name>`. Used by the CLI and as the API default.
#   - HttpUploader: POSTs the file as multipart/form-data to an upload
#     endpoint and reads `{"url": ...}` back.
#
# The HTTP client uses only `urllib.request`; the blocking call runs in a worker
# thread so `upload()` can be awaited. Unit tests patch `HttpUploader._post`.
# -----------------------------------------------------------------------------
from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from interleaf.core.contracts.events import ImageResource
from interleaf.core.settings import Settings


class UploadError(RuntimeError):
    """Raised when an image resource cannot be uploaded."""


class Uploader(Protocol):
    """Asynchronous, fallible upload collaborator."""

    async def upload(self, resource: ImageResource) -> str:
        """Store ``resource`` and return its reference."""
        ...


def _suffix_for(resource: ImageResource) -> str:
    suffix = Path(resource.filename).suffix
    if suffix:
        return suffix.lower()
    subtype = resource.mime_type.partition("/")[2]
    return f".{subtype}" if subtype else ""


@dataclass(slots=True)
class LocalDirUploader:
    """Write resources into ``base_dir`` and return ``base_url/<name>``."""

    base_dir: Path
    base_url: str = "/uploads"

    async def upload(self, resource: ImageResource) -> str:
        name = f"{uuid.uuid4().hex}{_suffix_for(resource)}"
        await asyncio.to_thread(self._write, name, resource.data)
        return f"{self.base_url.rstrip('/')}/{name}"

    def _write(self, name: str, data: bytes) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            (self.base_dir / name).write_bytes(data)
        except OSError as exc:
            raise UploadError(f"Could not store {name} in {self.base_dir}: {exc}") from exc


@dataclass(slots=True)
class HttpUploader:
    """POST resources to an HTTP upload endpoint (multipart, field ``file``)."""

    endpoint: str
    timeout_seconds: float = 30.0

    async def upload(self, resource: ImageResource) -> str:
        boundary = uuid.uuid4().hex
        body = self._multipart(boundary, resource)
        headers = {"Content-Type": f"multipart/form-data; boundary={boundary}"}
        decoded = await asyncio.to_thread(self._post, url=self.endpoint, headers=headers, body=body)
        url = decoded.get("url")
        if not isinstance(url, str) or not url:
            raise UploadError(f"Upload response has no 'url': {decoded!r}")
        return url

    @staticmethod
    def _multipart(boundary: str, resource: ImageResource) -> bytes:
        head = (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="file"; filename="{resource.filename}"\r\n'
            f"Content-Type: {resource.mime_type}\r\n\r\n"
        ).encode()
        tail = f"\r\n--{boundary}--\r\n".encode()
        return head + resource.data + tail

    def _post(self, *, url: str, headers: dict[str, str], body: bytes) -> dict[str, Any]:
        """Perform the blocking POST and decode the JSON response.

        Raises
        ------
        UploadError
            On HTTP, network or read failure, or when the body is not a JSON
            object.
        """
        request = urllib.request.Request(url=url, data=body, headers=headers, method="POST")
        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            raise UploadError(
                f"Upload HTTP error {exc.code}: {exc.reason}; body={detail!r}"
            ) from exc
        except urllib.error.URLError as exc:
            raise UploadError(f"Upload network error: {exc}") from exc
        except OSError as exc:
            # TimeoutError and connection resets while reading the body.
            raise UploadError(f"Upload I/O error: {exc}") from exc

        try:
            decoded = json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            raise UploadError("Failed to decode upload response as JSON") from exc
        if not isinstance(decoded, dict):
            raise UploadError(f"Upload response is not a JSON object: {decoded!r}")
        return decoded


def build_uploader(cfg: Settings) -> Uploader:
    """Pick the uploader configured in ``cfg``."""
    if cfg.upload_endpoint:
        return HttpUploader(
            endpoint=cfg.upload_endpoint, timeout_seconds=cfg.upload_timeout_seconds
        )
    return LocalDirUploader(base_dir=cfg.upload_dir, base_url=cfg.upload_base_url)


__all__ = ["HttpUploader", "LocalDirUploader", "UploadError", "Uploader", "build_uploader"]
