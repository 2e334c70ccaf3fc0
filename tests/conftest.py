"""Shared fixtures: in-memory PNG payloads and settings-cache hygiene."""

from __future__ import annotations

import io
from collections.abc import Callable, Generator

import pytest
from PIL import Image

from interleaf.core.settings import load_settings


def _png(size: tuple[int, int] = (8, 8), color: str = "red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture  # type: ignore[misc]
def png_bytes() -> bytes:
    """A tiny valid PNG image."""
    return _png()


@pytest.fixture  # type: ignore[misc]
def png_factory() -> Callable[..., bytes]:
    """Build PNG bytes of a chosen size/colour."""
    return _png


@pytest.fixture(autouse=True)  # type: ignore[misc]
def _fresh_settings() -> Generator[None, None, None]:
    """Rebuild cached settings after each test so env overrides never leak."""
    yield
    load_settings.cache_clear()
