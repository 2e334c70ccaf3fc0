"""Interleaf: an interleaved text/image block editor core.

The package is split into:
- ``interleaf.core``: block contracts, invariant maintainer, mutation engine,
  block store and input interpreter.
- ``interleaf.media``: image previews and the asynchronous upload queue.
- ``interleaf.api`` / ``interleaf.cli``: outer surfaces over editing sessions.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
