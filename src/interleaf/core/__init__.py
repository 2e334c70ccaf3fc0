"""Core package initializer for Interleaf.

Downstream code imports the submodules directly, e.g.:
    from interleaf.core.settings import settings, load_settings, Settings, get_logger
    from interleaf.core.editor.store import BlockStore
"""

from __future__ import annotations

__all__ = ["__doc__"]
