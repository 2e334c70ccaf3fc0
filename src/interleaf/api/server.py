"""
ASGI Entry Point for the Interleaf API.

Usage
-----
Run via the module entry point:
    $ uv run python -m interleaf.api.server

Or via uvicorn directly:
    $ uv run uvicorn interleaf.api.server:app --reload
"""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from interleaf.api.app import create_app
from interleaf.core.settings import load_settings

# Load .env BEFORE the factory runs so cached settings see it.
load_dotenv(dotenv_path=Path(".env"))

app = create_app()


def main() -> None:
    """Run the API server; auto-reload only in the dev environment."""
    cfg = load_settings()
    uvicorn.run(
        "interleaf.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=cfg.is_dev,
        log_level=cfg.log_level.lower(),
    )


if __name__ == "__main__":
    main()
