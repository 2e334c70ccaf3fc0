# src/interleaf/cli.py
"""
Interleaf Command Line Interface (CLI).

This module implements the terminal interface using `typer` and `rich`.

Commands
--------
- **replay**: play a JSON list of editor events against a fresh document,
  drain the image uploads into a local directory and render the result.
- **check**: load a saved document, run the invariant passes and report
  whether anything had to be repaired.

Usage
-----
    $ interleaf replay session.json --output document.json
    $ interleaf check document.json
"""

from __future__ import annotations

import asyncio
import json
import traceback
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from interleaf.core.contracts.block import (
    Block,
    ImageBlock,
    UploadStatus,
    document_from_payload,
    document_to_payload,
)
from interleaf.core.contracts.events import EVENT_LIST_ADAPTER
from interleaf.core.editor.interpreter import Editing
from interleaf.core.editor.invariants import normalize, satisfies_invariants
from interleaf.core.settings import load_settings
from interleaf.media.uploader import LocalDirUploader
from interleaf.session import EditorSession

load_dotenv()

app = typer.Typer(
    help="Interleaf: interleaved text/image block editing from the terminal.",
    rich_markup_mode="markdown",
)
console = Console()


# --------------------------------------------------------------------------- #
# Helpers: Rendering & I/O
# --------------------------------------------------------------------------- #


def _render_blocks(blocks: list[Block], caret: tuple[str, int] | None = None) -> None:
    """Render blocks as a table; the caret row is marked with `▸`."""
    table = Table(title="Document", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Kind", style="cyan")
    table.add_column("Id", style="dim")
    table.add_column("Content")

    for i, block in enumerate(blocks):
        mark = "▸" if caret and caret[0] == block.id else ""
        if isinstance(block, ImageBlock):
            detail = f"[magenta]{block.upload_status.value}[/magenta]"
            if block.resource_ref:
                detail += f" {block.resource_ref}"
            if block.caption:
                detail += f" [i]{block.caption}[/i]"
            table.add_row(f"{mark}{i}", "image", block.id, detail)
        else:
            text = block.content if block.content else "[dim]<empty>[/dim]"
            table.add_row(f"{mark}{i}", "text", block.id, text)

    console.print(table)
    if caret:
        console.print(f"[dim]Caret: block {caret[0]} offset {caret[1]}[/dim]")


def _write_document(blocks: list[Block], output: Path) -> None:
    with open(output, "w", encoding="utf-8") as f:
        json.dump(document_to_payload(blocks), f, indent=2, ensure_ascii=False)
        f.write("\n")


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def replay(
    events_file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="JSON list of editor events.",
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the final document JSON here."),
    ] = None,
    upload_dir: Annotated[
        Path | None,
        typer.Option("--upload-dir", help="Directory receiving uploaded images."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show full error tracebacks for debugging."),
    ] = False,
) -> None:
    """
    Replay editor events against a fresh document.

    Images are uploaded into a local directory once all events are applied.
    """
    console.print(
        Panel.fit(
            f"[bold cyan]Interleaf Replay[/bold cyan]\nEvents: [u]{events_file.name}[/u]",
            border_style="cyan",
        )
    )
    cfg = load_settings()

    try:
        with open(events_file, encoding="utf-8") as f:
            events = EVENT_LIST_ADAPTER.validate_python(json.load(f))

        uploader = LocalDirUploader(
            base_dir=upload_dir or cfg.upload_dir, base_url=cfg.upload_base_url
        )
        session = EditorSession.create(uploader)
        transitions = session.replay(events)
        statuses = asyncio.run(session.uploads.drain())
    except Exception as e:
        console.print(f"\n[bold red]❌ Replay Error:[/bold red] {e}")
        if verbose:
            traceback.print_exc()
        raise typer.Exit(code=1) from e

    taken = [t.value for t in transitions if t is not None]
    console.print(f"[green]Applied {len(events)} events[/green] ({len(taken)} structural)")
    if statuses:
        failed = sum(1 for s in statuses.values() if s is UploadStatus.FAILED)
        console.print(f"[dim]Uploads: {len(statuses)} run, {failed} failed[/dim]")

    state = session.interpreter.state
    caret = (state.block_id, state.offset) if isinstance(state, Editing) else None
    blocks = session.store.get_document()
    _render_blocks(blocks, caret)

    if output:
        _write_document(blocks, output)
        console.print(f"[dim]Document saved to: {output}[/dim]")


@app.command()  # type: ignore[misc]
def check(
    document_file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="JSON list of blocks.",
        ),
    ],
    fix: Annotated[
        bool,
        typer.Option("--fix", help="Rewrite the file with the normalized document."),
    ] = False,
) -> None:
    """Validate a saved document against the block invariants."""
    try:
        with open(document_file, encoding="utf-8") as f:
            blocks = document_from_payload(json.load(f))
    except Exception as e:
        console.print(f"[bold red]❌ Invalid document:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    if satisfies_invariants(blocks):
        console.print("[bold green]✅ Document is well-formed[/bold green]")
        _render_blocks(blocks)
        return

    repaired, _ = normalize(blocks)
    console.print(
        f"[bold yellow]⚠️ Document needed repair[/bold yellow] "
        f"({len(blocks)} → {len(repaired)} blocks)"
    )
    _render_blocks(repaired)
    if fix:
        _write_document(repaired, document_file)
        console.print(f"[dim]Rewrote {document_file}[/dim]")
    else:
        raise typer.Exit(code=3)


if __name__ == "__main__":
    app()
