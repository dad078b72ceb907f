from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from tqdm import tqdm

from .._version import __version__
from ..config import get_settings, snapshot_path
from ..host.markdown import InlineFieldSource, MarkdownFileStore, iter_documents
from ..settings import SyncSettings
from ..sync.orchestrator import Synchronizer
from ..sync.queue import DocumentQueue
from ..sync.snapshots import JsonSnapshotStore
from ..utils.logging import configure_json_logger, flush_handlers, generate_trace_id, log_event
from .config import app as config_app

__all__ = ["app", "run"]


app = typer.Typer(help="Synchronize inline fields into document frontmatter", add_completion=False)


@app.callback(invoke_without_command=True)
def version_callback(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show fieldsync version and exit", is_eager=True),
) -> None:
    """Handle global options before any sub-command executes."""

    if version:
        typer.echo(f"fieldsync {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


app.add_typer(config_app, name="config")


def _collect_documents(paths: List[Path]) -> List[str]:
    documents: List[str] = []
    for path in paths:
        if path.is_dir():
            documents.extend((path / relative).as_posix() for relative in iter_documents(path))
        else:
            documents.append(path.as_posix())
    return list(dict.fromkeys(documents))


def _resolve_settings(config_file: Path | None) -> SyncSettings:
    if config_file is not None:
        return get_settings(config_file=config_file)
    return get_settings()


async def _sync_documents(
    synchronizer: Synchronizer,
    documents: List[str],
    *,
    dry_run: bool,
    debounce: float,
) -> DocumentQueue:
    progress = tqdm(total=len(documents), desc="sync", unit="doc", disable=len(documents) < 2)

    async def worker(document: str) -> Any:
        try:
            return await synchronizer.synchronize(document, dry_run=dry_run)
        finally:
            progress.update(1)

    queue = DocumentQueue(worker, debounce=debounce)
    for document in documents:
        queue.trigger(document)
    await queue.drain()
    progress.close()
    return queue


@app.command("sync")
def sync_command(
    paths: List[Path] = typer.Argument(..., exists=True, help="Markdown files or directories to synchronize"),
    config_file: Path = typer.Option(
        None, "--config-file", exists=True, dir_okay=False, help="TOML/YAML configuration file"
    ),
    snapshot_file: Path = typer.Option(
        None, "--snapshot-file", dir_okay=False, help="JSON file holding the per-document snapshots"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report the changes without writing them"),
    log_file: Path = typer.Option(None, "--log-file", dir_okay=False, help="Write JSON Lines logs to this file"),
    debounce: Optional[float] = typer.Option(
        None, "--debounce", min=0.0, help="Seconds to wait before each document run (defaults to debounce_seconds)"
    ),
) -> None:
    """Reconcile the frontmatter of every markdown document found under PATHS."""

    if log_file is not None:
        logger = configure_json_logger(log_file, level=logging.INFO)
    else:
        logger = logging.getLogger("fieldsync")
    trace_id = generate_trace_id()
    settings = _resolve_settings(config_file)
    delay = settings.debounce_seconds if debounce is None else debounce
    snapshots = JsonSnapshotStore(snapshot_path(snapshot_file))
    root = Path.cwd()
    synchronizer = Synchronizer(
        settings,
        InlineFieldSource(root),
        MarkdownFileStore(root),
        snapshots,
    )
    documents = _collect_documents(paths)
    log_event(logger, "sync.started", trace_id=trace_id, documents=len(documents), dry_run=dry_run)

    queue = asyncio.run(_sync_documents(synchronizer, documents, dry_run=dry_run, debounce=delay))

    counts: Dict[str, int] = {}
    reports = []
    for document in documents:
        report = queue.results.get(document)
        if report is None:
            continue
        counts[report.status.value] = counts.get(report.status.value, 0) + 1
        reports.append(report.to_dict())
    failures = {document: str(exc) for document, exc in queue.failures.items()}

    summary = {
        "documents": len(documents),
        "statuses": counts,
        "failed": failures,
        "dry_run": dry_run,
        "debounce_seconds": delay,
        "snapshot_file": str(snapshots.path),
        "reports": reports,
    }
    log_event(logger, "sync.completed", trace_id=trace_id, statuses=counts, failed=len(failures))
    flush_handlers(logger)
    typer.echo(json.dumps(summary, indent=2, ensure_ascii=False, default=str))
    if failures:
        raise typer.Exit(code=1)


@app.command("check")
def check_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Markdown document to inspect"),
    config_file: Path = typer.Option(
        None, "--config-file", exists=True, dir_okay=False, help="TOML/YAML configuration file"
    ),
    snapshot_file: Path = typer.Option(
        None, "--snapshot-file", dir_okay=False, help="JSON file holding the per-document snapshots"
    ),
) -> None:
    """Print the decision computed for PATH without writing anything."""

    settings = _resolve_settings(config_file)
    root = Path.cwd()
    synchronizer = Synchronizer(
        settings,
        InlineFieldSource(root),
        MarkdownFileStore(root),
        JsonSnapshotStore(snapshot_path(snapshot_file)),
    )
    report, header = asyncio.run(synchronizer.plan(path.as_posix()))
    payload: Dict[str, Any] = report.to_dict()
    if report.decision is not None:
        payload["decision"] = report.decision.to_dict()
    payload["header"] = dict(header or {})
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def run() -> None:
    """Entry point compatible with ``python -m fieldsync.cli.main`` and console scripts."""

    from typer.main import get_command

    cli = get_command(app)
    cli()


if __name__ == "__main__":  # pragma: no cover
    run()
