from __future__ import annotations
import logging
from typing import List
import typer
from .config import BackupConfig
from .errors import CatalogError
from .journal import OutcomeJournal
from .models import WorkItem
from .orchestrator import open_repository, run_work_item
from .routing import Route
from .storage import InboxStore

app = typer.Typer(add_completion=False, help="Timestamped backups of CKAN datasets")
DEFAULT_CONFIG = "examples/ckanbackup.toml"

def _cfg(cfg_path: str) -> BackupConfig:
    cfg = BackupConfig.load(cfg_path)
    cfg.validate()
    return cfg

@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

@app.command()
def backup(names: List[str], config: str = typer.Option(DEFAULT_CONFIG)):
    """Back up each named dataset."""
    cfg = _cfg(config)
    journal = OutcomeJournal(cfg.output_dir)
    failed = 0
    for name in names:
        routed = run_work_item(WorkItem(filename=name), cfg, repository_factory=open_repository)
        journal.append(routed)
        if routed.route is Route.SUCCESS:
            typer.echo(f"{name}\t{routed.route.value}\t{routed.outcome.backup_name}")
        else:
            typer.echo(f"{name}\t{routed.route.value}\t{routed.cause or ''}".rstrip())
        if routed.route is Route.FAILURE:
            failed += 1
    if failed:
        raise typer.Exit(code=1)

@app.command("process-inbox")
def process_inbox(config: str = typer.Option(DEFAULT_CONFIG)):
    """Back up the dataset named by every file waiting in the inbox."""
    cfg = _cfg(config)
    inbox, journal = InboxStore(cfg.inbox_dir), OutcomeJournal(cfg.output_dir)
    items = inbox.pending()
    counts = {r: 0 for r in Route}
    for item in items:
        routed = run_work_item(item, cfg, repository_factory=open_repository)
        inbox.dispatch(routed)
        journal.append(routed)
        counts[routed.route] += 1
    typer.echo(f"Processed {len(items)} item(s): " + ", ".join(f"{r.value}={n}" for r, n in counts.items()))

@app.command("requeue-failed")
def requeue_failed(config: str = typer.Option(DEFAULT_CONFIG)):
    """Move failed items whose penalty has expired back into the inbox."""
    cfg = _cfg(config)
    moved = InboxStore(cfg.inbox_dir).requeue_failed()
    typer.echo(f"Requeued {len(moved)} item(s)")

@app.command()
def show(name: str, config: str = typer.Option(DEFAULT_CONFIG)):
    """Print a dataset and its resources without changing anything."""
    cfg = _cfg(config)
    repo = open_repository(cfg)
    try:
        dataset = repo.lookup_dataset(name)
    except CatalogError as e:
        typer.echo(f"Error while using the CKAN API: {e}", err=True)
        raise typer.Exit(code=2)
    finally:
        repo.close()
    if dataset is None:
        typer.echo(f"No dataset named {name}")
        raise typer.Exit(code=1)
    typer.echo(f"{dataset.name}\t{dataset.title}\t{len(dataset.resources)} resource(s)")
    for r in dataset.resources:
        typer.echo(f"  {r.name}\t{r.format}\t{r.url}")

if __name__ == "__main__":
    app()
