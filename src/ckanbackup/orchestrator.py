from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional
from .actions.backup import LookupDataset, ReplicateDataset
from .ckan_client import CKANClient
from .errors import CatalogError, IdentifierError, NamingViolation
from .models import Outcome, WorkItem
from .naming import make_timestamp
from .repository import CKANRepository
from .routing import RoutedItem, report

log = logging.getLogger(__name__)

@dataclass
class Context:
    repo: Any
    cfg: Any
    clock: Callable[[], datetime] = field(default=datetime.now)

class Orchestrator:
    def __init__(self, ctx: Context):
        self.ctx = ctx

    def backup(self, name: str) -> Outcome:
        dataset = LookupDataset(name).run(self.ctx)
        if dataset is None:
            return Outcome.not_found(name)
        # one timestamp for the dataset and every resource in it
        timestamp = make_timestamp(self.ctx.clock())
        return ReplicateDataset(dataset, timestamp).run(self.ctx)

    def _fail(self, item: WorkItem, name: str, cause: BaseException) -> RoutedItem:
        outcome = Outcome.failure(name, f"{type(cause).__name__}: {cause}")
        return report(item, outcome, self.ctx.cfg.penalty_seconds)

    def process(self, item: WorkItem) -> RoutedItem:
        """Run the backup for one unit of work; always returns exactly one routed item."""
        name = item.filename
        try:
            name = item.dataset_name()
            outcome = self.backup(name)
        except IdentifierError as e:
            log.error("Cannot derive a dataset name from %r", item.filename)
            log.error("%s", e)
            return self._fail(item, name, e)
        except NamingViolation as e:
            log.error("Error while splitting the resource filename, it contains no '.'")
            log.error("%s", e)
            return self._fail(item, name, e)
        except CatalogError as e:
            log.error("Error while using the CKAN API")
            log.error("%s", e)
            return self._fail(item, name, e)
        except Exception as e:
            log.exception("Unexpected error while backing up %s", name)
            return self._fail(item, name, e)
        log.info("Backup of %s finished: %s", name, outcome.status.value)
        return report(item, outcome, self.ctx.cfg.penalty_seconds)

def open_repository(cfg: Any) -> CKANRepository:
    return CKANRepository(CKANClient.from_config(cfg))

def run_work_item(item: WorkItem, cfg: Any, *, clock: Optional[Callable[[], datetime]] = None,
                  repository_factory: Callable[[Any], Any] = open_repository) -> RoutedItem:
    """Open a catalog connection for ``item``, run it, and close the connection on every path."""
    try:
        repo = repository_factory(cfg)
    except Exception as e:
        log.exception("Cannot open a connection to the catalog at %s", getattr(cfg, "ckan_url", "?"))
        return report(item, Outcome.failure(item.filename, f"{type(e).__name__}: {e}"), cfg.penalty_seconds)
    try:
        return Orchestrator(Context(repo=repo, cfg=cfg, clock=clock or datetime.now)).process(item)
    finally:
        try:
            repo.close()
        except Exception:
            log.exception("Error while closing the catalog connection for %s", item.filename)
