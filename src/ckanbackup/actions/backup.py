from __future__ import annotations
import logging
from concurrent import futures
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional
from ..models import Dataset, Outcome, Resource
from ..naming import backup_dataset_name, backup_resource_filename

if TYPE_CHECKING:
    from ..orchestrator import Context

log = logging.getLogger(__name__)

@dataclass
class LookupDataset:
    name: str

    def run(self, ctx: Context) -> Optional[Dataset]:
        log.info("Getting the information of dataset with name: %s", self.name)
        dataset = ctx.repo.lookup_dataset(self.name)
        if dataset is None:
            log.info("No dataset named %s in the catalog", self.name)
        return dataset

@dataclass
class ReplicateDataset:
    dataset: Dataset
    timestamp: str

    @property
    def backup_name(self) -> str:
        return backup_dataset_name(self.dataset.name, self.timestamp)

    def _copy(self, ctx: Context, resource: Resource) -> str:
        filename = backup_resource_filename(resource.name, self.timestamp)
        ctx.repo.upload_resource(resource, self.backup_name, filename)
        log.debug("Copied resource %s to %s/%s", resource.name, self.backup_name, filename)
        return filename

    def _copy_serial(self, ctx: Context) -> List[str]:
        return [self._copy(ctx, res) for res in self.dataset.resources]

    def _copy_parallel(self, ctx: Context, workers: int) -> List[str]:
        pool = futures.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ckan-backup")
        try:
            jobs = [pool.submit(self._copy, ctx, res) for res in self.dataset.resources]
            done, pending = futures.wait(jobs, return_when=futures.FIRST_EXCEPTION)
            failed = [j for j in jobs if j in done and j.exception() is not None]
            if failed:
                for j in pending:
                    j.cancel()
                raise failed[0].exception()
            return [j.result() for j in jobs]
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

    def run(self, ctx: Context) -> Outcome:
        ctx.repo.create_dataset(self.dataset, self.backup_name)
        log.info("Created backup dataset %s from %s", self.backup_name, self.dataset.name)
        if not self.dataset.resources:
            return Outcome.success(self.dataset.name, self.backup_name, [])
        workers = int(getattr(ctx.cfg, "workers", 1) or 1)
        try:
            if workers > 1 and len(self.dataset.resources) > 1:
                created = self._copy_parallel(ctx, min(workers, len(self.dataset.resources)))
            else:
                created = self._copy_serial(ctx)
        except Exception:
            # no rollback: resources copied so far stay in the catalog
            log.warning("Backup dataset %s is left partially populated", self.backup_name)
            raise
        return Outcome.success(self.dataset.name, self.backup_name, created)
