from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

import pytest

from ckanbackup.config import BackupConfig
from ckanbackup.errors import CatalogError
from ckanbackup.models import Dataset, Resource


class FakeCatalog:
    """In-memory stand-in for ``CKANRepository`` that records every call."""

    def __init__(self, datasets: Iterable[Dataset] = (), fail_uploads: Iterable[str] = ()) -> None:
        self.datasets = {d.name: d for d in datasets}
        self.fail_uploads = set(fail_uploads)
        self.lookups: List[str] = []
        self.created: List[Tuple[str, str]] = []
        self.uploads: List[Tuple[str, str, str]] = []
        self.closed = False
        self._lock = threading.Lock()

    def lookup_dataset(self, name: str) -> Optional[Dataset]:
        self.lookups.append(name)
        return self.datasets.get(name)

    def create_dataset(self, source: Dataset, new_name: str) -> Dataset:
        self.created.append((source.name, new_name))
        return Dataset(id=f"id-{new_name}", name=new_name, metadata=source.copy_payload(new_name))

    def upload_resource(self, resource: Resource, target_dataset: str, filename: str) -> Resource:
        if resource.name in self.fail_uploads:
            raise CatalogError(f"resource_create failed for {resource.name}")
        with self._lock:
            self.uploads.append((resource.name, target_dataset, filename))
        return Resource(id=f"id-{filename}", name=filename, url=resource.url)

    def close(self) -> None:
        self.closed = True

    @property
    def writes(self) -> int:
        return len(self.created) + len(self.uploads)


def make_dataset(name: str, *filenames: Optional[str]) -> Dataset:
    resources = [
        Resource(id=f"r{i}", name=fn, url=f"https://ckan.test/dataset/{name}/resource/r{i}/download/{fn}",
                 url_type="upload", format=(fn or "").rpartition(".")[2].upper())
        for i, fn in enumerate(filenames)
    ]
    return Dataset(id=f"id-{name}", name=name, title=name.title(),
                   metadata={"title": name.title(), "notes": "source", "owner_org": "org"},
                   resources=resources)


class TickingClock:
    """Clock that moves forward a few seconds every time it is read."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=3)) -> None:
        self.now = start
        self.step = step
        self.reads = 0

    def __call__(self) -> datetime:
        value = self.now
        self.now += self.step
        self.reads += 1
        return value


@pytest.fixture
def cfg() -> BackupConfig:
    return BackupConfig(ckan_url="https://ckan.test", api_key="secret", max_attempts=1, penalty_seconds=30)


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 3, 1, 10, 15, 30)


@pytest.fixture
def catalog_factory():
    return FakeCatalog


@pytest.fixture
def dataset_factory():
    return make_dataset


@pytest.fixture
def ticking_clock():
    return TickingClock(datetime(2024, 3, 1, 10, 15, 30))
