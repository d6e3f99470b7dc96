from __future__ import annotations
import logging
import tempfile
from typing import Any, Dict, Optional
from .ckan_client import CKANClient
from .errors import CatalogError, CatalogNotFound
from .models import Dataset, Resource

log = logging.getLogger(__name__)

class CKANRepository:
    def __init__(self, client: CKANClient) -> None:
        self.client = client

    def lookup_dataset(self, name: str) -> Optional[Dataset]:
        try:
            data = self.client.action("package_show", {"id": name})
        except CatalogNotFound:
            return None
        if not isinstance(data, dict) or "name" not in data:
            raise CatalogError(f"package_show returned no dataset for {name!r}")
        return Dataset.from_payload(data)

    def _write(self, name: str, payload: Dict[str, Any], files: Optional[Dict[str, Any]] = None) -> Any:
        # only a lookup may come back empty; a missing entity on a write is a catalog failure
        try:
            return self.client.action(name, payload, files=files)
        except CatalogNotFound as e:
            raise CatalogError(str(e)) from e

    def create_dataset(self, source: Dataset, new_name: str) -> Dataset:
        data = self._write("package_create", source.copy_payload(new_name))
        if not isinstance(data, dict) or "name" not in data:
            raise CatalogError(f"package_create returned no dataset for {new_name!r}")
        return Dataset.from_payload(data)

    def upload_resource(self, resource: Resource, target_dataset: str, filename: str) -> Resource:
        fields = resource.copy_fields(target_dataset, filename)
        if resource.is_upload:
            with tempfile.TemporaryFile() as buf:
                size = self.client.download(resource.url, buf)
                buf.seek(0)
                log.debug("Uploading %s (%s bytes) to %s", filename, size, target_dataset)
                data = self._write("resource_create", fields, files={"upload": (filename, buf)})
        else:
            fields["url"] = resource.url
            data = self._write("resource_create", fields)
        if not isinstance(data, dict):
            raise CatalogError(f"resource_create returned no resource for {filename!r}")
        return Resource.from_payload(data)

    def close(self) -> None:
        self.client.close()
