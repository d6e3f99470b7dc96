from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from .naming import dataset_name_from_filename

# keys CKAN fills in on its own; never sent back on create
PACKAGE_SERVER_FIELDS = (
    "id", "name", "resources", "revision_id", "metadata_created", "metadata_modified",
    "num_resources", "num_tags", "organization", "creator_user_id", "state",
    "relationships_as_object", "relationships_as_subject", "tracking_summary",
)
RESOURCE_SERVER_FIELDS = (
    "id", "name", "url", "package_id", "revision_id", "created", "last_modified",
    "metadata_modified", "position", "state", "cache_url", "cache_last_updated",
    "datastore_active", "tracking_summary", "size", "hash", "url_type",
)

@dataclass
class Resource:
    id: str
    name: Optional[str]
    url: str = ""
    url_type: Optional[str] = None
    format: str = ""
    description: str = ""
    mimetype: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_upload(self) -> bool:
        return self.url_type == "upload"

    @staticmethod
    def from_payload(data: Dict[str, Any]) -> "Resource":
        known = {"id", "name", "url", "url_type", "format", "description", "mimetype"}
        return Resource(
            id=data.get("id", ""),
            name=data.get("name"),
            url=data.get("url") or "",
            url_type=data.get("url_type") or None,
            format=data.get("format") or "",
            description=data.get("description") or "",
            mimetype=data.get("mimetype"),
            extras={k: v for k, v in data.items() if k not in known and k not in RESOURCE_SERVER_FIELDS},
        )

    def copy_fields(self, package_id: str, filename: str) -> Dict[str, Any]:
        fields: Dict[str, Any] = dict(self.extras)
        fields.update({
            "package_id": package_id,
            "name": filename,
            "format": self.format,
            "description": self.description,
        })
        if self.mimetype:
            fields["mimetype"] = self.mimetype
        return fields

@dataclass
class Dataset:
    id: str
    name: str
    title: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    resources: List[Resource] = field(default_factory=list)

    @staticmethod
    def from_payload(data: Dict[str, Any]) -> "Dataset":
        return Dataset(
            id=data.get("id", ""),
            name=data["name"],
            title=data.get("title") or "",
            metadata={k: v for k, v in data.items() if k not in PACKAGE_SERVER_FIELDS},
            resources=[Resource.from_payload(r) for r in data.get("resources") or []],
        )

    def copy_payload(self, new_name: str) -> Dict[str, Any]:
        payload = dict(self.metadata)
        payload["name"] = new_name
        # tags and groups are re-referenced by name, ids belong to the source
        for key in ("tags", "groups"):
            if payload.get(key):
                payload[key] = [{"name": x["name"]} for x in payload[key] if x.get("name")]
        return payload

@dataclass(frozen=True)
class WorkItem:
    """One unit of work; carries the filename its dataset identifier comes from."""
    filename: str
    attributes: Dict[str, str] = field(default_factory=dict)
    path: Optional[Path] = None

    def dataset_name(self) -> str:
        return dataset_name_from_filename(self.filename)

class Status(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not-found"
    FAILURE = "failure"

@dataclass(frozen=True)
class Outcome:
    status: Status
    dataset: str
    backup_name: Optional[str] = None
    resources: Tuple[str, ...] = ()
    cause: Optional[str] = None

    @staticmethod
    def success(dataset: str, backup_name: str, resources: List[str]) -> "Outcome":
        return Outcome(Status.SUCCESS, dataset, backup_name, tuple(resources))

    @staticmethod
    def not_found(dataset: str) -> "Outcome":
        return Outcome(Status.NOT_FOUND, dataset)

    @staticmethod
    def failure(dataset: str, cause: str) -> "Outcome":
        return Outcome(Status.FAILURE, dataset, cause=cause)
