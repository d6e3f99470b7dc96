from __future__ import annotations
from datetime import datetime
from typing import Optional, Tuple
from .errors import IdentifierError, NamingViolation

# sortable, and only uses characters CKAN accepts in a package name
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

def make_timestamp(now: datetime) -> str:
    return now.strftime(TIMESTAMP_FORMAT)

def backup_dataset_name(name: str, timestamp: str) -> str:
    return f"{name}{timestamp}"

def split_filename(filename: Optional[str]) -> Tuple[str, str]:
    """Split at the first '.', so ``a.tar.gz`` gives ``("a", "tar.gz")``."""
    base, sep, ext = (filename or "").partition(".")
    if not sep or not ext:
        raise NamingViolation(f"Resource filename {filename!r} has no extension after '.'")
    return base, ext

def backup_resource_filename(filename: Optional[str], timestamp: str) -> str:
    base, ext = split_filename(filename)
    return f"{base}{timestamp}.{ext}"

def dataset_name_from_filename(filename: Optional[str]) -> str:
    name = (filename or "").split(".", 1)[0].strip()
    if not name:
        raise IdentifierError(f"Cannot derive a dataset name from filename {filename!r}")
    return name
