from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict
import os
import json

try:
    import tomllib  # PY>=3.11
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore

@dataclass
class BackupConfig:
    ckan_url: str
    api_key: str
    timeout: int = 90
    max_attempts: int = 5
    workers: int = 1
    penalty_seconds: float = 30.0
    inbox_dir: str = "inbox"
    output_dir: str = "out"

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "BackupConfig":
        def env_override(key: str, default):
            # ckan_url -> CKAN_URL, api_key -> CKAN_API_KEY
            env = key.upper() if key.startswith("ckan_") else f"CKAN_{key.upper()}"
            return os.getenv(env, data.get(key, default))
        return BackupConfig(
            ckan_url=str(env_override("ckan_url", "")).strip().rstrip("/"),
            api_key=str(env_override("api_key", "")).strip(),
            timeout=int(env_override("timeout", 90)),
            max_attempts=int(env_override("max_attempts", 5)),
            workers=int(env_override("workers", 1)),
            penalty_seconds=float(env_override("penalty_seconds", 30.0)),
            inbox_dir=str(env_override("inbox_dir", "inbox")),
            output_dir=str(env_override("output_dir", "out")),
        )

    @staticmethod
    def from_toml(path: str) -> "BackupConfig":
        with open(path, "rb") as f:
            data = tomllib.load(f)
        # allow the settings to live under a [ckan] table
        return BackupConfig.from_mapping(data.get("ckan", data))

    @staticmethod
    def from_json(path: str) -> "BackupConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return BackupConfig.from_mapping(data)

    @staticmethod
    def load(path: str) -> "BackupConfig":
        if path.lower().endswith(".json"):
            return BackupConfig.from_json(path)
        return BackupConfig.from_toml(path)

    def validate(self) -> None:
        missing = [k for k in ["ckan_url", "api_key"] if not getattr(self, k)]
        if missing:
            raise SystemExit(f"Config is missing required keys: {', '.join(missing)}")
        if not self.ckan_url.startswith(("http://", "https://")):
            raise SystemExit(f"ckan_url must be an http(s) URL, got {self.ckan_url!r}")
        if self.max_attempts < 1 or self.workers < 1:
            raise SystemExit("max_attempts and workers must be at least 1")
