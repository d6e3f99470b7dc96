from __future__ import annotations
import logging
from typing import Any, BinaryIO, Dict, Optional
from urllib.parse import urlparse
import requests
from tenacity import Retrying, stop_after_attempt, wait_exponential, retry_if_exception_type
from .errors import CatalogError, CatalogNotFound

log = logging.getLogger(__name__)

RETRYABLE = (requests.ConnectionError, requests.Timeout, requests.HTTPError)
CHUNK_SIZE = 1 << 16

class CKANClient:
    """Client for the CKAN action API (``/api/3/action``)"""

    def __init__(self, base_url: str, api_key: str, timeout: int = 90, max_attempts: int = 5,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.base_action = f"{self.base_url}/api/3/action"
        self.api_key = api_key
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self._session = session or requests.Session()

    @staticmethod
    def from_config(cfg: Any) -> "CKANClient":
        return CKANClient(cfg.ckan_url, cfg.api_key, timeout=cfg.timeout, max_attempts=cfg.max_attempts)

    def __enter__(self) -> "CKANClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def _retrying(self) -> Retrying:
        return Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
            retry=retry_if_exception_type(RETRYABLE),
        )

    def _post(self, url: str, payload: Dict[str, Any], files: Optional[Dict[str, Any]]) -> requests.Response:
        headers = {"Authorization": self.api_key, "Accept": "application/json"}
        if files:
            resp = self._session.post(url, data=payload, files=files, headers=headers, timeout=self.timeout)
        else:
            resp = self._session.post(url, json=payload, headers=headers, timeout=self.timeout)
        # 4xx carries a CKAN error body, only server errors are worth another try
        if resp.status_code >= 500:
            try:
                resp.raise_for_status()
            except requests.HTTPError:
                log.warning("HTTP error %s from %s", resp.status_code, url)
                raise
        return resp

    def action(self, name: str, payload: Dict[str, Any], files: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_action}/{name}"
        try:
            for attempt in self._retrying():
                with attempt:
                    if files:
                        # multipart bodies are consumed by a failed try
                        for f in files.values():
                            fh = f[1] if isinstance(f, tuple) else f
                            if hasattr(fh, "seek"):
                                fh.seek(0)
                    resp = self._post(url, payload, files)
        except requests.RequestException as e:
            raise CatalogError(f"{name} request failed: {e}") from e
        try:
            body = resp.json()
        except ValueError as e:
            raise CatalogError(f"{name} returned a malformed response (HTTP {resp.status_code})") from e
        if not isinstance(body, dict):
            raise CatalogError(f"{name} returned a malformed response (HTTP {resp.status_code})")
        if body.get("success"):
            return body.get("result")
        error = body.get("error") or {}
        if error.get("__type") == "Not Found Error" or resp.status_code == 404:
            raise CatalogNotFound(f"{name}: {error.get('message', 'not found')}")
        message = {k: v for k, v in error.items() if k != "__type"} or error
        raise CatalogError(f"{name} failed (HTTP {resp.status_code}): {error.get('__type', 'Error')}: {message}")

    def _same_host(self, url: str) -> bool:
        return urlparse(url).netloc == urlparse(self.base_url).netloc

    def download(self, url: str, sink: BinaryIO) -> int:
        """Stream ``url`` into ``sink``; returns the number of bytes written."""
        headers = {"Authorization": self.api_key} if self._same_host(url) else {}
        written = 0
        try:
            for attempt in self._retrying():
                with attempt:
                    sink.seek(0)
                    sink.truncate()
                    written = 0
                    with self._session.get(url, headers=headers, stream=True, timeout=self.timeout) as resp:
                        if 400 <= resp.status_code < 500:
                            raise CatalogError(f"Download of {url} failed: HTTP {resp.status_code}")
                        resp.raise_for_status()
                        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                            if chunk:
                                sink.write(chunk)
                                written += len(chunk)
        except requests.RequestException as e:
            raise CatalogError(f"Download of {url} failed: {e}") from e
        log.debug("Downloaded %s bytes from %s", written, url)
        return written
