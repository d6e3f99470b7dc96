from __future__ import annotations
import json, time, pathlib, shutil, logging
from typing import Any, Dict, List, Optional
from .models import WorkItem
from .routing import Route, RoutedItem

log = logging.getLogger(__name__)
PENALTY_SUFFIX = ".penalty.json"

class InboxStore:
    """Directory of pending units of work; routed files move to ``<root>/<route>/``."""

    def __init__(self, root: str = "inbox"):
        self.root = pathlib.Path(root)

    def _route_dir(self, route: Route) -> pathlib.Path:
        p = self.root / route.value
        p.mkdir(parents=True, exist_ok=True)
        return p

    def pending(self) -> List[WorkItem]:
        if not self.root.is_dir():
            return []
        files = sorted(p for p in self.root.iterdir() if p.is_file() and not p.name.startswith("."))
        return [WorkItem(filename=p.name, path=p) for p in files]

    def _penalty_path(self, path: pathlib.Path) -> pathlib.Path:
        return path.with_name(path.name + PENALTY_SUFFIX)

    def _read_penalty(self, path: pathlib.Path) -> Optional[Dict[str, Any]]:
        marker = self._penalty_path(path)
        if not marker.exists():
            return None
        with open(marker, "r", encoding="utf-8") as f:
            return json.load(f)

    def is_penalized(self, path: pathlib.Path, now: Optional[float] = None) -> bool:
        data = self._read_penalty(path)
        if data is None:
            return False
        return (now if now is not None else time.time()) < float(data.get("until", 0))

    def dispatch(self, routed: RoutedItem, now: Optional[float] = None) -> pathlib.Path:
        src = routed.item.path
        if src is None:
            raise ValueError(f"Work item {routed.item.filename!r} has no file to dispatch")
        dest = self._route_dir(routed.route) / src.name
        shutil.move(str(src), str(dest))
        if routed.route is Route.FAILURE:
            t = now if now is not None else time.time()
            with open(self._penalty_path(dest), "w", encoding="utf-8") as f:
                json.dump({"cause": routed.cause, "t": t, "until": t + routed.penalty_seconds}, f)
        log.info("Routed %s to %s", src.name, routed.route.value)
        return dest

    def requeue_failed(self, now: Optional[float] = None) -> List[pathlib.Path]:
        failed_dir = self.root / Route.FAILURE.value
        if not failed_dir.is_dir():
            return []
        moved = []
        for p in sorted(failed_dir.iterdir()):
            if not p.is_file() or p.name.endswith(PENALTY_SUFFIX):
                continue
            if self.is_penalized(p, now):
                log.debug("%s is still penalized", p.name)
                continue
            self._penalty_path(p).unlink(missing_ok=True)
            dest = self.root / p.name
            shutil.move(str(p), str(dest))
            moved.append(dest)
        return moved
