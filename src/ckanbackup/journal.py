from __future__ import annotations
import os, json, pathlib, logging, time
from .routing import RoutedItem

log = logging.getLogger(__name__)

class OutcomeJournal:
    def __init__(self, output_dir: str = "out") -> None:
        self.output_dir = output_dir

    @property
    def path(self) -> str:
        return os.path.join(self.output_dir, "backups.jsonl")

    def append(self, routed: RoutedItem) -> str:
        pathlib.Path(self.output_dir).mkdir(parents=True, exist_ok=True)
        o = routed.outcome
        record = {
            "t": time.time(),
            "filename": routed.item.filename,
            "route": routed.route.value,
            "dataset": o.dataset,
            "backup_name": o.backup_name,
            "resources": list(o.resources),
            "cause": routed.cause,
            "penalty_seconds": routed.penalty_seconds,
        }
        with open(self.path, "a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False) + "\n")
        log.debug("Journaled %s -> %s", routed.item.filename, routed.route.value)
        return self.path
