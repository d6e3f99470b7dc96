from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from .models import Outcome, Status, WorkItem

class Route(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not-found"
    FAILURE = "failure"

_ROUTES = {
    Status.SUCCESS: Route.SUCCESS,
    Status.NOT_FOUND: Route.NOT_FOUND,
    Status.FAILURE: Route.FAILURE,
}

@dataclass(frozen=True)
class RoutedItem:
    item: WorkItem
    route: Route
    outcome: Outcome
    penalty_seconds: float = 0.0
    cause: Optional[str] = None

    @property
    def penalized(self) -> bool:
        return self.penalty_seconds > 0

def report(item: WorkItem, outcome: Outcome, penalty_seconds: float) -> RoutedItem:
    """Map an outcome onto the route the surrounding system forwards the item on.

    Only failures carry a penalty, so whatever re-delivers the item backs off.
    """
    route = _ROUTES[outcome.status]
    if route is Route.FAILURE:
        return RoutedItem(item, route, outcome, penalty_seconds=penalty_seconds, cause=outcome.cause)
    return RoutedItem(item, route, outcome)
