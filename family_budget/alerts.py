"""Budget alert events and sinks.

The engine classifies budgets first and only then hands the resulting
events to a caller-supplied sink, so a failing sink never changes the
tracking result.
"""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Union

from .analytics.models import AlertLevel, TrackingSnapshot, _Serializable

logger = logging.getLogger(__name__)

DEFAULT_ALERT_THRESHOLD = 90.0


@dataclass(frozen=True)
class BudgetAlertEvent(_Serializable):
    family_id: str
    budget_id: int
    category_id: int
    category_name: str
    year: int
    month: int
    utilization_rate: float
    alert_level: AlertLevel
    message: str
    spent: float
    budget_amount: float


AlertSink = Callable[[BudgetAlertEvent], None]


def events_from_snapshots(
    family_id: str,
    snapshots: Iterable[TrackingSnapshot],
    threshold: float = DEFAULT_ALERT_THRESHOLD,
) -> List[BudgetAlertEvent]:
    """Events for every snapshot whose utilization reached ``threshold``."""
    return [
        BudgetAlertEvent(
            family_id=family_id,
            budget_id=s.budget_id,
            category_id=s.category_id,
            category_name=s.category_name,
            year=s.year,
            month=s.month,
            utilization_rate=s.utilization_rate,
            alert_level=s.alert_level,
            message=s.alert_message,
            spent=s.spent,
            budget_amount=s.budget_amount,
        )
        for s in snapshots
        if s.utilization_rate >= threshold
    ]


class QueueAlertSink:
    """Puts events on a queue for a separate notifier to consume."""

    def __init__(self, target: Optional[queue.Queue] = None):
        self.queue = target if target is not None else queue.Queue()

    def __call__(self, event: BudgetAlertEvent) -> None:
        self.queue.put_nowait(event)

    def drain(self) -> List[BudgetAlertEvent]:
        events = []
        while True:
            try:
                events.append(self.queue.get_nowait())
            except queue.Empty:
                return events


class LoggingAlertSink:
    def __init__(self, level: int = logging.WARNING):
        self.level = level

    def __call__(self, event: BudgetAlertEvent) -> None:
        logger.log(
            self.level,
            "Budget alert for %s (%s %04d-%02d): %.1f%% used. %s",
            event.category_name,
            event.family_id,
            event.year,
            event.month,
            event.utilization_rate,
            event.message,
        )


def as_sink(target: Union[AlertSink, queue.Queue, None]) -> Optional[AlertSink]:
    if target is None:
        return None
    if isinstance(target, queue.Queue):
        return QueueAlertSink(target)
    if not callable(target):
        raise TypeError(f"Alert sink must be callable or a queue, got {type(target).__name__}")
    return target


def dispatch_alerts(events: Sequence[BudgetAlertEvent], sink: Union[AlertSink, queue.Queue, None]) -> int:
    """Deliver events to ``sink``; returns how many were delivered."""
    handler = as_sink(sink)
    if handler is None:
        return 0
    delivered = 0
    for event in events:
        try:
            handler(event)
            delivered += 1
        except Exception:
            logger.exception("Alert sink failed for budget %s", event.budget_id)
    return delivered
