import logging
import queue

import pytest

from family_budget.alerts import (
    LoggingAlertSink,
    QueueAlertSink,
    as_sink,
    dispatch_alerts,
    events_from_snapshots,
)
from family_budget.analytics.models import AlertLevel
from family_budget.analytics.tracking import track_budget


def snapshots():
    return [
        track_budget(1000, 950, 20, 30, budget_id=1, category_name='Groceries', year=2024, month=5),
        track_budget(1000, 890, 20, 30, budget_id=2, category_name='Transport', year=2024, month=5),
        track_budget(1000, 1600, 20, 30, budget_id=3, category_name='Dining', year=2024, month=5),
    ]


def test_events_only_for_snapshots_at_threshold():
    events = events_from_snapshots('fam', snapshots())
    assert [e.budget_id for e in events] == [1, 3]
    assert events[1].alert_level == AlertLevel.CRITICAL
    assert events[0].to_dict()['alert_level'] == 'warning'


def test_custom_threshold():
    assert len(events_from_snapshots('fam', snapshots(), threshold=80)) == 3


def test_queue_sink_collects_events():
    sink = QueueAlertSink()
    delivered = dispatch_alerts(events_from_snapshots('fam', snapshots()), sink)
    assert delivered == 2
    assert [e.category_name for e in sink.drain()] == ['Groceries', 'Dining']
    assert sink.drain() == []


def test_plain_queue_is_wrapped():
    target = queue.Queue()
    dispatch_alerts(events_from_snapshots('fam', snapshots()), target)
    assert target.qsize() == 2


def test_sink_failures_are_logged(caplog):
    calls = []

    def flaky(event):
        calls.append(event.budget_id)
        if event.budget_id == 1:
            raise RuntimeError("boom")

    with caplog.at_level(logging.ERROR, logger='family_budget.alerts'):
        delivered = dispatch_alerts(events_from_snapshots('fam', snapshots()), flaky)
    assert calls == [1, 3]
    assert delivered == 1
    assert "budget 1" in caplog.text


def test_logging_sink_writes_warning(caplog):
    with caplog.at_level(logging.WARNING, logger='family_budget.alerts'):
        dispatch_alerts(events_from_snapshots('fam', snapshots()), LoggingAlertSink())
    assert "Dining" in caplog.text


def test_no_sink_means_no_delivery():
    assert dispatch_alerts(events_from_snapshots('fam', snapshots()), None) == 0


def test_non_callable_sink_is_rejected():
    with pytest.raises(TypeError):
        as_sink(42)
