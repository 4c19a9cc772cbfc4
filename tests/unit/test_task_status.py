"""Tests for TaskStatusReporter utilities."""

from __future__ import annotations

from typing import Dict, List, Tuple

import requests

from inspection_insights import task_status
from inspection_insights.task_status import TaskStatusReporter, get_task_status


def test_reporter_records_updates_via_sink(monkeypatch) -> None:
    captured: List[Tuple[str, Dict[str, object]]] = []

    def _sink(task_id: str, payload: Dict[str, object]) -> None:
        captured.append((task_id, payload))

    reporter = TaskStatusReporter(task_id="task-123", sink=_sink)

    reporter.update(status="in_progress", message="Processing chunk 1/3", processed=25)

    assert captured[0][0] == "task-123"
    assert captured[0][1]["status"] == "in_progress"
    assert captured[0][1]["processed"] == 25


def test_reporter_noops_without_task_id(monkeypatch) -> None:
    monkeypatch.delenv("INSIGHTS_TASK_ID", raising=False)
    invoked: List[Tuple[str, Dict[str, object]]] = []

    reporter = TaskStatusReporter(sink=lambda task_id, payload: invoked.append((task_id, payload)))

    reporter.update(status="in_progress", message="Processing")

    assert not reporter.is_enabled()
    assert invoked == []


def test_reporter_reads_environment_and_falls_back_to_local_store(monkeypatch) -> None:
    monkeypatch.setenv("INSIGHTS_TASK_ID", "env-task")
    monkeypatch.delenv("INSIGHTS_TASK_STATUS_URL", raising=False)
    monkeypatch.setattr(task_status, "TASK_STATUS", {})

    reporter = TaskStatusReporter()
    reporter.update(status="completed", message="done", total_reports=4)

    assert reporter.task_id == "env-task"
    assert get_task_status("env-task") == {"status": "completed", "message": "done", "total_reports": 4}


def test_reporter_posts_to_endpoint(monkeypatch) -> None:
    calls: List[Tuple[str, Dict[str, object]]] = []

    class _Response:
        def raise_for_status(self) -> None:
            return None

    def _post(url: str, json: Dict[str, object], timeout: float) -> _Response:
        calls.append((url, json))
        return _Response()

    monkeypatch.setattr(task_status.requests, "post", _post)

    TaskStatusReporter(task_id="t-1", endpoint="http://status.local/tasks/").update(status="started", message="go")

    assert calls == [("http://status.local/tasks/t-1/update", {"status": "started", "message": "go"})]


def test_reporter_logs_failed_posts(monkeypatch, caplog) -> None:
    def _post(*_args, **_kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(task_status.requests, "post", _post)

    TaskStatusReporter(task_id="t-2", endpoint="http://status.local").update(status="started", message="go")

    assert "Task status POST failed" in caplog.text
