"""Progress reporting for long-running analytics computations."""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests

LOGGER = logging.getLogger(__name__)

# In-process registry used when neither a sink nor an endpoint is configured.
TASK_STATUS: Dict[str, Dict[str, Any]] = {}
_TASK_STATUS_LOCK = threading.Lock()


@dataclass
class TaskStatusReporter:
    """Reports task state changes to a sink, an HTTP endpoint, or ``TASK_STATUS``."""

    task_id: Optional[str] = None
    endpoint: Optional[str] = None
    sink: Optional[Callable[[str, Dict[str, Any]], None]] = field(default=None, repr=False)
    timeout: float = 5.0

    def __post_init__(self) -> None:
        if self.task_id is None:
            self.task_id = os.getenv("INSIGHTS_TASK_ID")
        if self.endpoint is None:
            self.endpoint = os.getenv("INSIGHTS_TASK_STATUS_URL")

    def is_enabled(self) -> bool:
        """Return ``True`` when a task identifier is available for updates."""

        return bool(self.task_id)

    def update(self, *, status: str, message: str, **payload: Any) -> None:
        """Publish a task-status update.

        Args:
            status: Short status string (``started``, ``in_progress``, ``completed``...).
            message: Human-readable description of the update.
            **payload: Additional JSON-serializable fields such as ``processed``/``total``.
        """

        if not self.task_id:
            LOGGER.debug("TaskStatusReporter skipped update (task_id missing): %s - %s", status, message)
            return

        body: Dict[str, Any] = {"status": status, "message": message}
        body.update(payload)

        if self.sink:
            self.sink(self.task_id, body)
            return

        if self.endpoint:
            self._post_update(body)
            return

        self._update_local_store(body)

    def _post_update(self, body: Dict[str, Any]) -> None:
        url = f"{self.endpoint.rstrip('/')}/{self.task_id}/update"
        try:
            response = requests.post(url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            LOGGER.warning("Task status POST failed (%s): %s", url, exc)

    def _update_local_store(self, body: Dict[str, Any]) -> None:
        with _TASK_STATUS_LOCK:
            TASK_STATUS[self.task_id] = body
        LOGGER.debug("Recorded task status for %s: %s", self.task_id, json.dumps(body, default=str))


def get_task_status(task_id: str) -> Optional[Dict[str, Any]]:
    with _TASK_STATUS_LOCK:
        status = TASK_STATUS.get(task_id)
        return dict(status) if status is not None else None


__all__ = ["TASK_STATUS", "TaskStatusReporter", "get_task_status"]
