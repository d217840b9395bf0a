from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalAlert:
    alert_id: str
    title: str
    body: str
    trigger_time: datetime
    repeats: bool = False
    payload: Dict[str, Any] = field(default_factory=dict)


class AlertSink(Protocol):
    """Delivery of local alerts; the OS-level push machinery lives behind this."""

    def schedule_local(
        self,
        alert_id: str,
        title: str,
        body: str,
        trigger_time: datetime,
        repeats: bool = False,
        payload: Dict[str, Any] | None = None,
    ) -> None:
        raise NotImplementedError

    def cancel(self, alert_ids: Iterable[str]) -> None:
        raise NotImplementedError

    def cancel_all(self) -> None:
        raise NotImplementedError


class LoggingAlertSink(AlertSink):
    """Keeps scheduled alerts in memory and logs them."""

    def __init__(self):
        self.scheduled: Dict[str, LocalAlert] = {}

    def schedule_local(self, alert_id, title, body, trigger_time, repeats=False, payload=None) -> None:
        self.scheduled[alert_id] = LocalAlert(
            alert_id=alert_id,
            title=title,
            body=body,
            trigger_time=trigger_time,
            repeats=repeats,
            payload=dict(payload or {}),
        )
        logger.info("Alert scheduled %s at %s: %s", alert_id, trigger_time.isoformat(), body)

    def cancel(self, alert_ids: Iterable[str]) -> None:
        for alert_id in list(alert_ids):
            if self.scheduled.pop(alert_id, None) is not None:
                logger.info("Alert cancelled %s", alert_id)

    def cancel_all(self) -> None:
        self.scheduled.clear()
        logger.info("All alerts cancelled")
