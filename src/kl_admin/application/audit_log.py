"""Operator audit trail: admin and custody actions.

Every event goes to the "kl.audit" logger and into a bounded in-memory
ring served by GET /admin/logs. The ring is per node and lost on restart;
durable copies come from whatever handler the deployment attaches to
"kl.audit".
"""

import logging
from collections import deque
from dataclasses import asdict, dataclass

from src.kl_common.datetime_utils import iso_timestamp

logger = logging.getLogger("kl.audit")


@dataclass(frozen=True)
class AuditEvent:
    timestamp: str
    action: str
    actor: str
    detail: str


class AuditLog:
    def __init__(self, capacity: int = 1000) -> None:
        self._events: deque[AuditEvent] = deque(maxlen=capacity)

    def record(self, action: str, actor: str, detail: str = "") -> AuditEvent:
        event = AuditEvent(timestamp=iso_timestamp(), action=action, actor=actor, detail=detail)
        self._events.append(event)
        logger.info("%s by %s %s", action, actor, detail)
        return event

    def recent(self, limit: int = 100) -> list[dict[str, str]]:
        """Newest first."""
        events = list(self._events)[-limit:] if limit > 0 else []
        return [asdict(e) for e in reversed(events)]
