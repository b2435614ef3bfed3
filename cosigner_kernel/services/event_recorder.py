"""
EventRecorder -- append-only observations for off-chain auditability.

Every observation is written to ``cosigner_events`` inside the caller's
transaction (so a rolled-back operation leaves nothing behind) and logged
as a structured ``cosigner_event`` line.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cosigner_kernel.domain.clock import Clock
from cosigner_kernel.logging_config import get_logger
from cosigner_kernel.models.cosigner_event import CosignerEvent, EventName
from cosigner_kernel.services.base import BaseService

logger = get_logger("services.event_recorder")


@dataclass(frozen=True)
class EventInfo:
    """Immutable view of a recorded observation."""

    seq: int
    name: EventName
    actor: str
    occurred_at: datetime
    payload: dict[str, Any]


def _jsonable(value: Any) -> Any:
    # JSON numbers lose precision beyond 2**53, so integers travel as text
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)


class EventRecorder(BaseService[CosignerEvent]):
    """Writes and reads cosigner observations."""

    def __init__(self, session: Session, clock: Clock):
        super().__init__(session)
        self._clock = clock

    def _to_dto(self, event: CosignerEvent) -> EventInfo:
        return EventInfo(
            seq=event.seq,
            name=EventName(event.name),
            actor=event.actor,
            occurred_at=event.occurred_at,
            payload=dict(event.payload),
        )

    def _next_seq(self) -> int:
        current = self.session.execute(
            select(func.max(CosignerEvent.seq))
        ).scalar_one_or_none()
        return (current or 0) + 1

    def emit(self, name: EventName, actor: str, **fields: Any) -> EventInfo:
        """Record one observation and return it."""
        payload = {key: _jsonable(val) for key, val in fields.items()}
        event = CosignerEvent(
            seq=self._next_seq(),
            name=name.value,
            actor=actor,
            occurred_at=self._clock.now(),
            payload=payload,
        )
        self.session.add(event)
        self.session.flush()

        logger.info(
            "cosigner_event",
            extra={
                "event_name": name.value,
                "seq": event.seq,
                "event_actor": actor,
                "payload": payload,
            },
        )
        return self._to_dto(event)

    def list_events(self, name: EventName | None = None) -> list[EventInfo]:
        """Return recorded observations in emission order."""
        stmt = select(CosignerEvent)
        if name is not None:
            stmt = stmt.where(CosignerEvent.name == name.value)
        stmt = stmt.order_by(CosignerEvent.seq)
        return [self._to_dto(e) for e in self.session.execute(stmt).scalars().all()]
