"""Pause status gate — tells checkout and resume flows whether a store hold applies to a user."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from config import settings
from schemas.enums import PauseType
from services.delivery_schedule import add_days, pin_delivery_time, skip_blackout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PauseGateResult:
    is_affected: bool
    admin_pause_id: uuid.UUID | None = None
    pause_type: PauseType | None = None
    reason: str | None = None
    pause_end: datetime | None = None
    adjusted_first_delivery: datetime | None = None
    message: str | None = None


def _covers(pause, user_id: uuid.UUID) -> bool:
    if pause.pause_type is PauseType.ALL:
        return True
    return str(user_id) in {str(u) for u in (pause.affected_user_ids or [])}


def _precedence(pause):
    # all-scope first, then indefinite, then the latest end date
    indefinite = pause.end_date is None
    end = pause.end_date.timestamp() if pause.end_date is not None else float("inf")
    return (pause.pause_type is PauseType.ALL, indefinite, end)


class PauseStatusGate:
    """Never blocks: an affected user gets a deferred first delivery and a message."""

    def __init__(self, pauses):
        self.pauses = pauses

    async def check(self, user_id: uuid.UUID, now: datetime) -> PauseGateResult:
        candidates = [p for p in await self.pauses.list_active(now) if _covers(p, user_id)]
        if not candidates:
            return PauseGateResult(is_affected=False)

        pause = max(candidates, key=_precedence)

        if pause.end_date is not None:
            adjusted = skip_blackout(add_days(pause.end_date.astimezone(now.tzinfo), 1))
            message = (
                f"Deliveries are temporarily on hold ({pause.reason}). "
                f"Your first delivery will be on {adjusted:%A, %d %B %Y}."
            )
        else:
            adjusted = skip_blackout(add_days(now, settings.INDEFINITE_PAUSE_DEFERRAL_DAYS))
            message = (
                f"Deliveries are on hold until further notice ({pause.reason}). "
                f"Your first delivery is tentatively set for {adjusted:%A, %d %B %Y} "
                f"and may move once deliveries resume."
            )

        adjusted = pin_delivery_time(adjusted, settings.DELIVERY_HOUR)
        logger.info("User %s affected by admin pause %s", user_id, pause.id)
        return PauseGateResult(
            is_affected=True,
            admin_pause_id=pause.id,
            pause_type=pause.pause_type,
            reason=pause.reason,
            pause_end=pause.end_date,
            adjusted_first_delivery=adjusted,
            message=message,
        )
